from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

_ROLES = ("user", "assistant")


@dataclass(frozen=True)
class ConversationMessage:
    role: str
    content: str

    def __post_init__(self) -> None:
        if self.role not in _ROLES:
            raise ValueError(f"Unsupported message role: {self.role!r}")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ConversationMessage:
        return cls(role=str(data.get("role", "")), content=str(data.get("content", "")))

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


class RouterAction(str, Enum):
    FORWARD = "forward"
    NO_CREDIT = "no_credit"
    ORDER_PLAN = "order_plan"
    NO_ACTION = "no_action"


@dataclass(frozen=True)
class RouterDecision:
    action: str
    message: str | None = None

    @property
    def resolved_action(self) -> RouterAction:
        """The action to execute. Values the router should not produce map to NO_ACTION."""
        try:
            return RouterAction(self.action)
        except ValueError:
            return RouterAction.NO_ACTION


@dataclass(frozen=True)
class NaturalLanguageInstruction:
    text: str


@dataclass(frozen=True)
class ToolInvocation:
    tool: str
    args: dict[str, Any] = field(default_factory=dict)


SynthesizedIntent = Union[NaturalLanguageInstruction, ToolInvocation]


@dataclass(frozen=True)
class ToolCatalogEntry:
    name: str
    input_schema: dict[str, Any]
    description: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "description": self.description, "inputSchema": self.input_schema}


@dataclass(frozen=True)
class PlanRecord:
    price_amounts_raw: tuple[int, ...]
    price_token_address: str | None
    credits_amount: int
    nft_contract_address: str | None
    token_id: str

    @property
    def price_raw(self) -> int:
        return sum(self.price_amounts_raw)


@dataclass(frozen=True)
class ChainEvent:
    tx_hash: str
    value: int
    block_number: int


@dataclass(frozen=True)
class PlanCost:
    price_normalized: str
    credits: int


@dataclass(frozen=True)
class OrderResult:
    success: bool
    message: str
    tx_hash: str | None = None
    credits_granted: int | None = None


@dataclass(frozen=True)
class RedeemResult:
    success: bool
    message: str
    tx_hash: str | None = None


@dataclass(frozen=True)
class BurnConfirmation:
    tx_hash: str
    credits: int
    plan_id: str


@dataclass(frozen=True)
class ToolCallResult:
    output_text: str
    raw_content: Any = None


@dataclass
class OrchestratorResult:
    decision: RouterDecision
    output_text: str | None
    intent: SynthesizedIntent | None = None
    tool_result: ToolCallResult | None = None
    order: OrderResult | None = None
