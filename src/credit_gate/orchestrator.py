from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

from loguru import logger

from credit_gate.errors import CreditGateError, MalformedResponse
from credit_gate.intent import IntentSynthesizer
from credit_gate.ledger.bridge import CreditLedgerBridge
from credit_gate.mcp.tool_gateway import ToolGateway
from credit_gate.models import (
    BurnConfirmation,
    ConversationMessage,
    NaturalLanguageInstruction,
    OrchestratorResult,
    OrderResult,
    PlanCost,
    RedeemResult,
    RouterAction,
    RouterDecision,
    SynthesizedIntent,
    ToolCallResult,
    ToolCatalogEntry,
    ToolInvocation,
)
from credit_gate.prompts import PromptLoader
from credit_gate.router import MessageRouter
from credit_gate.title import TitleSummarizer

T = TypeVar("T")


class Orchestrator:
    """Runs one inbound chat message through router, ledger, synthesizer and tool gateway."""

    def __init__(
        self,
        *,
        router: MessageRouter,
        synthesizer: IntentSynthesizer,
        gateway: ToolGateway,
        bridge: CreditLedgerBridge,
        prompts: PromptLoader,
        title_summarizer: TitleSummarizer | None = None,
        default_tool: str = "weather.today",
        default_argument: str = "city",
        structured_output_retries: int = 1,
    ):
        self._router = router
        self._synthesizer = synthesizer
        self._gateway = gateway
        self._bridge = bridge
        self._prompts = prompts
        self._title_summarizer = title_summarizer
        self._default_tool = default_tool
        self._default_argument = default_argument
        self._structured_output_retries = max(0, structured_output_retries)

    async def handle_message(
        self,
        message: str,
        history: Sequence[ConversationMessage] = (),
    ) -> OrchestratorResult:
        credits = await self.get_credits()
        conversation = [*history, ConversationMessage(role="user", content=message)]

        decision = await self._with_structured_retry(
            "router",
            lambda: self._router.decide(message, history, credits),
        )
        action = decision.resolved_action
        if action.value != decision.action:
            logger.warning(f"Unknown router action {decision.action!r}; treating as {action.value}")

        if action is RouterAction.FORWARD:
            return await self._forward(decision, conversation)
        if action is RouterAction.ORDER_PLAN:
            order = await self._bridge.order_plan()
            return OrchestratorResult(decision=decision, output_text=order.message, order=order)
        return OrchestratorResult(decision=decision, output_text=decision.message)

    async def get_credits(self) -> int:
        """Current balance; ledger failures degrade to 0 so routing still proceeds."""
        try:
            return await self._bridge.get_balance()
        except Exception as ex:
            logger.warning(f"Credit lookup failed, assuming 0 credits: {type(ex).__name__}: {ex}")
            return 0

    async def _forward(
        self,
        decision: RouterDecision,
        conversation: Sequence[ConversationMessage],
    ) -> OrchestratorResult:
        catalog = await self._catalog_or_none()
        agent_context = self._prompts.agent_prompt()
        intent = await self._with_structured_retry(
            "intent synthesizer",
            lambda: self._synthesizer.synthesize(conversation, agent_context, catalog),
        )
        tool_result = await self.dispatch(intent)
        return OrchestratorResult(
            decision=decision,
            output_text=tool_result.output_text,
            intent=intent,
            tool_result=tool_result,
        )

    async def dispatch(self, intent: SynthesizedIntent) -> ToolCallResult:
        if isinstance(intent, ToolInvocation):
            return await self._gateway.call_tool(intent.tool, intent.args)
        if isinstance(intent, NaturalLanguageInstruction):
            args = {self._default_argument: intent.text} if intent.text else {}
            return await self._gateway.call_tool(self._default_tool, args)
        raise TypeError(f"Unsupported intent: {intent!r}")

    async def _catalog_or_none(self) -> list[ToolCatalogEntry] | None:
        try:
            return await self._gateway.list_tools() or None
        except CreditGateError as ex:
            logger.warning(f"Tool catalog unavailable, synthesizing a plain instruction: {ex}")
            return None

    async def _with_structured_retry(self, label: str, step: Callable[[], Awaitable[T]]) -> T:
        attempts = self._structured_output_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                return await step()
            except MalformedResponse as ex:
                if attempt >= attempts:
                    raise
                logger.warning(f"{label} output rejected ({ex}); retrying (attempt {attempt + 1}/{attempts})")
        raise AssertionError("unreachable")

    async def get_plan_cost(self) -> PlanCost:
        return await self._bridge.get_plan_cost()

    async def order_plan(self) -> OrderResult:
        return await self._bridge.order_plan()

    async def redeem_credits(self, amount: str) -> RedeemResult:
        return await self._bridge.redeem_credits(amount)

    async def find_burn_confirmation(self, from_block: int) -> BurnConfirmation | None:
        return await self._bridge.find_burn_confirmation(from_block)

    async def get_current_block(self) -> int:
        return await self._bridge.get_current_block()

    async def list_tools(self) -> list[ToolCatalogEntry]:
        return await self._gateway.list_tools()

    async def call_tool(self, name: str, args: dict) -> ToolCallResult:
        return await self._gateway.call_tool(name, args)

    async def summarize_title(self, history: Sequence[ConversationMessage]) -> str:
        if self._title_summarizer is None:
            raise RuntimeError("Title summarizer is not configured")
        return await self._title_summarizer.summarize(history)
