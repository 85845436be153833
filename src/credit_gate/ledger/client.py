from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class LedgerClient(Protocol):
    """Narrow view of the credit ledger library used by the bridge.

    Implementations raise UpstreamProviderError for transport or API failures.
    """

    async def get_plan_balance(self, plan_id: str) -> int: ...

    async def get_plan(self, plan_id: str) -> dict[str, Any]:
        """Plan descriptor (DDO) with ``registry.price`` and ``registry.credits`` sections."""
        ...

    async def order_plan(self, plan_id: str) -> dict[str, Any]:
        """Purchase primitive. Returns at least ``{"success": bool}``."""
        ...

    async def redeem_credits(self, agent_id: str, plan_id: str, wallet: str, amount: str) -> dict[str, Any]:
        """Burn primitive. Returns ``{"success": bool, "txHash"?: str, "message"?: str}``."""
        ...

    async def get_agent_access_token(self, plan_id: str, agent_id: str) -> str: ...

    async def get_account_address(self) -> str | None: ...
