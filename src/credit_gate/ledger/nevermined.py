"""LedgerClient backed by the Nevermined ``payments-py`` SDK.

Install with the ``nevermined`` extra. The SDK is synchronous, so calls run in
the default executor.
"""
from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any, TypeVar

from loguru import logger

from credit_gate.errors import AuthenticationError, UpstreamProviderError

T = TypeVar("T")


def _field(obj: Any, *names: str, default: Any = None) -> Any:
    """Read the first present attribute or key; SDK versions differ on casing."""
    for name in names:
        if isinstance(obj, dict) and name in obj:
            return obj[name]
        if hasattr(obj, name):
            return getattr(obj, name)
    return default


def _as_dict(obj: Any) -> dict[str, Any]:
    if isinstance(obj, dict):
        return obj
    if hasattr(obj, "model_dump"):
        return obj.model_dump(by_alias=True)
    return dict(vars(obj)) if hasattr(obj, "__dict__") else {"value": obj}


class NeverminedLedgerClient:
    def __init__(self, nvm_api_key: str, environment: str):
        if not nvm_api_key:
            raise AuthenticationError("Missing Nevermined API key")
        from payments_py import Payments, PaymentOptions

        self._payments = Payments.get_instance(
            PaymentOptions(nvm_api_key=nvm_api_key, environment=environment)
        )
        if not _field(self._payments, "is_logged_in", default=True):
            raise AuthenticationError("Failed to log in to the Nevermined Payments library")

    async def _run(self, label: str, fn: Callable[[], T]) -> T:
        try:
            return await asyncio.get_running_loop().run_in_executor(None, fn)
        except (AuthenticationError, UpstreamProviderError):
            raise
        except Exception as ex:
            logger.warning(f"Nevermined {label} failed: {ex}")
            raise UpstreamProviderError("ledger", f"{label} failed: {ex}") from ex

    async def get_plan_balance(self, plan_id: str) -> int:
        result = await self._run("get_plan_balance", lambda: self._payments.plans.get_plan_balance(plan_id))
        return int(_field(result, "balance", default=0))

    async def get_plan(self, plan_id: str) -> dict[str, Any]:
        result = await self._run("get_plan", lambda: self._payments.plans.get_plan(plan_id))
        return _as_dict(result)

    async def order_plan(self, plan_id: str) -> dict[str, Any]:
        result = await self._run("order_plan", lambda: self._payments.plans.order_plan(plan_id))
        return _as_dict(result)

    async def redeem_credits(self, agent_id: str, plan_id: str, wallet: str, amount: str) -> dict[str, Any]:
        result = await self._run(
            "redeem_credits",
            lambda: self._payments.plans.redeem_credits(agent_id, plan_id, wallet, amount),
        )
        return _as_dict(result)

    async def get_agent_access_token(self, plan_id: str, agent_id: str) -> str:
        result = await self._run(
            "get_agent_access_token",
            lambda: self._payments.agents.get_agent_access_token(plan_id, agent_id),
        )
        token = _field(result, "access_token", "accessToken")
        if not token:
            raise AuthenticationError("Ledger issued no access token")
        return str(token)

    async def get_account_address(self) -> str | None:
        getter = getattr(self._payments, "get_account_address", None)
        if callable(getter):
            return getter() or None
        return _field(self._payments, "account_address", default=None)
