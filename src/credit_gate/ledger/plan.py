from __future__ import annotations

import asyncio
from decimal import Decimal
from typing import Any

from loguru import logger

from credit_gate.ledger.client import LedgerClient
from credit_gate.models import PlanRecord


def plan_record_from_descriptor(plan_id: str, descriptor: dict[str, Any]) -> PlanRecord:
    """Extract pricing and credit metadata from a plan descriptor (DDO)."""
    registry = descriptor.get("registry") or {}
    price = registry.get("price") or {}
    credits = registry.get("credits") or {}
    return PlanRecord(
        price_amounts_raw=tuple(int(amount) for amount in price.get("amounts") or []),
        price_token_address=price.get("tokenAddress") or None,
        credits_amount=int(credits.get("amount") or 0),
        nft_contract_address=credits.get("nftAddress") or None,
        token_id=plan_id,
    )


def normalize_price(price_raw: int, token_address: str | None, stablecoin_address: str, decimals: int = 6) -> str:
    """Render a raw price in human units.

    Only the stablecoin's precision is known here, so any other token keeps its
    raw integer amount.
    """
    if token_address and token_address.lower() == stablecoin_address.lower():
        value = (Decimal(price_raw) / (Decimal(10) ** decimals)).normalize()
        return format(value, "f")
    return str(price_raw)


class PlanDescriptorCache:
    """Fetches the plan descriptor once; the record never changes afterwards."""

    def __init__(self, ledger: LedgerClient, plan_id: str):
        self._ledger = ledger
        self._plan_id = plan_id
        self._record: PlanRecord | None = None
        self._lock = asyncio.Lock()

    async def get(self) -> PlanRecord:
        if self._record is None:
            async with self._lock:
                if self._record is None:
                    descriptor = await self._ledger.get_plan(self._plan_id)
                    self._record = plan_record_from_descriptor(self._plan_id, descriptor)
                    logger.debug(
                        f"Plan {self._plan_id} loaded: price={self._record.price_raw} "
                        f"token={self._record.price_token_address} credits={self._record.credits_amount}"
                    )
        return self._record
