from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

from loguru import logger

from credit_gate.chain.event_locator import EventKind, EventLocator
from credit_gate.chain.rpc import ChainClient
from credit_gate.errors import AuthenticationError, ConfigurationError, UpstreamProviderError
from credit_gate.ledger.client import LedgerClient
from credit_gate.ledger.confirmation import ConfirmationPoller
from credit_gate.ledger.plan import PlanDescriptorCache, normalize_price
from credit_gate.models import BurnConfirmation, ChainEvent, OrderResult, PlanCost, RedeemResult

# USDC on Base Sepolia
DEFAULT_STABLECOIN_ADDRESS = "0x036CbD53842c5426634e7929541eC2318f3dCF7e"


class CreditLedgerBridge:
    """Credit balance, pricing, purchase and redemption for one principal's plan.

    Purchases and redemptions are not serialized here: two concurrent
    ``order_plan`` calls can both pass the pre-flight balance check.
    """

    def __init__(
        self,
        ledger: LedgerClient,
        chain: ChainClient,
        *,
        plan_id: str,
        agent_id: str | None = None,
        stablecoin_address: str = DEFAULT_STABLECOIN_ADDRESS,
        stablecoin_decimals: int = 6,
        confirmation_attempts: int = 10,
        confirmation_delay_seconds: float = 5.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        event_locator: EventLocator | None = None,
    ):
        if not plan_id:
            raise ConfigurationError("Missing plan id")
        self._ledger = ledger
        self._chain = chain
        self._plan_id = plan_id
        self._agent_id = agent_id
        self._stablecoin_address = stablecoin_address
        self._stablecoin_decimals = stablecoin_decimals
        self._confirmation_attempts = confirmation_attempts
        self._confirmation_delay_seconds = confirmation_delay_seconds
        self._sleep = sleep
        self._locator = event_locator or EventLocator(chain)
        self._plan = PlanDescriptorCache(ledger, plan_id)

    @property
    def plan_id(self) -> str:
        return self._plan_id

    async def get_balance(self) -> int:
        return int(await self._ledger.get_plan_balance(self._plan_id))

    async def get_plan_cost(self) -> PlanCost:
        plan = await self._plan.get()
        return PlanCost(
            price_normalized=normalize_price(
                plan.price_raw,
                plan.price_token_address,
                self._stablecoin_address,
                self._stablecoin_decimals,
            ),
            credits=plan.credits_amount,
        )

    async def get_current_block(self) -> int:
        return await self._chain.get_block_number()

    async def get_access_token(self) -> str:
        agent_id = self._require_agent_id()
        token = await self._ledger.get_agent_access_token(self._plan_id, agent_id)
        if not token:
            raise AuthenticationError(f"No access token issued for plan {self._plan_id}")
        return token

    async def order_plan(self) -> OrderResult:
        plan = await self._plan.get()
        if not plan.price_token_address:
            raise ConfigurationError("Token address not found in plan descriptor")

        wallet = await self._resolve_wallet()

        balance = await self._chain.get_erc20_balance(plan.price_token_address, wallet)
        if balance < plan.price_raw:
            logger.info(f"Order skipped: wallet balance {balance} below plan price {plan.price_raw}")
            return OrderResult(success=False, message="Insufficient balance to purchase credits")

        from_block = await self._chain.get_block_number()

        try:
            outcome = await self._ledger.order_plan(self._plan_id)
        except UpstreamProviderError as ex:
            logger.error(f"Error ordering plan {self._plan_id}: {ex}")
            return OrderResult(success=False, message=str(ex) or "Failed to order credits for plan")
        if not outcome.get("success"):
            return OrderResult(
                success=False,
                message=outcome.get("message") or "Failed to order credits for plan",
            )
        logger.info(f"Plan {self._plan_id} ordered; looking for mint since block {from_block}")

        mint = await self._find_mint(plan.nft_contract_address, wallet, plan.token_id, from_block)
        if mint is None:
            return OrderResult(success=True, message="Credits purchased and added to your balance.")
        return OrderResult(
            success=True,
            message=f"Credits purchased and added to your balance. (tx: {mint.tx_hash})",
            tx_hash=mint.tx_hash,
            credits_granted=mint.value,
        )

    async def redeem_credits(self, amount: str) -> RedeemResult:
        amount = str(amount).strip()
        if not amount.isdigit() or int(amount) <= 0:
            raise ValueError(f"Credits amount must be a positive integer, got {amount!r}")
        agent_id = self._require_agent_id()
        wallet = await self._resolve_wallet()

        try:
            outcome = await self._ledger.redeem_credits(agent_id, self._plan_id, wallet, amount)
        except UpstreamProviderError as ex:
            logger.error(f"Error redeeming {amount} credit(s) from plan {self._plan_id}: {ex}")
            return RedeemResult(success=False, message=str(ex) or "Error redeeming credits.")

        if outcome and outcome.get("success"):
            logger.info(f"Redeemed {amount} credit(s) from plan {self._plan_id}: tx={outcome.get('txHash')}")
            return RedeemResult(
                success=True,
                tx_hash=outcome.get("txHash"),
                message=outcome.get("message") or "Credits redeemed successfully.",
            )
        return RedeemResult(
            success=False,
            message=(outcome or {}).get("message") or "Failed to redeem credits.",
        )

    async def find_burn_confirmation(self, from_block: int) -> BurnConfirmation | None:
        plan = await self._plan.get()
        wallet = await self._resolve_wallet()
        if not plan.nft_contract_address:
            raise ConfigurationError("Credits contract address not found in plan descriptor")

        poller: ConfirmationPoller[ChainEvent] = ConfirmationPoller(
            lambda: self._locator.find_event(
                EventKind.BURN, plan.nft_contract_address, wallet, plan.token_id, from_block
            ),
            max_attempts=self._confirmation_attempts,
            delay_seconds=self._confirmation_delay_seconds,
            sleep=self._sleep,
            label=f"burn confirmation for plan {self._plan_id}",
        )
        event = await poller.run()
        if event is None:
            return None
        return BurnConfirmation(tx_hash=event.tx_hash, credits=event.value, plan_id=self._plan_id)

    async def _find_mint(
        self,
        contract: str | None,
        wallet: str,
        token_id: str,
        from_block: int,
    ) -> ChainEvent | None:
        if not contract:
            return None
        try:
            return await self._locator.find_event(EventKind.MINT, contract, wallet, token_id, from_block)
        except UpstreamProviderError as ex:
            logger.warning(f"Mint lookup failed after a successful order: {ex}")
            return None

    async def _resolve_wallet(self) -> str:
        wallet = await self._ledger.get_account_address()
        if not wallet:
            raise ConfigurationError("Wallet address not found")
        return wallet

    def _require_agent_id(self) -> str:
        if not self._agent_id:
            raise ConfigurationError("Missing agent id")
        return self._agent_id
