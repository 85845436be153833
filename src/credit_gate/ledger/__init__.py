from credit_gate.ledger.bridge import DEFAULT_STABLECOIN_ADDRESS, CreditLedgerBridge
from credit_gate.ledger.client import LedgerClient
from credit_gate.ledger.confirmation import ConfirmationPoller, PollState
from credit_gate.ledger.plan import PlanDescriptorCache, normalize_price, plan_record_from_descriptor

__all__ = [
    "DEFAULT_STABLECOIN_ADDRESS",
    "ConfirmationPoller",
    "CreditLedgerBridge",
    "LedgerClient",
    "PlanDescriptorCache",
    "PollState",
    "normalize_price",
    "plan_record_from_descriptor",
]
