from .core.access import AdminGuard, OwnerPolicy
from .core.allowlist import AllowlistLedger
from .core.clock import ManualClock, SystemClock
from .core.engine import IssuanceEngine
from .core.funds import InMemoryAccounts, ValueTransfer
from .core.ledger import InMemoryTokenLedger, TokenLedger
from .core.reveal import ManualRevealGate, RevealGate, TimedRevealGate
from .core.sale import SaleController
from .core.settings import MintGateSettings, get_settings
from .merkle import AllowlistTree, verify_proof
from .protocol.errors import MintGateError
from .protocol.events import EventLog

__all__ = [
    "AdminGuard",
    "OwnerPolicy",
    "AllowlistLedger",
    "ManualClock",
    "SystemClock",
    "IssuanceEngine",
    "InMemoryAccounts",
    "ValueTransfer",
    "InMemoryTokenLedger",
    "TokenLedger",
    "ManualRevealGate",
    "RevealGate",
    "TimedRevealGate",
    "SaleController",
    "MintGateSettings",
    "get_settings",
    "AllowlistTree",
    "verify_proof",
    "MintGateError",
    "EventLog",
]
