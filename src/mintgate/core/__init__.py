from .access import AccessPolicy, AdminGuard, AllowAllPolicy, CompositeAccessPolicy, OwnerPolicy, RolePolicy
from .allowlist import AllowlistLedger
from .clock import Clock, ManualClock, SystemClock
from .engine import IssuanceEngine
from .funds import InMemoryAccounts, ValueTransfer
from .journal import Journal
from .ledger import InMemoryTokenLedger, TokenLedger
from .phase import PhaseLatch
from .reveal import ManualRevealGate, RevealGate, TimedRevealGate
from .sale import SaleController
from .settings import MintGateSettings, get_settings

__all__ = [
    "AccessPolicy",
    "AdminGuard",
    "AllowAllPolicy",
    "CompositeAccessPolicy",
    "OwnerPolicy",
    "RolePolicy",
    "AllowlistLedger",
    "Clock",
    "ManualClock",
    "SystemClock",
    "IssuanceEngine",
    "InMemoryAccounts",
    "ValueTransfer",
    "Journal",
    "InMemoryTokenLedger",
    "TokenLedger",
    "PhaseLatch",
    "ManualRevealGate",
    "RevealGate",
    "TimedRevealGate",
    "SaleController",
    "MintGateSettings",
    "get_settings",
]
