from .enums import AccessDecision, ErrorCode, IssuanceSource, PresalePhase, RevealPhase
from .errors import (
    AccessDenied,
    AlreadyRevealed,
    AmountExceedsReserve,
    CapacityError,
    FundTransferFailed,
    IllegalPhaseTransition,
    IncorrectPrice,
    InvalidAmount,
    InvalidProof,
    InvalidRevealTimestamp,
    ManualRevealUnsupported,
    MintGateError,
    MintLimitExceeded,
    NotFound,
    PaymentError,
    PhaseError,
    PresaleEnded,
    PresaleOpen,
    SoldOut,
    ValidationError,
)

__all__ = [
    "AccessDecision",
    "ErrorCode",
    "IssuanceSource",
    "PresalePhase",
    "RevealPhase",
    "AccessDenied",
    "AlreadyRevealed",
    "AmountExceedsReserve",
    "CapacityError",
    "FundTransferFailed",
    "IllegalPhaseTransition",
    "IncorrectPrice",
    "InvalidAmount",
    "InvalidProof",
    "InvalidRevealTimestamp",
    "ManualRevealUnsupported",
    "MintGateError",
    "MintLimitExceeded",
    "NotFound",
    "PaymentError",
    "PhaseError",
    "PresaleEnded",
    "PresaleOpen",
    "SoldOut",
    "ValidationError",
]
