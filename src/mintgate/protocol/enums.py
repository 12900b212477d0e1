from enum import Enum


class ErrorCode(str, Enum):
    PHASE_ERROR = "phase_error"
    VALIDATION_ERROR = "validation_error"
    CAPACITY_ERROR = "capacity_error"
    PAYMENT_ERROR = "payment_error"
    NOT_FOUND = "not_found"
    ACCESS_DENIED = "access_denied"
    INTERNAL_ERROR = "internal_error"


class RevealPhase(str, Enum):
    HIDDEN = "hidden"
    REVEALED = "revealed"


class PresalePhase(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


class IssuanceSource(str, Enum):
    PRESALE = "presale"
    PUBLIC = "public"
    RESERVE = "reserve"


class AccessDecision(str, Enum):
    ALLOW = "allow"
    DENY = "deny"
