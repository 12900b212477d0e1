from typing import Optional

from .enums import ErrorCode


class MintGateError(Exception):
    def __init__(self, message: str, code: Optional[ErrorCode] = None):
        super().__init__(message)
        self.code = code or ErrorCode.INTERNAL_ERROR


# ---------------------------------------------------------------------------
# Phase violations
# ---------------------------------------------------------------------------


class PhaseError(MintGateError):
    """Raised when an operation is called outside the phase that allows it."""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.PHASE_ERROR)


class AlreadyRevealed(PhaseError):
    def __init__(self, message: str = "Metadata is already revealed"):
        super().__init__(message)


class PresaleEnded(PhaseError):
    def __init__(self, message: str = "Presale has ended"):
        super().__init__(message)


class PresaleOpen(PhaseError):
    def __init__(self, message: str = "Public sale has not started; presale is still open"):
        super().__init__(message)


class ManualRevealUnsupported(PhaseError):
    def __init__(self, message: str = "Timed reveal gate cannot be revealed manually"):
        super().__init__(message)


class IllegalPhaseTransition(PhaseError):
    """Raised when a one-way phase is asked to move backwards."""

    def __init__(self, current: object, requested: object):
        self.current = current
        self.requested = requested
        super().__init__(f"Illegal phase transition: {current!r} -> {requested!r}")


# ---------------------------------------------------------------------------
# Validation failures
# ---------------------------------------------------------------------------


class ValidationError(MintGateError):
    """Raised when an input fails validation."""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.VALIDATION_ERROR)


class InvalidRevealTimestamp(ValidationError):
    def __init__(self, timestamp: int, now: int):
        self.timestamp = timestamp
        self.now = now
        super().__init__(f"Reveal timestamp {timestamp} is not after current time {now}")


class InvalidProof(ValidationError):
    def __init__(self, claimant: object):
        self.claimant = claimant
        super().__init__(f"Merkle proof does not verify for {claimant!r}")


class InvalidAmount(ValidationError):
    def __init__(self, amount: object):
        self.amount = amount
        super().__init__(f"Amount must be a positive integer, got {amount!r}")


# ---------------------------------------------------------------------------
# Capacity / limit failures
# ---------------------------------------------------------------------------


class CapacityError(MintGateError):
    """Raised when a request exceeds a cap, limit or remaining supply."""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.CAPACITY_ERROR)


class MintLimitExceeded(CapacityError):
    def __init__(self, requested: int, cap: int):
        self.requested = requested
        self.cap = cap
        super().__init__(f"Mint limit exceeded: requested {requested}, limit {cap}")


class AmountExceedsReserve(CapacityError):
    def __init__(self, requested: int, reserve: int):
        self.requested = requested
        self.reserve = reserve
        super().__init__(f"Amount {requested} exceeds remaining reserve {reserve}")


class SoldOut(CapacityError):
    def __init__(self, requested: int, available: int):
        self.requested = requested
        self.available = available
        super().__init__(f"Sold out: requested {requested}, available {available}")


# ---------------------------------------------------------------------------
# Payment failures
# ---------------------------------------------------------------------------


class PaymentError(MintGateError):
    """Raised when a payment or a custodied-value transfer fails."""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.PAYMENT_ERROR)


class IncorrectPrice(PaymentError):
    def __init__(self, expected: int, received: int):
        self.expected = expected
        self.received = received
        super().__init__(f"Incorrect payment: expected {expected}, received {received}")


class FundTransferFailed(PaymentError):
    def __init__(self, recipient: object, amount: int, reason: str = ""):
        self.recipient = recipient
        self.amount = amount
        self.reason = reason
        message = f"Transfer of {amount} to {recipient!r} failed"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


# ---------------------------------------------------------------------------
# Existence / access
# ---------------------------------------------------------------------------


class NotFound(MintGateError):
    def __init__(self, token_id: object):
        self.token_id = token_id
        super().__init__(f"Token {token_id!r} does not exist", ErrorCode.NOT_FOUND)


class AccessDenied(MintGateError):
    """Raised by the access guard when a caller may not run an operation."""

    def __init__(self, caller: object, operation: str, reason: str = ""):
        self.caller = caller
        self.operation = operation
        self.reason = reason
        super().__init__(
            f"Caller {caller!r} may not call '{operation}'" + (f": {reason}" if reason else ""),
            ErrorCode.ACCESS_DENIED,
        )
