from typing import Any, Union

from .errors import InvalidAmount, ValidationError


def validate_amount(amount: Any) -> int:
    # bool is an int subclass; True is not a quantity
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise InvalidAmount(amount)
    return amount


def validate_non_negative(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError(f"{name} must be a non-negative integer, got {value!r}")
    return value


def validate_identity(identity: Union[str, bytes]) -> Union[str, bytes]:
    if isinstance(identity, str):
        if not identity.strip():
            raise ValidationError("Identity must be a non-empty string")
        return identity
    if isinstance(identity, bytes):
        if not identity:
            raise ValidationError("Identity must be non-empty bytes")
        return identity
    raise ValidationError(f"Identity must be str or bytes, got {type(identity).__name__}")


def validate_uri(name: str, uri: Any) -> str:
    if not isinstance(uri, str):
        raise ValidationError(f"{name} must be a string")
    return uri
