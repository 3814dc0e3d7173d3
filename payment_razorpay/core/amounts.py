"""
Conversion between major-unit amounts and gateway minor units.

Razorpay expects amounts in the smallest currency unit (paise for INR).
Only two-decimal currencies are supported.
"""
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

from payment_razorpay.core.exceptions import InvalidAmount

MINOR_UNITS_PER_MAJOR = Decimal(100)
_WHOLE = Decimal(1)
_CENTS = Decimal("0.01")

Amount = Union[Decimal, int, float, str]


def _as_decimal(amount: Amount) -> Decimal:
    # bool is an int subclass; True must not become 1.00
    if isinstance(amount, bool):
        raise InvalidAmount(f"Amount must be numeric, got {amount!r}")
    if isinstance(amount, Decimal):
        return amount
    if isinstance(amount, (int, float, str)):
        try:
            return Decimal(str(amount).strip())
        except InvalidOperation:
            raise InvalidAmount(f"Amount must be numeric, got {amount!r}") from None
    raise InvalidAmount(f"Amount must be numeric, got {type(amount).__name__}")


def to_minor_units(amount: Amount) -> int:
    """
    Convert a major-unit amount to gateway minor units.

    Rounds half up on the decimal representation, so 1.005 becomes 101.

    Args:
        amount: Amount in major units (e.g. rupees)

    Returns:
        int: Amount in minor units (e.g. paise)

    Raises:
        InvalidAmount: If amount is non-numeric, negative or non-finite
    """
    value = _as_decimal(amount)
    if not value.is_finite():
        raise InvalidAmount(f"Amount must be finite, got {amount!r}")
    if value < 0:
        raise InvalidAmount(f"Amount must not be negative, got {amount!r}")
    return int((value * MINOR_UNITS_PER_MAJOR).quantize(_WHOLE, rounding=ROUND_HALF_UP))


def to_major_units(minor: int) -> Decimal:
    """
    Convert gateway minor units to a major-unit Decimal with two places.

    Args:
        minor: Amount in minor units

    Returns:
        Decimal: Amount in major units

    Raises:
        InvalidAmount: If minor is not a non-negative integer
    """
    if isinstance(minor, bool) or not isinstance(minor, int):
        raise InvalidAmount(f"Minor-unit amount must be an integer, got {minor!r}")
    if minor < 0:
        raise InvalidAmount(f"Minor-unit amount must not be negative, got {minor!r}")
    return (Decimal(minor) / MINOR_UNITS_PER_MAJOR).quantize(_CENTS)
