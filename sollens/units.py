"""
Conversion between the display unit (SOL) and the smallest unit (lamports).

All arithmetic goes through Decimal so that amounts at the smallest-unit
boundary convert exactly.
"""
from decimal import Decimal, InvalidOperation, Overflow, ROUND_HALF_UP
from typing import Union

from .exceptions import ValidationError

LAMPORTS_DECIMALS = 9
LAMPORTS_PER_SOL = 10 ** LAMPORTS_DECIMALS
MAX_LAMPORTS = 2 ** 64 - 1

Amount = Union[str, Decimal, int, float]


def parse_amount(amount: Amount) -> Decimal:
    """
    Parse a user-supplied amount into a finite Decimal.

    Floats are converted through their shortest repr, so 0.1 becomes
    Decimal("0.1") rather than its binary expansion.

    Raises:
        ValidationError: If the amount is missing, not numeric, or not finite
    """
    if amount is None or isinstance(amount, bool):
        raise ValidationError("Amount is required")
    if isinstance(amount, str):
        amount = amount.strip()
        if not amount:
            raise ValidationError("Amount is required")
    try:
        value = Decimal(str(amount)) if isinstance(amount, float) else Decimal(amount)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"Amount is not a valid number: {amount!r}")
    if not value.is_finite():
        raise ValidationError(f"Amount must be finite, got {amount!r}")
    return value


def to_smallest_unit(amount: Amount, decimals: int = LAMPORTS_DECIMALS) -> int:
    """
    Convert a display-unit amount to an integer number of smallest units.

    The amount is scaled by 10**decimals and rounded half-up to the nearest
    integer.

    Args:
        amount: Amount in display units (e.g. "1.5" SOL)
        decimals: Unit exponent of the ledger (9 for SOL)

    Returns:
        Integer amount in smallest units

    Raises:
        ValidationError: If the amount cannot be parsed or is too large to scale
    """
    value = parse_amount(amount)
    try:
        scaled = value.scaleb(decimals)
        return int(scaled.to_integral_value(rounding=ROUND_HALF_UP))
    except (Overflow, InvalidOperation):
        raise ValidationError(f"Amount is out of range: {amount!r}")


def to_display_unit(smallest: int, decimals: int = LAMPORTS_DECIMALS) -> Decimal:
    """Convert an integer smallest-unit amount to display units."""
    return Decimal(smallest).scaleb(-decimals)
