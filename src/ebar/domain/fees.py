"""Platform fee split.

The platform keeps a fixed share of every Connect payment; the rest is
transferred to the bar owner's account.

Rounding contract:
- The fee is rounded to a whole currency unit (ROUND_HALF_UP) in major units,
  and only then converted to minor units for Stripe. Fee amounts observed on
  existing payments depend on this order.
- owner_amount is amount - platform_fee, unrounded, so the two always add up
  to the gross amount exactly.
- Conversion to minor units rounds once, at the Stripe boundary.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

from ebar.domain.errors import InvalidAmountError

Numeric = Union[int, float, str, Decimal]

PLATFORM_FEE_RATE = Decimal("0.03")

_WHOLE_UNIT = Decimal("1")
_MINOR_UNITS_PER_MAJOR = Decimal("100")


@dataclass(frozen=True)
class FeeSplit:
    """Platform fee and owner payout in major currency units."""

    platform_fee: Decimal
    owner_amount: Decimal


def to_decimal(value: Numeric) -> Decimal:
    """Convert an incoming amount to Decimal.

    Floats go through str() so 19.99 stays 19.99.

    Raises:
        InvalidAmountError: For booleans, non-numeric and non-finite values.
    """
    if isinstance(value, bool):
        raise InvalidAmountError()
    if isinstance(value, float) and not math.isfinite(value):
        raise InvalidAmountError()
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError) as e:
        raise InvalidAmountError() from e
    if not result.is_finite():
        raise InvalidAmountError()
    return result


def require_positive(amount: Numeric | None) -> Decimal:
    """Return amount as Decimal, raising InvalidAmountError unless it is > 0."""
    if amount is None:
        raise InvalidAmountError()
    value = to_decimal(amount)
    if value <= 0:
        raise InvalidAmountError()
    return value


def compute_split(amount: Numeric, rate: Numeric = PLATFORM_FEE_RATE) -> FeeSplit:
    """Split a gross amount into platform fee and owner amount.

    Args:
        amount: Gross amount in major units, must be > 0.
        rate: Platform fee rate (default 3%).

    Returns:
        FeeSplit with platform_fee + owner_amount == amount.

    Raises:
        InvalidAmountError: If amount is missing, non-numeric or <= 0.
    """
    gross = require_positive(amount)
    fee = (gross * to_decimal(rate)).quantize(_WHOLE_UNIT, rounding=ROUND_HALF_UP)
    return FeeSplit(platform_fee=fee, owner_amount=gross - fee)


def to_minor_units(amount: Numeric) -> int:
    """Convert a major-unit amount to integer minor units (cents)."""
    cents = (to_decimal(amount) * _MINOR_UNITS_PER_MAJOR).quantize(
        _WHOLE_UNIT, rounding=ROUND_HALF_UP
    )
    return int(cents)


def from_minor_units(cents: int | None) -> Decimal:
    """Convert integer minor units back to major units."""
    return Decimal(cents or 0) / _MINOR_UNITS_PER_MAJOR


def format_amount(amount: Decimal) -> str:
    """Render an amount as a plain string: 97.00 -> "97", 19.40 -> "19.4"."""
    normalized = amount.normalize()
    if normalized == 0:
        return "0"
    return format(normalized, "f")
