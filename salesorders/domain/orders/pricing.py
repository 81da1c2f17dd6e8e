from __future__ import annotations

from decimal import Decimal, InvalidOperation, Overflow

from salesorders.domain.errors import InvalidPrice, InvalidQuantity, InvalidTaxPercentage
from salesorders.domain.money import MINOR_UNITS_PER_MAJOR

MAX_PRICE_DIGITS = 8  # decimal(8, 2)
MAX_QUANTITY = 2**31 - 1  # INTEGER column
CENT = Decimal("0.01")


def parse_price(value: str | Decimal) -> int:
    """Convert a decimal price such as ``"50.00"`` to integer minor units."""
    if isinstance(value, (bool, float)) or not isinstance(value, (str, Decimal)):
        raise InvalidPrice(f"price must be a decimal string, got {type(value).__name__}", price=value)
    try:
        dec = value if isinstance(value, Decimal) else Decimal(value.strip())
    except InvalidOperation as exc:
        raise InvalidPrice(f"price is not a decimal number: {value!r}", price=value) from exc
    if not dec.is_finite():
        raise InvalidPrice(f"price is not a decimal number: {value!r}", price=value)
    if dec < 0:
        raise InvalidPrice(f"price must not be negative: {value!r}", price=value)
    # size is checked on the exponent so huge inputs never reach the arithmetic
    if dec and dec.adjusted() >= MAX_PRICE_DIGITS - 2:
        raise InvalidPrice(f"price exceeds {MAX_PRICE_DIGITS} digits: {value!r}", price=value)
    try:
        if dec != dec.quantize(CENT):
            raise InvalidPrice(f"price has more than two decimals: {value!r}", price=value)
        return int(dec * MINOR_UNITS_PER_MAJOR)
    except (InvalidOperation, Overflow) as exc:
        raise InvalidPrice(f"price is not a decimal number: {value!r}", price=value) from exc


def validate_price(cents: object) -> int:
    if isinstance(cents, bool) or not isinstance(cents, int):
        raise InvalidPrice(f"price must be integer minor units, got {cents!r}", price=cents)
    if cents < 0:
        raise InvalidPrice(f"price must not be negative: {cents}", price=cents)
    if cents >= 10**MAX_PRICE_DIGITS:
        raise InvalidPrice(f"price exceeds {MAX_PRICE_DIGITS} digits: {cents}", price=cents)
    return cents


def validate_quantity(quantity: object) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise InvalidQuantity(f"quantity must be an integer, got {quantity!r}", quantity=quantity)
    if quantity < 0:
        raise InvalidQuantity(f"quantity must not be negative: {quantity}", quantity=quantity)
    if quantity > MAX_QUANTITY:
        raise InvalidQuantity(f"quantity exceeds {MAX_QUANTITY}: {quantity}", quantity=quantity)
    return quantity


def validate_percentage(percentage: Decimal | int | str) -> Decimal:
    if isinstance(percentage, (bool, float)):
        raise InvalidTaxPercentage(f"tax percentage must be decimal, got {percentage!r}", percentage=percentage)
    try:
        dec = percentage if isinstance(percentage, Decimal) else Decimal(percentage)
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise InvalidTaxPercentage(f"invalid tax percentage: {percentage!r}", percentage=percentage) from exc
    if not dec.is_finite() or dec < 0:
        raise InvalidTaxPercentage(f"tax percentage must be >= 0: {percentage!r}", percentage=percentage)
    return dec


def percentage_key(percentage: Decimal) -> str:
    """Stable text key for a percentage: ``21.00`` -> ``"21"``, ``9.50`` -> ``"9.5"``."""
    return format(percentage.normalize(), "f")
