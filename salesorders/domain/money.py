from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from salesorders.domain.currencies import is_valid_currency
from salesorders.domain.errors import CurrencyMismatch, InvalidMoney

MINOR_UNITS_PER_MAJOR = 100
ROUNDING = ROUND_HALF_UP

_TWO_PLACES = Decimal("0.01")


def cents_to_amount(cents: int) -> Decimal:
    return (Decimal(cents) / Decimal(MINOR_UNITS_PER_MAJOR)).quantize(_TWO_PLACES)


def _as_decimal(factor: int | Decimal | str) -> Decimal:
    # Floats carry binary rounding error into billed amounts.
    if isinstance(factor, (float, bool)):
        raise TypeError(f"unsupported money factor type: {type(factor).__name__}")
    try:
        value = factor if isinstance(factor, Decimal) else Decimal(factor)
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise InvalidMoney(f"invalid money factor: {factor!r}") from exc
    if not value.is_finite():
        raise InvalidMoney(f"invalid money factor: {factor!r}")
    return value


@dataclass(frozen=True)
class Money:
    """Fixed-point amount in integer minor units, tagged with an ISO 4217 code.

    Every multiplication is computed exactly and rounded once to the nearest
    minor unit with ROUND_HALF_UP (ties away from zero).
    """

    amount: int
    currency: str

    def __post_init__(self) -> None:
        if isinstance(self.amount, bool) or not isinstance(self.amount, int):
            raise InvalidMoney(f"amount must be integer minor units, got {self.amount!r}")
        if not is_valid_currency(self.currency):
            raise InvalidMoney(f"unknown currency code: {self.currency!r}")

    @staticmethod
    def zero(currency: str) -> "Money":
        return Money(0, currency)

    @staticmethod
    def of(amount: Decimal | int | str, currency: str) -> "Money":
        """Build from a major-unit amount such as ``"50.00"``."""
        major = _as_decimal(amount)
        minor = (major * MINOR_UNITS_PER_MAJOR).quantize(Decimal(1), rounding=ROUNDING)
        return Money(int(minor), currency)

    def add(self, other: "Money") -> "Money":
        self._assert_same_currency(other)
        return Money(self.amount + other.amount, self.currency)

    def multiply(self, factor: int | Decimal | str) -> "Money":
        product = Decimal(self.amount) * _as_decimal(factor)
        return Money(int(product.quantize(Decimal(1), rounding=ROUNDING)), self.currency)

    def is_zero(self) -> bool:
        return self.amount == 0

    def to_decimal(self) -> Decimal:
        return cents_to_amount(self.amount)

    def to_decimal_string(self) -> str:
        return f"{self.to_decimal():.2f}"

    def to_dict(self) -> dict:
        return {"amount": self.amount, "currency": self.currency}

    @staticmethod
    def from_dict(data: dict) -> "Money":
        return Money(int(data["amount"]), str(data["currency"]))

    def __add__(self, other: "Money") -> "Money":
        return self.add(other)

    def __mul__(self, factor: int | Decimal | str) -> "Money":
        return self.multiply(factor)

    def __str__(self) -> str:
        return f"{self.to_decimal_string()} {self.currency}"

    def _assert_same_currency(self, other: "Money") -> None:
        if self.currency != other.currency:
            raise CurrencyMismatch(
                message="money values of different currencies cannot be combined",
                left=self.currency,
                right=other.currency,
            )
