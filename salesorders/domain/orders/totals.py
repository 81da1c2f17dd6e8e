from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, Protocol

from salesorders.domain.money import Money
from salesorders.domain.orders.pricing import percentage_key

DEFAULT_SETTLEMENT_CURRENCY = "EUR"

_HUNDRED = Decimal(100)


class TaxLike(Protocol):
    percentage: Decimal


class PricedLine(Protocol):
    quantity: int
    price: int
    price_currency: str

    @property
    def taxes(self) -> Iterable[TaxLike]: ...


@dataclass(frozen=True)
class OrderTotals:
    total: Money
    taxes: dict[Decimal, Money] = field(default_factory=dict)

    @property
    def price(self) -> str:
        return self.total.to_decimal_string()

    @property
    def price_currency(self) -> str:
        return self.total.currency

    def taxes_as_dict(self) -> dict[str, dict]:
        return {percentage_key(pct): amount.to_dict() for pct, amount in self.taxes.items()}


def line_amount(item: PricedLine) -> Money:
    return Money(item.price, item.price_currency).multiply(item.quantity)


def calculate_totals(
    items: Iterable[PricedLine],
    settlement_currency: str = DEFAULT_SETTLEMENT_CURRENCY,
) -> OrderTotals:
    """Fold an order's items into its aggregate price and tax summary.

    Items are visited in collection order. Every line amount is added to a
    total in the settlement currency, so an item in any other currency
    raises CurrencyMismatch and aborts the calculation. Each tax is charged on
    the line amount and accumulated per distinct percentage.
    """
    total = Money.zero(settlement_currency)
    taxes: dict[Decimal, Money] = {}

    for item in items:
        amount = line_amount(item)
        total = total.add(amount)

        for tax in item.taxes:
            pct = Decimal(tax.percentage)
            tax_amount = amount.multiply(pct / _HUNDRED)
            if pct not in taxes:
                taxes[pct] = tax_amount
            else:
                taxes[pct] = taxes[pct].add(tax_amount)

    return OrderTotals(total=total, taxes=taxes)


def taxes_from_dict(data: dict[str, dict] | None) -> dict[Decimal, Money]:
    return {Decimal(key): Money.from_dict(value) for key, value in (data or {}).items()}
