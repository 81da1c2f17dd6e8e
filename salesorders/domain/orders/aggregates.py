from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from uuid import uuid4

from salesorders.domain.currencies import is_valid_currency
from salesorders.domain.errors import InvalidMoney
from salesorders.domain.money import Money
from salesorders.domain.orders.pricing import (
    parse_price,
    validate_percentage,
    validate_price,
    validate_quantity,
)
from salesorders.domain.orders.totals import (
    DEFAULT_SETTLEMENT_CURRENCY,
    OrderTotals,
    calculate_totals,
    line_amount,
)


def _new_id() -> str:
    return str(uuid4())


@dataclass(frozen=True)
class Tax:
    percentage: Decimal
    name: str = ""
    description: str | None = None
    id: str = field(default_factory=_new_id)

    def __post_init__(self) -> None:
        object.__setattr__(self, "percentage", validate_percentage(self.percentage))


@dataclass(eq=False)
class OrderItem:
    """A line of an order. Containment checks use identity, not field values."""

    offer: str
    quantity: int
    price: int
    price_currency: str
    name: str | None = None
    description: str | None = None
    product: str | None = None
    taxes: list[Tax] = field(default_factory=list)
    id: str = field(default_factory=_new_id)
    date_created: datetime | None = None
    date_modified: datetime | None = None
    _order: "Order | None" = field(default=None, init=False, repr=False)

    def __setattr__(self, name: str, value) -> None:
        if name == "quantity":
            value = validate_quantity(value)
        elif name == "price":
            value = validate_price(value)
        super().__setattr__(name, value)

    def __post_init__(self) -> None:
        if not is_valid_currency(self.price_currency):
            raise InvalidMoney(f"unknown currency code: {self.price_currency!r}")

    @classmethod
    def from_decimal_price(cls, offer: str, quantity: int, price: str, price_currency: str, **kwargs) -> "OrderItem":
        return cls(offer=offer, quantity=quantity, price=parse_price(price), price_currency=price_currency, **kwargs)

    def set_quantity(self, quantity: int) -> "OrderItem":
        self.quantity = quantity
        return self

    def set_price(self, price: int | str) -> "OrderItem":
        self.price = parse_price(price) if isinstance(price, str) else price
        return self

    def add_tax(self, tax: Tax) -> "OrderItem":
        if tax not in self.taxes:
            self.taxes.append(tax)
        return self

    def remove_tax(self, tax: Tax) -> "OrderItem":
        if tax in self.taxes:
            self.taxes.remove(tax)
        return self

    @property
    def order(self) -> "Order | None":
        """The owning order; changed only through ``Order.add_item`` and ``Order.remove_item``."""
        return self._order

    @property
    def unit_price(self) -> Money:
        return Money(self.price, self.price_currency)

    @property
    def subtotal(self) -> Money:
        return line_amount(self)


@dataclass(eq=False)
class Order:
    name: str
    target_organization: str
    customer: str | None = None
    description: str | None = None
    organization: str | None = None
    reference: str | None = None
    reference_id: int | None = None
    remark: str | None = None
    settlement_currency: str = DEFAULT_SETTLEMENT_CURRENCY
    id: str = field(default_factory=_new_id)
    items: list[OrderItem] = field(default_factory=list)
    price: str | None = None
    price_currency: str | None = None
    taxes: dict[Decimal, Money] = field(default_factory=dict)
    date_created: datetime | None = None
    date_modified: datetime | None = None

    def add_item(self, item: OrderItem) -> "Order":
        if any(existing is item for existing in self.items):
            return self
        if item.order is not None and item.order is not self:
            item.order.remove_item(item)
        self.items.append(item)
        item._order = self
        return self

    def remove_item(self, item: OrderItem) -> "Order":
        for index, existing in enumerate(self.items):
            if existing is item:
                del self.items[index]
                # the item may already have been handed to another order
                if item.order is self:
                    item._order = None
                break
        return self

    def calculate_totals(self) -> OrderTotals:
        totals = calculate_totals(self.items, settlement_currency=self.settlement_currency)
        self.price = totals.price
        self.price_currency = totals.price_currency
        self.taxes = dict(totals.taxes)
        return totals

    def pre_persist(self) -> None:
        self.calculate_totals()
