from salesorders.domain.orders.aggregates import Order, OrderItem, Tax
from salesorders.domain.orders.pricing import parse_price
from salesorders.domain.orders.reference import format_reference, parse_reference
from salesorders.domain.orders.totals import (
    DEFAULT_SETTLEMENT_CURRENCY,
    OrderTotals,
    calculate_totals,
)

__all__ = [
    "DEFAULT_SETTLEMENT_CURRENCY",
    "Order",
    "OrderItem",
    "OrderTotals",
    "Tax",
    "calculate_totals",
    "format_reference",
    "parse_price",
    "parse_reference",
]
