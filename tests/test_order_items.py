from __future__ import annotations

from decimal import Decimal

import pytest

from salesorders.domain.errors import InvalidMoney, InvalidPrice, InvalidQuantity, InvalidTaxPercentage
from salesorders.domain.money import Money
from salesorders.domain.orders import Order, OrderItem, Tax


def _item(**overrides) -> OrderItem:
    fields = {
        "offer": "http://example.org/offers/1",
        "quantity": 1,
        "price": 5000,
        "price_currency": "EUR",
    }
    fields.update(overrides)
    return OrderItem(**fields)


def test_add_item_sets_back_reference_once():
    order = Order(name="o", target_organization="002851234")
    item = _item()

    order.add_item(item)
    order.add_item(item)

    assert order.items == [item]
    assert item.order is order


def test_containment_is_identity_based():
    order = Order(name="o", target_organization="002851234")
    first, second = _item(), _item()

    order.add_item(first).add_item(second)

    assert len(order.items) == 2


def test_remove_absent_item_is_noop():
    order = Order(name="o", target_organization="002851234")
    kept, stranger = _item(), _item()
    order.add_item(kept)

    order.remove_item(stranger)

    assert order.items == [kept]
    assert stranger.order is None


def test_remove_clears_back_reference():
    order = Order(name="o", target_organization="002851234")
    item = _item()
    order.add_item(item)

    order.remove_item(item)

    assert order.items == []
    assert item.order is None


def test_removing_moved_item_from_former_order_keeps_new_owner():
    first = Order(name="a", target_organization="002851234")
    second = Order(name="b", target_organization="002851234")
    item = _item()
    first.add_item(item)
    second.add_item(item)

    first.remove_item(item)

    assert first.items == []
    assert second.items == [item]
    assert item.order is second


def test_back_reference_is_read_only():
    order = Order(name="o", target_organization="002851234")
    item = _item()

    with pytest.raises(AttributeError):
        item.order = order

    assert item.order is None
    assert order.items == []


def test_adding_to_another_order_moves_the_item():
    first = Order(name="a", target_organization="002851234")
    second = Order(name="b", target_organization="002851234")
    item = _item()
    first.add_item(item)

    second.add_item(item)

    assert first.items == []
    assert second.items == [item]
    assert item.order is second


def test_quantity_and_price_rejected_at_mutation():
    with pytest.raises(InvalidQuantity):
        _item(quantity=-1)
    with pytest.raises(InvalidQuantity):
        _item(quantity=2**31)
    with pytest.raises(InvalidPrice):
        _item(price=10**8)

    item = _item()
    with pytest.raises(InvalidQuantity):
        item.set_quantity(-3)
    with pytest.raises(InvalidPrice):
        item.set_price("twelve")
    with pytest.raises(InvalidPrice):
        item.set_price(-1)
    assert item.quantity == 1
    assert item.price == 5000

    with pytest.raises(InvalidQuantity):
        item.quantity = -1
    with pytest.raises(InvalidPrice):
        item.price = "12.50"
    assert item.quantity == 1
    assert item.price == 5000

    item.set_quantity(4).set_price("12.50")
    assert item.subtotal == Money(5000, "EUR")
    assert item.unit_price == Money(1250, "EUR")


def test_item_requires_known_currency():
    with pytest.raises(InvalidMoney):
        _item(price_currency="EURO")


def test_tax_lines():
    item = _item()
    tax = Tax(percentage=Decimal("21"))

    item.add_tax(tax).add_tax(tax)
    assert item.taxes == [tax]

    item.remove_tax(tax).remove_tax(tax)
    assert item.taxes == []

    with pytest.raises(InvalidTaxPercentage):
        Tax(percentage=Decimal("-0.01"))
    assert Tax(percentage="9.5").percentage == Decimal("9.5")
