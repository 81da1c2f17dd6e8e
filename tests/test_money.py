from __future__ import annotations

import dataclasses
from decimal import Decimal

import pytest

from salesorders.domain.errors import CurrencyMismatch, InvalidMoney
from salesorders.domain.money import Money


def test_add_same_currency_returns_new_value():
    a = Money(1000, "EUR")
    b = Money(250, "EUR")

    total = a.add(b)

    assert total == Money(1250, "EUR")
    assert a == Money(1000, "EUR")
    assert a + b == total


def test_add_mismatched_currency_always_fails():
    with pytest.raises(CurrencyMismatch) as excinfo:
        Money(100, "EUR").add(Money(100, "USD"))
    assert excinfo.value.left == "EUR"
    assert excinfo.value.right == "USD"

    with pytest.raises(CurrencyMismatch):
        Money.zero("USD").add(Money.zero("EUR"))


def test_multiply_rounds_half_up_to_minor_unit():
    assert Money(1050, "EUR").multiply(Decimal("0.21")) == Money(221, "EUR")  # 220.5
    assert Money(5, "EUR").multiply("0.5") == Money(3, "EUR")
    assert Money(-5, "EUR").multiply("0.5") == Money(-3, "EUR")
    assert Money(4, "EUR").multiply("0.5") == Money(2, "EUR")
    assert Money(5000, "EUR").multiply(2) == Money(10000, "EUR")


def test_multiply_rejects_floats():
    with pytest.raises(TypeError):
        Money(100, "EUR").multiply(0.21)


def test_zero_is_additive_identity():
    value = Money(4321, "EUR")
    assert Money.zero("EUR").add(value) == value
    assert Money.zero("EUR").is_zero()


def test_invalid_money_values():
    with pytest.raises(InvalidMoney):
        Money(1.5, "EUR")
    with pytest.raises(InvalidMoney):
        Money(True, "EUR")
    with pytest.raises(InvalidMoney):
        Money(100, "eur")
    with pytest.raises(InvalidMoney):
        Money(100, "ABC")


def test_money_is_immutable():
    value = Money(100, "EUR")
    with pytest.raises(dataclasses.FrozenInstanceError):
        value.amount = 200


def test_decimal_formatting():
    assert Money(10000, "EUR").to_decimal_string() == "100.00"
    assert Money(5, "EUR").to_decimal_string() == "0.05"
    assert Money(0, "EUR").to_decimal_string() == "0.00"
    assert Money(-150, "EUR").to_decimal_string() == "-1.50"
    assert str(Money(2100, "EUR")) == "21.00 EUR"


def test_of_major_units_and_dict_snapshot():
    value = Money.of("50.00", "EUR")
    assert value == Money(5000, "EUR")
    assert Money.from_dict(value.to_dict()) == value
