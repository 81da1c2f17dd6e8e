from __future__ import annotations

from decimal import Decimal

import pytest

from salesorders.domain.errors import InvalidPrice, InvalidReference
from salesorders.domain.orders import format_reference, parse_price, parse_reference
from salesorders.domain.orders.pricing import percentage_key


@pytest.mark.parametrize(
    ("text", "cents"),
    [("50.00", 5000), ("50", 5000), ("0.5", 50), (" 19.99 ", 1999), ("123456.78", 12345678)],
)
def test_parse_price_to_minor_units(text, cents):
    assert parse_price(text) == cents


@pytest.mark.parametrize("bad", ["50.005", "-1.00", "abc", "", "NaN", "1234567.00", 12.5, 1250, "1E+999999", "1e5000", "1E-1000000"])
def test_parse_price_rejects(bad):
    with pytest.raises(InvalidPrice):
        parse_price(bad)


def test_percentage_keys_are_normalized():
    assert percentage_key(Decimal("21.00")) == "21"
    assert percentage_key(Decimal("9.50")) == "9.5"
    assert percentage_key(Decimal("0.00")) == "0"
    assert percentage_key(Decimal("100.00")) == "100"


def test_reference_format_and_parse():
    reference = format_reference("6666", 2019, 12)

    assert reference == "6666-2019-0000000012"
    assert parse_reference(reference) == ("6666", 2019, 12)
    assert format_reference("ABCD", 2024, 1) == "ABCD-2024-0000000001"


def test_reference_rejects_malformed_input():
    with pytest.raises(InvalidReference):
        format_reference("66", 2019, 1)
    with pytest.raises(InvalidReference):
        format_reference("6666", 2019, 0)
    with pytest.raises(InvalidReference):
        parse_reference("6666/2019/12")
