from __future__ import annotations

import json

import pytest

import salesorders.persistence.pg as pg
from salesorders.cli import main
from salesorders.core.config import Settings
from salesorders.persistence.store import OrderStore


def test_settings_reject_default_keys_outside_dev():
    with pytest.raises(ValueError, match="SO_CLERK_API_KEY"):
        Settings(env="prod")

    settings = Settings(
        env="prod",
        clerk_api_key="a",
        auditor_api_key="b",
        system_api_key="c",
    )
    assert settings.settlement_currency == "EUR"


def test_settlement_currency_must_be_iso_code():
    assert Settings(settlement_currency="usd").settlement_currency == "USD"
    with pytest.raises(ValueError):
        Settings(settlement_currency="EURO")


def test_cli_recalc_and_show(org_code, capsys):
    with pg.session_scope() as session:
        store = OrderStore(session)
        org = store.create_organization("Gemeente Utrecht", "002851234", org_code)
        vat = store.create_tax("VAT high", "21.00")
        order = store.create_order(
            org.id,
            "cli order",
            "002851234",
            items=[
                {
                    "offer": "http://example.org/offers/1",
                    "quantity": 2,
                    "price": 5000,
                    "price_currency": "EUR",
                    "tax_ids": [vat.id],
                }
            ],
        )
        order_id = order.id

    assert main(["orders", "recalc", order_id]) == 0
    recalc = json.loads(capsys.readouterr().out)
    assert recalc == {
        "order_id": order_id,
        "price": "100.00",
        "price_currency": "EUR",
        "taxes": {"21": {"amount": 2100, "currency": "EUR"}},
    }

    assert main(["orders", "show", order_id]) == 0
    shown = json.loads(capsys.readouterr().out)
    assert shown["price"] == "100.00"
    assert shown["taxes"] == {"21": {"amount": "21.00", "currency": "EUR"}}


def test_cli_unknown_order(capsys):
    assert main(["orders", "show", "missing"]) == 1
    assert "order_not_found" in capsys.readouterr().err
