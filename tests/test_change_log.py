from __future__ import annotations


def _order_with_item(store, org_code):
    org = store.create_organization("Gemeente Utrecht", "002851234", org_code)
    vat = store.create_tax("VAT high", "21.00")
    return store.create_order(
        org.id,
        "my Order",
        "002851234",
        items=[
            {
                "offer": "http://example.org/offers/1",
                "quantity": 1,
                "price": 5000,
                "price_currency": "EUR",
                "tax_ids": [vat.id],
            }
        ],
    )


def test_create_is_logged_with_derived_fields(store, org_code):
    order = _order_with_item(store, org_code)

    rows = store.change_log("Order", order.id)

    assert [(row.action, row.version) for row in rows] == [("create", 1)]
    assert rows[0].username == "clerk-test"
    assert rows[0].data["name"] == "my Order"
    assert rows[0].data["price"] == "50.00"
    assert rows[0].data["taxes"] == {"21": {"amount": 1050, "currency": "EUR"}}


def test_updates_log_only_changed_fields(store, org_code):
    order = _order_with_item(store, org_code)
    item = order.items[0]

    store.update_order(order.id, name="renamed")
    store.update_item(item.id, quantity=2)

    order_log = store.change_log("Order", order.id)
    assert [row.version for row in order_log] == [1, 2, 3]
    assert order_log[1].data == {"name": "renamed"}
    assert order_log[2].data == {"price": "100.00", "taxes": {"21": {"amount": 2100, "currency": "EUR"}}}

    item_log = store.change_log("OrderItem", item.id)
    assert [(row.action, row.data) for row in item_log][1] == ("update", {"quantity": 2})


def test_removal_is_logged(store, org_code):
    order = _order_with_item(store, org_code)
    item_id = order.items[0].id

    store.remove_item(item_id)

    actions = [row.action for row in store.change_log("OrderItem", item_id)]
    assert actions == ["create", "remove"]

    trail = store.audit_trail("Order", order.id)
    assert [entry["action"] for entry in trail] == ["create", "update"]
    assert trail[1]["fields"] == ["price", "taxes"]
    assert trail[1]["username"] == "clerk-test"
