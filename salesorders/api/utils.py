from __future__ import annotations

from datetime import datetime, timezone

from salesorders.domain.money import cents_to_amount
from salesorders.persistence.models import (
    ChangeLogModel,
    OrderItemModel,
    OrderModel,
    OrganizationModel,
    TaxModel,
)


def parse_datetime(text: str) -> datetime:
    value = datetime.fromisoformat(text.replace("Z", "+00:00"))
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def iso(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def organization_to_dict(row: OrganizationModel) -> dict:
    return {"id": row.id, "name": row.name, "rsin": row.rsin, "short_code": row.short_code}


def tax_to_dict(row: TaxModel) -> dict:
    return {
        "id": row.id,
        "name": row.name,
        "description": row.description,
        "percentage": f"{row.percentage:.2f}",
    }


def item_to_dict(row: OrderItemModel) -> dict:
    return {
        "id": row.id,
        "order": row.order_id,
        "name": row.name,
        "description": row.description,
        "offer": row.offer,
        "product": row.product,
        "quantity": row.quantity,
        "price": f"{cents_to_amount(row.price):.2f}",
        "price_currency": row.price_currency,
        "taxes": [tax_to_dict(tax) for tax in row.taxes],
        "date_created": iso(row.date_created),
        "date_modified": iso(row.date_modified),
    }


def order_to_dict(row: OrderModel) -> dict:
    return {
        "id": row.id,
        "name": row.name,
        "description": row.description,
        "reference": row.reference,
        "target_organization": row.target_organization,
        "customer": row.customer,
        "organization": organization_to_dict(row.organization),
        "price": row.price,
        "price_currency": row.price_currency,
        "taxes": {
            key: {"amount": f"{cents_to_amount(int(value['amount'])):.2f}", "currency": value["currency"]}
            for key, value in (row.taxes or {}).items()
        },
        "items": [item_to_dict(item) for item in row.items],
        "remark": row.remark,
        "date_created": iso(row.date_created),
        "date_modified": iso(row.date_modified),
    }


def change_log_to_dict(row: ChangeLogModel) -> dict:
    return {
        "version": row.version,
        "action": row.action,
        "object_class": row.object_class,
        "object_id": row.object_id,
        "data": row.data,
        "username": row.username,
        "logged_at": iso(row.logged_at),
    }


def audit_entry_to_dict(entry: dict) -> dict:
    return {**entry, "logged_at": iso(entry["logged_at"])}
