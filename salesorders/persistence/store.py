from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Iterable

from sqlalchemy import Select, asc, desc, func, select
from sqlalchemy.orm import Session

from salesorders.core.config import get_settings
from salesorders.domain.errors import (
    CurrencyMismatch,
    OrderItemNotFound,
    OrderNotFound,
    OrganizationNotFound,
    TaxNotFound,
)
from salesorders.domain.orders.reference import format_reference
from salesorders.domain.orders.totals import OrderTotals
from salesorders.persistence.locks import order_locks
from salesorders.persistence.models import (
    ChangeLogModel,
    OrderItemModel,
    OrderModel,
    OrganizationModel,
    TaxModel,
)

logger = logging.getLogger(__name__)

ORDER_FIELDS = {"name", "description", "target_organization", "customer", "remark"}
ITEM_FIELDS = {"name", "description", "offer", "product", "quantity", "price", "price_currency"}
ORDERABLE_COLUMNS = {
    "date_created": OrderModel.date_created,
    "date_modified": OrderModel.date_modified,
    "name": OrderModel.name,
    "reference": OrderModel.reference,
}
ITEM_ORDERABLE_COLUMNS = {
    "date_created": OrderItemModel.date_created,
    "date_modified": OrderItemModel.date_modified,
    "name": OrderItemModel.name,
    "position": OrderItemModel.position,
    "price": OrderItemModel.price,
    "quantity": OrderItemModel.quantity,
}


class OrderStore:
    def __init__(self, session: Session):
        self.session = session
        self.settlement_currency = get_settings().settlement_currency

    # organizations and taxes

    def create_organization(self, name: str, rsin: str, short_code: str) -> OrganizationModel:
        row = OrganizationModel(name=name, rsin=rsin, short_code=short_code)
        self.session.add(row)
        self.session.flush()
        return row

    def get_organization(self, organization_id: str) -> OrganizationModel:
        row = self.session.get(OrganizationModel, organization_id)
        if row is None:
            raise OrganizationNotFound("organization does not exist", object_id=organization_id)
        return row

    def list_organizations(self) -> list[OrganizationModel]:
        return list(self.session.scalars(select(OrganizationModel).order_by(OrganizationModel.name)).all())

    def create_tax(self, name: str, percentage: Decimal | str, description: str | None = None) -> TaxModel:
        row = TaxModel(name=name, percentage=percentage, description=description)
        self.session.add(row)
        self.session.flush()
        return row

    def get_tax(self, tax_id: str) -> TaxModel:
        row = self.session.get(TaxModel, tax_id)
        if row is None:
            raise TaxNotFound("tax does not exist", object_id=tax_id)
        return row

    def list_taxes(self) -> list[TaxModel]:
        return list(self.session.scalars(select(TaxModel).order_by(TaxModel.percentage.asc())).all())

    # orders

    def _next_reference_id(self, organization: OrganizationModel, year: int) -> int:
        prefix = f"{organization.short_code}-{year:04d}-"
        current = self.session.scalar(
            select(func.max(OrderModel.reference_id))
            .where(OrderModel.organization_id == organization.id)
            .where(OrderModel.reference.like(f"{prefix}%"))
        )
        return (current or 0) + 1

    def create_order(
        self,
        organization_id: str,
        name: str,
        target_organization: str,
        customer: str | None = None,
        description: str | None = None,
        remark: str | None = None,
        items: Iterable[dict[str, Any]] = (),
        now: datetime | None = None,
    ) -> OrderModel:
        organization = self.get_organization(organization_id)
        year = (now or datetime.now(timezone.utc)).year
        reference_id = self._next_reference_id(organization, year)

        order = OrderModel(
            organization=organization,
            name=name,
            target_organization=target_organization,
            customer=customer,
            description=description,
            remark=remark,
            reference_id=reference_id,
            reference=format_reference(organization.short_code, year, reference_id),
            taxes={},
        )
        for item_fields in items:
            order.add_item(self._build_item(**item_fields))
        self.session.add(order)
        self.session.flush()
        logger.info(
            "order created: order_id=%s reference=%s items=%s price=%s %s",
            order.id,
            order.reference,
            len(order.items),
            order.price,
            order.price_currency,
        )
        return order

    def get_order(self, order_id: str, for_update: bool = False) -> OrderModel:
        stmt = select(OrderModel).where(OrderModel.id == order_id)
        if for_update:
            stmt = stmt.with_for_update(of=OrderModel)
        row = self.session.scalar(stmt)
        if row is None:
            raise OrderNotFound("order does not exist", object_id=order_id)
        return row

    def list_orders(
        self,
        reference: str | None = None,
        target_organization: str | None = None,
        name: str | None = None,
        created_after: datetime | None = None,
        created_before: datetime | None = None,
        modified_after: datetime | None = None,
        modified_before: datetime | None = None,
        order_by: str = "date_created",
        descending: bool = False,
        limit: int = 100,
        offset: int = 0,
    ) -> list[OrderModel]:
        column = ORDERABLE_COLUMNS.get(order_by)
        if column is None:
            raise ValueError(f"cannot order by {order_by!r}")
        stmt: Select[tuple[OrderModel]] = select(OrderModel)
        if reference is not None:
            stmt = stmt.where(OrderModel.reference == reference)
        if target_organization is not None:
            stmt = stmt.where(OrderModel.target_organization == target_organization)
        if name:
            stmt = stmt.where(OrderModel.name.ilike(f"%{name}%"))
        if created_after is not None:
            stmt = stmt.where(OrderModel.date_created >= created_after)
        if created_before is not None:
            stmt = stmt.where(OrderModel.date_created < created_before)
        if modified_after is not None:
            stmt = stmt.where(OrderModel.date_modified >= modified_after)
        if modified_before is not None:
            stmt = stmt.where(OrderModel.date_modified < modified_before)
        stmt = stmt.order_by(desc(column) if descending else asc(column), OrderModel.id.asc())
        return list(self.session.scalars(stmt.limit(limit).offset(offset)).all())

    def update_order(self, order_id: str, **changes: Any) -> OrderModel:
        unknown = set(changes) - ORDER_FIELDS
        if unknown:
            raise ValueError(f"order fields are not writable: {', '.join(sorted(unknown))}")
        with order_locks.hold(order_id):
            order = self.get_order(order_id, for_update=True)
            for key, value in changes.items():
                setattr(order, key, value)
            self.session.flush()
        return order

    def delete_order(self, order_id: str) -> None:
        with order_locks.hold(order_id):
            order = self.get_order(order_id, for_update=True)
            self.session.delete(order)
            self.session.flush()
        logger.info("order deleted: order_id=%s", order_id)

    def recalculate(self, order_id: str) -> OrderTotals:
        with order_locks.hold(order_id):
            order = self.get_order(order_id, for_update=True)
            totals = order.calculate_totals(self.settlement_currency)
            self.session.flush()
        return totals

    # items

    def _check_currency(self, price_currency: str) -> None:
        if price_currency != self.settlement_currency:
            raise CurrencyMismatch(
                message="order items must be priced in the settlement currency",
                left=self.settlement_currency,
                right=price_currency,
            )

    def _resolve_taxes(self, tax_ids: Iterable[str]) -> list[TaxModel]:
        return [self.get_tax(tax_id) for tax_id in tax_ids]

    def _build_item(self, tax_ids: Iterable[str] = (), **fields: Any) -> OrderItemModel:
        unknown = set(fields) - ITEM_FIELDS
        if unknown:
            raise ValueError(f"order item fields are not writable: {', '.join(sorted(unknown))}")
        self._check_currency(fields.get("price_currency", ""))
        item = OrderItemModel(**fields)
        for tax in self._resolve_taxes(tax_ids):
            item.add_tax(tax)
        return item

    def get_item(self, item_id: str) -> OrderItemModel:
        row = self.session.get(OrderItemModel, item_id)
        if row is None:
            raise OrderItemNotFound("order item does not exist", object_id=item_id)
        return row

    def list_items(
        self,
        order_id: str | None = None,
        offer: str | None = None,
        name: str | None = None,
        created_after: datetime | None = None,
        created_before: datetime | None = None,
        modified_after: datetime | None = None,
        modified_before: datetime | None = None,
        order_by: str = "date_created",
        descending: bool = False,
        limit: int = 100,
        offset: int = 0,
    ) -> list[OrderItemModel]:
        column = ITEM_ORDERABLE_COLUMNS.get(order_by)
        if column is None:
            raise ValueError(f"cannot order by {order_by!r}")
        stmt: Select[tuple[OrderItemModel]] = select(OrderItemModel)
        if order_id is not None:
            stmt = stmt.where(OrderItemModel.order_id == order_id)
        if offer is not None:
            stmt = stmt.where(OrderItemModel.offer == offer)
        if name:
            stmt = stmt.where(OrderItemModel.name.ilike(f"%{name}%"))
        if created_after is not None:
            stmt = stmt.where(OrderItemModel.date_created >= created_after)
        if created_before is not None:
            stmt = stmt.where(OrderItemModel.date_created < created_before)
        if modified_after is not None:
            stmt = stmt.where(OrderItemModel.date_modified >= modified_after)
        if modified_before is not None:
            stmt = stmt.where(OrderItemModel.date_modified < modified_before)
        stmt = stmt.order_by(desc(column) if descending else asc(column), OrderItemModel.id.asc())
        return list(self.session.scalars(stmt.limit(limit).offset(offset)).all())

    def add_item(self, order_id: str, **item_fields: Any) -> OrderItemModel:
        with order_locks.hold(order_id):
            order = self.get_order(order_id, for_update=True)
            item = self._build_item(**item_fields)
            order.add_item(item)
            self.session.flush()
        return item

    def update_item(self, item_id: str, tax_ids: Iterable[str] | None = None, **changes: Any) -> OrderItemModel:
        unknown = set(changes) - ITEM_FIELDS
        if unknown:
            raise ValueError(f"order item fields are not writable: {', '.join(sorted(unknown))}")
        item = self.get_item(item_id)
        with order_locks.hold(item.order_id):
            self.get_order(item.order_id, for_update=True)
            if "price_currency" in changes:
                self._check_currency(changes["price_currency"])
            for key, value in changes.items():
                setattr(item, key, value)
            if tax_ids is not None:
                wanted = self._resolve_taxes(tax_ids)
                for tax in list(item.taxes):
                    if tax not in wanted:
                        item.remove_tax(tax)
                for tax in wanted:
                    item.add_tax(tax)
            self.session.flush()
        return item

    def remove_item(self, item_id: str) -> None:
        item = self.get_item(item_id)
        order_id = item.order_id
        with order_locks.hold(order_id):
            order = self.get_order(order_id, for_update=True)
            order.remove_item(item)
            self.session.delete(item)
            self.session.flush()

    # change history

    def change_log(self, object_class: str, object_id: str) -> list[ChangeLogModel]:
        stmt = (
            select(ChangeLogModel)
            .where(ChangeLogModel.object_class == object_class)
            .where(ChangeLogModel.object_id == object_id)
            .order_by(ChangeLogModel.version.asc())
        )
        return list(self.session.scalars(stmt).all())

    def audit_trail(self, object_class: str, object_id: str) -> list[dict]:
        return [
            {
                "version": row.version,
                "action": row.action,
                "username": row.username,
                "logged_at": row.logged_at,
                "fields": sorted((row.data or {}).keys()),
            }
            for row in self.change_log(object_class, object_id)
        ]