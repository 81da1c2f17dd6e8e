from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    BigInteger,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Table,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship, validates
from sqlalchemy.types import JSON

from salesorders.domain.money import Money
from salesorders.domain.orders.pricing import validate_percentage, validate_price, validate_quantity
from salesorders.domain.orders.totals import OrderTotals, calculate_totals, line_amount, taxes_from_dict


def _json_type():
    return JSON().with_variant(JSONB(astext_type=Text()), "postgresql")


def _new_id() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    pass


order_item_taxes = Table(
    "order_item_taxes",
    Base.metadata,
    Column("order_item_id", String(36), ForeignKey("order_items.id", ondelete="CASCADE"), primary_key=True),
    Column("tax_id", String(36), ForeignKey("taxes.id", ondelete="CASCADE"), primary_key=True),
)


class OrganizationModel(Base):
    __tablename__ = "organizations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    rsin: Mapped[str] = mapped_column(String(255), nullable=False)
    short_code: Mapped[str] = mapped_column(String(4), unique=True, nullable=False)

    orders: Mapped[list["OrderModel"]] = relationship(back_populates="organization")


class TaxModel(Base):
    __tablename__ = "taxes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(String(2550), nullable=True)
    percentage: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)

    @validates("percentage")
    def _validate_percentage(self, _key, value):
        return validate_percentage(value)


class OrderModel(Base):
    __tablename__ = "orders"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(String(2550), nullable=True)
    reference: Mapped[Optional[str]] = mapped_column(String(255), unique=True, nullable=True)
    reference_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    target_organization: Mapped[str] = mapped_column(String(255), nullable=False)
    customer: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    organization_id: Mapped[str] = mapped_column(ForeignKey("organizations.id"), nullable=False)
    price: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    price_currency: Mapped[Optional[str]] = mapped_column(String(3), nullable=True)
    taxes: Mapped[dict] = mapped_column(_json_type(), nullable=False, default=dict)
    remark: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    date_created: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    date_modified: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    organization: Mapped[OrganizationModel] = relationship(back_populates="orders", lazy="joined", innerjoin=True)
    items: Mapped[list["OrderItemModel"]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItemModel.position",
        lazy="selectin",
    )

    def add_item(self, item: "OrderItemModel") -> "OrderModel":
        if any(existing is item for existing in self.items):
            return self
        item.position = max((existing.position for existing in self.items), default=-1) + 1
        # back_populates sets item.order and detaches it from a previous order
        self.items.append(item)
        return self

    def remove_item(self, item: "OrderItemModel") -> "OrderModel":
        if any(existing is item for existing in self.items):
            self.items.remove(item)
        return self

    def calculate_totals(self, settlement_currency: str) -> OrderTotals:
        totals = calculate_totals(self.items, settlement_currency=settlement_currency)
        if self.price != totals.price:
            self.price = totals.price
        if self.price_currency != totals.price_currency:
            self.price_currency = totals.price_currency
        taxes = totals.taxes_as_dict()
        if self.taxes != taxes:
            self.taxes = taxes
        return totals

    @property
    def tax_summary(self) -> dict[Decimal, Money]:
        return taxes_from_dict(self.taxes)


class OrderItemModel(Base):
    __tablename__ = "order_items"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    order_id: Mapped[str] = mapped_column(ForeignKey("orders.id", ondelete="CASCADE"), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(String(2550), nullable=True)
    offer: Mapped[str] = mapped_column(String(255), nullable=False)
    product: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    price: Mapped[int] = mapped_column(BigInteger, nullable=False)
    price_currency: Mapped[str] = mapped_column(String(3), nullable=False)
    date_created: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    date_modified: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    order: Mapped[Optional[OrderModel]] = relationship(back_populates="items")
    taxes: Mapped[list[TaxModel]] = relationship(secondary=order_item_taxes, lazy="selectin")

    @validates("quantity")
    def _validate_quantity(self, _key, value):
        return validate_quantity(value)

    @validates("price")
    def _validate_price(self, _key, value):
        return validate_price(value)

    def add_tax(self, tax: TaxModel) -> "OrderItemModel":
        if tax not in self.taxes:
            self.taxes.append(tax)
        return self

    def remove_tax(self, tax: TaxModel) -> "OrderItemModel":
        if tax in self.taxes:
            self.taxes.remove(tax)
        return self

    @property
    def subtotal(self) -> Money:
        return line_amount(self)


class ChangeLogModel(Base):
    __tablename__ = "change_logs"
    __table_args__ = (
        UniqueConstraint("object_class", "object_id", "version", name="uq_change_log_version"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    action: Mapped[str] = mapped_column(String(8), nullable=False)
    object_class: Mapped[str] = mapped_column(String(64), nullable=False)
    object_id: Mapped[str] = mapped_column(String(36), nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    data: Mapped[Optional[dict]] = mapped_column(_json_type(), nullable=True)
    username: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    logged_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


Index("ix_orders_target_organization", OrderModel.target_organization)
Index("ix_order_items_order_id", OrderItemModel.order_id)
Index("ix_change_logs_object", ChangeLogModel.object_class, ChangeLogModel.object_id)
