"""Flush-time listeners: identifiers, timestamps, order totals and change logs.

Totals are recomputed before the change log is written so that the derived
price and tax summary of an order are versioned with the change that caused
them.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import event
from sqlalchemy.orm import Session

from salesorders.core.config import get_settings
from salesorders.persistence.changelog import ChangeLogRecorder
from salesorders.persistence.models import OrderItemModel, OrderModel, OrganizationModel, TaxModel, _new_id

logger = logging.getLogger(__name__)

_IDENTIFIED = (OrderModel, OrderItemModel, OrganizationModel, TaxModel)
_TIMESTAMPED = (OrderModel, OrderItemModel)


def _assign_identifiers(session: Session, now: datetime) -> None:
    for obj in session.new:
        if isinstance(obj, _IDENTIFIED) and obj.id is None:
            obj.id = _new_id()
        if isinstance(obj, _TIMESTAMPED):
            obj.date_created = obj.date_created or now
            obj.date_modified = now


def _touch_modified(session: Session, now: datetime) -> None:
    for obj in session.dirty:
        if isinstance(obj, _TIMESTAMPED) and session.is_modified(obj):
            obj.date_modified = now


def _orders_to_recalculate(session: Session) -> list[OrderModel]:
    orders: dict[int, OrderModel] = {}
    for obj in list(session.new) + list(session.dirty):
        if isinstance(obj, OrderModel):
            orders[id(obj)] = obj
        elif isinstance(obj, OrderItemModel) and obj.order is not None:
            orders[id(obj.order)] = obj.order
    for obj in session.deleted:
        if isinstance(obj, OrderItemModel) and obj.order is not None and obj.order not in session.deleted:
            # deleted directly rather than detached from its order
            order = obj.order
            order.remove_item(obj)
            orders[id(order)] = order
    return [order for order in orders.values() if order not in session.deleted]


def recalculate_pending_orders(session: Session) -> int:
    settlement_currency = get_settings().settlement_currency
    orders = _orders_to_recalculate(session)
    for order in orders:
        totals = order.calculate_totals(settlement_currency)
        logger.debug(
            "recalculated order totals: order_id=%s price=%s currency=%s tax_rates=%s",
            order.id,
            totals.price,
            totals.price_currency,
            len(totals.taxes),
        )
    return len(orders)


@event.listens_for(Session, "before_flush")
def before_flush(session: Session, flush_context, instances) -> None:
    now = datetime.now(timezone.utc)
    with session.no_autoflush:
        _assign_identifiers(session, now)
        recalculate_pending_orders(session)
        _touch_modified(session, now)
        ChangeLogRecorder(session).record()
