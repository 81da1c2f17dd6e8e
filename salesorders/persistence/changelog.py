from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from sqlalchemy import func, inspect, select
from sqlalchemy.orm import Session

from salesorders.persistence.models import ChangeLogModel, OrderItemModel, OrderModel

# Fields whose history is kept, per entity.
VERSIONED_FIELDS: dict[type, tuple[str, ...]] = {
    OrderModel: (
        "name",
        "description",
        "reference",
        "reference_id",
        "target_organization",
        "customer",
        "price",
        "price_currency",
        "taxes",
        "remark",
    ),
    OrderItemModel: (
        "name",
        "description",
        "offer",
        "product",
        "quantity",
        "price",
        "price_currency",
    ),
}

OBJECT_CLASSES = {OrderModel: "Order", OrderItemModel: "OrderItem"}


def _json_value(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    return value


class ChangeLogRecorder:
    """Writes one change-log row per created, updated or removed entity in a flush."""

    def __init__(self, session: Session):
        self.session = session
        self._next_versions: dict[tuple[str, str], int] = {}

    def _next_version(self, object_class: str, object_id: str) -> int:
        key = (object_class, object_id)
        if key not in self._next_versions:
            with self.session.no_autoflush:
                current = self.session.scalar(
                    select(func.max(ChangeLogModel.version))
                    .where(ChangeLogModel.object_class == object_class)
                    .where(ChangeLogModel.object_id == object_id)
                )
            self._next_versions[key] = (current or 0) + 1
        version = self._next_versions[key]
        self._next_versions[key] = version + 1
        return version

    def _changed_fields(self, obj: Any, fields: tuple[str, ...]) -> dict:
        state = inspect(obj)
        data = {}
        for name in fields:
            history = state.attrs[name].history
            if history.has_changes():
                data[name] = _json_value(getattr(obj, name))
        return data

    def _log(self, action: str, obj: Any, data: dict | None, logged_at: datetime) -> None:
        object_class = OBJECT_CLASSES[type(obj)]
        self.session.add(
            ChangeLogModel(
                action=action,
                object_class=object_class,
                object_id=obj.id,
                version=self._next_version(object_class, obj.id),
                data=data,
                username=self.session.info.get("actor_id"),
                logged_at=logged_at,
            )
        )

    def record(self) -> int:
        logged_at = datetime.now(timezone.utc)
        created = [obj for obj in self.session.new if type(obj) in VERSIONED_FIELDS]
        updated = [
            obj
            for obj in self.session.dirty
            if type(obj) in VERSIONED_FIELDS and self.session.is_modified(obj, include_collections=False)
        ]
        removed = [obj for obj in self.session.deleted if type(obj) in VERSIONED_FIELDS]

        count = 0
        for obj in created:
            fields = VERSIONED_FIELDS[type(obj)]
            self._log("create", obj, {name: _json_value(getattr(obj, name)) for name in fields}, logged_at)
            count += 1
        for obj in updated:
            data = self._changed_fields(obj, VERSIONED_FIELDS[type(obj)])
            if data:
                self._log("update", obj, data, logged_at)
                count += 1
        for obj in removed:
            self._log("remove", obj, None, logged_at)
            count += 1
        return count
