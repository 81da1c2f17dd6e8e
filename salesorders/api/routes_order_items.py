from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from salesorders.api.deps import get_store
from salesorders.api.schemas import OrderItemPost, OrderItemUpdate
from salesorders.api.utils import audit_entry_to_dict, change_log_to_dict, item_to_dict, parse_datetime
from salesorders.core.security import AUDIT_ROLES, WRITE_ROLES, Actor, get_actor, require_roles
from salesorders.persistence.store import OrderStore

router = APIRouter(tags=["order_items"])


@router.get("/order_items")
def list_order_items(
    order: str | None = Query(default=None, description="order id"),
    offer: str | None = Query(default=None),
    name: str | None = Query(default=None, description="partial, case-insensitive match"),
    created_after: str | None = Query(default=None, description="ISO datetime"),
    created_before: str | None = Query(default=None, description="ISO datetime"),
    modified_after: str | None = Query(default=None, description="ISO datetime"),
    modified_before: str | None = Query(default=None, description="ISO datetime"),
    order_by: str = Query(default="date_created"),
    descending: bool = Query(default=False),
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    store: OrderStore = Depends(get_store),
):
    try:
        rows = store.list_items(
            order_id=order,
            offer=offer,
            name=name,
            created_after=parse_datetime(created_after) if created_after else None,
            created_before=parse_datetime(created_before) if created_before else None,
            modified_after=parse_datetime(modified_after) if modified_after else None,
            modified_before=parse_datetime(modified_before) if modified_before else None,
            order_by=order_by,
            descending=descending,
            limit=limit,
            offset=offset,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {"count": len(rows), "order_items": [item_to_dict(row) for row in rows]}


@router.post("/order_items", status_code=201)
def create_order_item(
    body: OrderItemPost,
    actor: Actor = Depends(get_actor),
    store: OrderStore = Depends(get_store),
):
    require_roles(actor, WRITE_ROLES, detail="changing order items requires clerk/system role")
    return item_to_dict(store.add_item(body.order, **body.to_store_kwargs()))


@router.get("/order_items/{item_id}")
def get_order_item(item_id: str, store: OrderStore = Depends(get_store)):
    return item_to_dict(store.get_item(item_id))


@router.put("/order_items/{item_id}")
def update_order_item(
    item_id: str,
    body: OrderItemUpdate,
    actor: Actor = Depends(get_actor),
    store: OrderStore = Depends(get_store),
):
    require_roles(actor, WRITE_ROLES, detail="changing order items requires clerk/system role")
    return item_to_dict(store.update_item(item_id, **body.to_store_kwargs()))


@router.delete("/order_items/{item_id}", status_code=204)
def delete_order_item(
    item_id: str,
    actor: Actor = Depends(get_actor),
    store: OrderStore = Depends(get_store),
):
    require_roles(actor, WRITE_ROLES, detail="changing order items requires clerk/system role")
    store.remove_item(item_id)
    return Response(status_code=204)


@router.get("/order_items/{item_id}/change_log")
def get_order_item_change_log(
    item_id: str,
    actor: Actor = Depends(get_actor),
    store: OrderStore = Depends(get_store),
):
    require_roles(actor, AUDIT_ROLES)
    rows = store.change_log("OrderItem", item_id)
    if not rows:
        store.get_item(item_id)
    return {"count": len(rows), "change_log": [change_log_to_dict(row) for row in rows]}


@router.get("/order_items/{item_id}/audit_trail")
def get_order_item_audit_trail(
    item_id: str,
    actor: Actor = Depends(get_actor),
    store: OrderStore = Depends(get_store),
):
    require_roles(actor, AUDIT_ROLES)
    trail = store.audit_trail("OrderItem", item_id)
    if not trail:
        store.get_item(item_id)
    return {"count": len(trail), "audit_trail": [audit_entry_to_dict(entry) for entry in trail]}
