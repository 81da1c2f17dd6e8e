from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from salesorders.api.deps import get_store
from salesorders.api.schemas import OrderCreate, OrderItemCreate, OrderUpdate
from salesorders.api.utils import (
    audit_entry_to_dict,
    change_log_to_dict,
    item_to_dict,
    order_to_dict,
    parse_datetime,
)
from salesorders.core.security import AUDIT_ROLES, WRITE_ROLES, Actor, get_actor, require_roles
from salesorders.persistence.store import OrderStore

router = APIRouter(tags=["orders"])


@router.post("/orders", status_code=201)
def create_order(
    body: OrderCreate,
    actor: Actor = Depends(get_actor),
    store: OrderStore = Depends(get_store),
):
    require_roles(actor, WRITE_ROLES, detail="creating orders requires clerk/system role")
    order = store.create_order(
        organization_id=body.organization,
        name=body.name,
        target_organization=body.target_organization,
        customer=str(body.customer) if body.customer is not None else None,
        description=body.description,
        remark=body.remark,
        items=[item.to_store_kwargs() for item in body.items],
    )
    return order_to_dict(order)


@router.get("/orders")
def list_orders(
    reference: str | None = Query(default=None),
    target_organization: str | None = Query(default=None),
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
        rows = store.list_orders(
            reference=reference,
            target_organization=target_organization,
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
    return {"count": len(rows), "orders": [order_to_dict(row) for row in rows]}


@router.get("/orders/{order_id}")
def get_order(order_id: str, store: OrderStore = Depends(get_store)):
    return order_to_dict(store.get_order(order_id))


@router.put("/orders/{order_id}")
def update_order(
    order_id: str,
    body: OrderUpdate,
    actor: Actor = Depends(get_actor),
    store: OrderStore = Depends(get_store),
):
    require_roles(actor, WRITE_ROLES, detail="updating orders requires clerk/system role")
    return order_to_dict(store.update_order(order_id, **body.to_store_kwargs()))


@router.delete("/orders/{order_id}", status_code=204)
def delete_order(
    order_id: str,
    actor: Actor = Depends(get_actor),
    store: OrderStore = Depends(get_store),
):
    require_roles(actor, WRITE_ROLES, detail="deleting orders requires clerk/system role")
    store.delete_order(order_id)
    return Response(status_code=204)


@router.post("/orders/{order_id}/recalculate")
def recalculate_order(
    order_id: str,
    actor: Actor = Depends(get_actor),
    store: OrderStore = Depends(get_store),
):
    require_roles(actor, WRITE_ROLES, detail="recalculating orders requires clerk/system role")
    store.recalculate(order_id)
    return order_to_dict(store.get_order(order_id))


@router.post("/orders/{order_id}/items", status_code=201)
def add_order_item(
    order_id: str,
    body: OrderItemCreate,
    actor: Actor = Depends(get_actor),
    store: OrderStore = Depends(get_store),
):
    require_roles(actor, WRITE_ROLES, detail="changing order items requires clerk/system role")
    item = store.add_item(order_id, **body.to_store_kwargs())
    return item_to_dict(item)


@router.get("/orders/{order_id}/change_log")
def get_order_change_log(
    order_id: str,
    actor: Actor = Depends(get_actor),
    store: OrderStore = Depends(get_store),
):
    """Field-level change history of an order, oldest version first."""
    require_roles(actor, AUDIT_ROLES)
    rows = store.change_log("Order", order_id)
    if not rows:
        store.get_order(order_id)
    return {"count": len(rows), "change_log": [change_log_to_dict(row) for row in rows]}


@router.get("/orders/{order_id}/audit_trail")
def get_order_audit_trail(
    order_id: str,
    actor: Actor = Depends(get_actor),
    store: OrderStore = Depends(get_store),
):
    require_roles(actor, AUDIT_ROLES)
    trail = store.audit_trail("Order", order_id)
    if not trail:
        store.get_order(order_id)
    return {"count": len(trail), "audit_trail": [audit_entry_to_dict(entry) for entry in trail]}
