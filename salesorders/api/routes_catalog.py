from __future__ import annotations

from fastapi import APIRouter, Depends

from salesorders.api.deps import get_store
from salesorders.api.schemas import OrganizationCreate, TaxCreate
from salesorders.api.utils import organization_to_dict, tax_to_dict
from salesorders.core.security import WRITE_ROLES, Actor, get_actor, require_roles
from salesorders.persistence.store import OrderStore

router = APIRouter(tags=["catalog"])


@router.post("/organizations", status_code=201)
def create_organization(
    body: OrganizationCreate,
    actor: Actor = Depends(get_actor),
    store: OrderStore = Depends(get_store),
):
    require_roles(actor, WRITE_ROLES)
    return organization_to_dict(store.create_organization(body.name, body.rsin, body.short_code))


@router.get("/organizations")
def list_organizations(store: OrderStore = Depends(get_store)):
    rows = store.list_organizations()
    return {"count": len(rows), "organizations": [organization_to_dict(row) for row in rows]}


@router.post("/taxes", status_code=201)
def create_tax(
    body: TaxCreate,
    actor: Actor = Depends(get_actor),
    store: OrderStore = Depends(get_store),
):
    require_roles(actor, WRITE_ROLES)
    return tax_to_dict(store.create_tax(body.name, body.percentage, description=body.description))


@router.get("/taxes")
def list_taxes(store: OrderStore = Depends(get_store)):
    rows = store.list_taxes()
    return {"count": len(rows), "taxes": [tax_to_dict(row) for row in rows]}
