from __future__ import annotations

from fastapi import Depends
from sqlalchemy.orm import Session

from salesorders.core.security import Actor, get_actor
from salesorders.persistence.pg import get_session
from salesorders.persistence.store import OrderStore


def get_store(actor: Actor = Depends(get_actor), session: Session = Depends(get_session)) -> OrderStore:
    # picked up by the change-log observer on flush
    session.info["actor_id"] = actor.id
    return OrderStore(session)
