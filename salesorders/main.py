from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from salesorders.api.routes_catalog import router as catalog_router
from salesorders.api.routes_order_items import router as order_items_router
from salesorders.api.routes_orders import router as orders_router
from salesorders.core.config import get_settings
from salesorders.core.logging import configure_logging
from salesorders.domain.errors import NotFound, OrderDomainError
from salesorders.persistence.pg import init_db

configure_logging()
logger = logging.getLogger(__name__)
settings = get_settings()

app = FastAPI(title=settings.app_name)


@app.on_event("startup")
def on_startup() -> None:
    init_db()
    logger.info("sales orders api ready: settlement_currency=%s", settings.settlement_currency)


@app.exception_handler(OrderDomainError)
async def order_domain_error_handler(_: Request, exc: OrderDomainError):
    status_code = 404 if isinstance(exc, NotFound) else 422
    if status_code == 422:
        logger.warning("rejected order change: %s", exc)
    return JSONResponse(
        status_code=status_code,
        content={
            "detail": str(exc),
            "error": exc.code,
        },
    )


@app.get("/healthz")
def healthz() -> dict:
    return {"status": "ok"}


app.include_router(catalog_router)
app.include_router(orders_router)
app.include_router(order_items_router)
