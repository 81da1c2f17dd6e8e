from __future__ import annotations

import argparse
import json
import sys

from salesorders.api.utils import order_to_dict
from salesorders.core.config import get_settings
from salesorders.core.logging import configure_logging
from salesorders.domain.errors import OrderDomainError
from salesorders.persistence.pg import init_db, session_scope
from salesorders.persistence.store import OrderStore


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Sales orders CLI")
    parser.add_argument("--log-level", default=None, help="override SO_LOG_LEVEL")
    top = parser.add_subparsers(dest="command", required=True)

    db = top.add_parser("db", help="Database operations")
    db_sub = db.add_subparsers(dest="db_command", required=True)
    db_sub.add_parser("init", help="Create all tables")

    orders = top.add_parser("orders", help="Order operations")
    orders_sub = orders.add_subparsers(dest="orders_command", required=True)

    show = orders_sub.add_parser("show", help="Print an order with its computed totals")
    show.add_argument("order_id")

    recalc = orders_sub.add_parser("recalc", help="Recompute and store an order's totals")
    recalc.add_argument("order_id")

    return parser


def _print(payload: dict) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def _show_order(args: argparse.Namespace) -> int:
    with session_scope() as session:
        order = OrderStore(session).get_order(args.order_id)
        _print(order_to_dict(order))
    return 0


def _recalculate_order(args: argparse.Namespace) -> int:
    settings = get_settings()
    with session_scope(actor_id=settings.system_actor_id) as session:
        store = OrderStore(session)
        totals = store.recalculate(args.order_id)
        _print(
            {
                "order_id": args.order_id,
                "price": totals.price,
                "price_currency": totals.price_currency,
                "taxes": totals.taxes_as_dict(),
            }
        )
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    try:
        if args.command == "db" and args.db_command == "init":
            init_db()
            return 0
        if args.command == "orders":
            init_db()
            if args.orders_command == "show":
                return _show_order(args)
            if args.orders_command == "recalc":
                return _recalculate_order(args)
    except OrderDomainError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    parser.error("unsupported command")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
