#!/usr/bin/env python3
"""
Ranch inventory management CLI.

Usage:
    python manage.py migrate [--status|--verify] Apply or inspect schema migrations
    python manage.py register CODE NAME CATEGORY Register a new item
    python manage.py move ITEM TYPE QTY          Apply a stock movement
    python manage.py reserve ITEM QTY            Hold stock for an order
    python manage.py release ITEM QTY            Release held stock
    python manage.py sweep [--farm F]            Run the alert sweep
    python manage.py items [--low-stock ...]     List items with filters and paging
    python manage.py alerts [--farm F]           List open alerts
    python manage.py ack ALERT_ID                Acknowledge an alert
    python manage.py resolve ALERT_ID            Resolve an alert
    python manage.py report [--farm F]           Valuation and analysis report

All commands print JSON to stdout.
"""

import argparse
import asyncio
import json
import sys
from collections.abc import Awaitable, Callable
from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from ranch_inventory.config import configure_logging, log_context
from ranch_inventory.core.entities import (
    InventoryCategory,
    MovementType,
    StockStatus,
    ValuationMethod,
)
from ranch_inventory.core.exceptions import InventoryError

DEFAULT_USER = "cli"


def _emit(payload: Any) -> None:
    print(json.dumps(payload, indent=2, default=str))


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return number


def _item_payload(item) -> dict:
    data = item.model_dump(mode="json")
    data["available_stock"] = str(item.available_stock)
    data["total_value"] = str(item.total_value)
    return data


async def cmd_migrate(args: argparse.Namespace) -> None:
    from ranch_inventory.infrastructure.storage.sqlite.migrations import (
        get_migration_status,
        initialize_database,
        verify_schema_integrity,
    )

    if args.status:
        _emit(await get_migration_status())
        return
    if args.verify:
        _emit(await verify_schema_integrity())
        return
    results = await initialize_database(create_backup_before=not args.no_backup)
    _emit([r.to_dict() for r in results])


async def cmd_register(args: argparse.Namespace) -> None:
    from ranch_inventory.application import RegisterItemRequest, RegisterItemUseCase

    request = RegisterItemRequest(
        item_code=args.code,
        item_name=args.name,
        category=args.category,
        unit_of_measure=args.unit,
        farm_id=args.farm,
        minimum_stock=args.minimum,
        maximum_stock=args.maximum,
        reorder_point=args.reorder_point,
        reorder_quantity=args.reorder_quantity,
        unit_cost=args.unit_cost,
        expiration_date=args.expires,
        supplier_id=args.supplier,
    )
    item = await RegisterItemUseCase().execute(request, args.user)
    _emit(_item_payload(item))


async def cmd_move(args: argparse.Namespace) -> None:
    from ranch_inventory.application import RecordMovementRequest, RecordMovementUseCase

    request = RecordMovementRequest(
        item_id=args.item_id,
        movement_type=args.movement_type,
        quantity=args.quantity,
        unit_cost=args.unit_cost,
        reason=args.reason,
        reference=args.reference,
    )
    result = await RecordMovementUseCase().execute(request, args.user)
    _emit({"item": _item_payload(result.item), "reorder_error": result.reorder_error})


async def cmd_reserve(args: argparse.Namespace) -> None:
    from ranch_inventory.application import (
        ReleaseStockUseCase,
        ReservationRequest,
        ReserveStockUseCase,
    )

    request = ReservationRequest(
        item_id=args.item_id, quantity=args.quantity, reference=args.reference
    )
    use_case = ReleaseStockUseCase() if args.command == "release" else ReserveStockUseCase()
    item = await use_case.execute(request, args.user)
    _emit(_item_payload(item))


async def cmd_sweep(args: argparse.Namespace) -> None:
    from ranch_inventory.application import RunAlertSweepUseCase

    result = await RunAlertSweepUseCase().execute(farm_id=args.farm)
    _emit(result.to_dict())


async def cmd_items(args: argparse.Namespace) -> None:
    from ranch_inventory.application import ListInventoryUseCase, ListItemsRequest

    request = ListItemsRequest(
        farm_id=args.farm,
        category=args.category,
        status=args.status,
        search=args.search,
        low_stock=args.low_stock,
        expired=args.expired,
        page=args.page,
        limit=args.limit,
    )
    page = await ListInventoryUseCase().execute(request)
    _emit(page.to_dict())


async def cmd_alerts(args: argparse.Namespace) -> None:
    from ranch_inventory.application import get_alert_engine

    engine = await get_alert_engine()
    alerts = await engine.list_open(farm_id=args.farm)
    _emit([a.model_dump(mode="json") for a in alerts])


async def cmd_alert_state(args: argparse.Namespace) -> None:
    from ranch_inventory.application import get_alert_engine

    engine = await get_alert_engine()
    if args.command == "ack":
        alert = await engine.acknowledge(args.alert_id, args.user)
    else:
        alert = await engine.resolve(args.alert_id, args.user)
    _emit(alert.model_dump(mode="json"))


async def cmd_report(args: argparse.Namespace) -> None:
    from ranch_inventory.application import GenerateInventoryReportUseCase

    report = await GenerateInventoryReportUseCase().execute(
        farm_id=args.farm,
        period_days=args.period,
        method=ValuationMethod(args.method),
        as_of=args.as_of,
    )
    _emit(report.to_dict())


async def _run(handler: Callable[[argparse.Namespace], Awaitable[None]], args) -> int:
    from ranch_inventory.infrastructure.storage.sqlite import close_pool

    try:
        command = getattr(args, "command", None)
        with log_context(command=command, user_id=getattr(args, "user", None)):
            await handler(args)
        return 0
    except InventoryError as e:
        print(json.dumps(e.to_dict(), default=str), file=sys.stderr)
        return 1
    except PydanticValidationError as e:
        print(json.dumps({"error": "VALIDATION_ERROR", "message": str(e)}), file=sys.stderr)
        return 2
    finally:
        await close_pool()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Ranch inventory management CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--user", default=DEFAULT_USER, help="Acting user id (default: cli)")
    sub = parser.add_subparsers(dest="command", required=True)

    # migrate
    p_migrate = sub.add_parser("migrate", help="Apply pending schema migrations")
    p_migrate.add_argument("--status", action="store_true", help="Show migration status only")
    p_migrate.add_argument(
        "--verify", action="store_true", help="Check schema and ledger balance integrity"
    )
    p_migrate.add_argument("--no-backup", action="store_true", help="Skip backup before migrating")
    p_migrate.set_defaults(func=cmd_migrate)

    # register
    p_register = sub.add_parser("register", help="Register a new inventory item")
    p_register.add_argument("code", help="Unique item code")
    p_register.add_argument("name", help="Item name")
    p_register.add_argument("category", choices=[c.value for c in InventoryCategory])
    p_register.add_argument("--unit", default="UNIT", help="Unit of measure (default: UNIT)")
    p_register.add_argument("--farm", default=None, help="Farm id")
    p_register.add_argument("--minimum", type=Decimal, default=Decimal("0"))
    p_register.add_argument("--maximum", type=Decimal, default=None)
    p_register.add_argument("--reorder-point", type=Decimal, default=Decimal("0"))
    p_register.add_argument("--reorder-quantity", type=Decimal, default=Decimal("0"))
    p_register.add_argument("--unit-cost", type=Decimal, default=Decimal("0"))
    p_register.add_argument("--expires", type=datetime.fromisoformat, default=None)
    p_register.add_argument("--supplier", default=None, help="Preferred supplier id")
    p_register.set_defaults(func=cmd_register)

    # move
    p_move = sub.add_parser("move", help="Apply a stock movement")
    p_move.add_argument("item_id", type=int)
    p_move.add_argument(
        "movement_type",
        choices=[t.value for t in MovementType if not t.is_reservation],
    )
    p_move.add_argument("quantity", type=Decimal)
    p_move.add_argument("--unit-cost", type=Decimal, default=None)
    p_move.add_argument("--reason", default="")
    p_move.add_argument("--reference", default=None)
    p_move.set_defaults(func=cmd_move)

    # reserve / release
    for name, help_text in (("reserve", "Hold stock for an order"), ("release", "Release held stock")):
        p_hold = sub.add_parser(name, help=help_text)
        p_hold.add_argument("item_id", type=int)
        p_hold.add_argument("quantity", type=Decimal)
        p_hold.add_argument("--reference", default=None)
        p_hold.set_defaults(func=cmd_reserve)

    # sweep
    p_sweep = sub.add_parser("sweep", help="Evaluate alerts for every item")
    p_sweep.add_argument("--farm", default=None, help="Limit to one farm")
    p_sweep.set_defaults(func=cmd_sweep)

    # items
    p_items = sub.add_parser("items", help="List inventory items")
    p_items.add_argument("--farm", default=None, help="Limit to one farm")
    p_items.add_argument("--category", choices=[c.value for c in InventoryCategory], default=None)
    p_items.add_argument("--status", choices=[s.value for s in StockStatus], default=None)
    p_items.add_argument("--search", default=None, help="Match item name or code")
    p_items.add_argument("--low-stock", action="store_true", help="Stock at or below minimum")
    p_items.add_argument("--expired", action="store_true", help="Expiration date already passed")
    p_items.add_argument("--page", type=_positive_int, default=1)
    p_items.add_argument("--limit", type=_positive_int, default=50, help="Items per page (default: 50)")
    p_items.set_defaults(func=cmd_items)

    # alerts
    p_alerts = sub.add_parser("alerts", help="List open alerts")
    p_alerts.add_argument("--farm", default=None, help="Limit to one farm")
    p_alerts.set_defaults(func=cmd_alerts)

    # ack / resolve
    for name, help_text in (("ack", "Acknowledge an alert"), ("resolve", "Resolve an alert")):
        p_state = sub.add_parser(name, help=help_text)
        p_state.add_argument("alert_id", type=int)
        p_state.set_defaults(func=cmd_alert_state)

    # report
    p_report = sub.add_parser("report", help="Valuation and analysis report")
    p_report.add_argument("--farm", default=None, help="Limit to one farm")
    p_report.add_argument("--period", type=_positive_int, default=365, help="Analysis window in days (default: 365)")
    p_report.add_argument(
        "--method",
        choices=[m.value for m in ValuationMethod],
        default=ValuationMethod.WEIGHTED_AVERAGE.value,
    )
    p_report.add_argument(
        "--as-of",
        type=datetime.fromisoformat,
        default=None,
        help="Evaluate the report at this ISO timestamp",
    )
    p_report.set_defaults(func=cmd_report)

    return parser


def main() -> None:
    args = build_parser().parse_args()
    configure_logging()
    sys.exit(asyncio.run(_run(args.func, args)))


if __name__ == "__main__":
    main()
