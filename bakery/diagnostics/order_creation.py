"""
Order creation check.

Creates a TEST-<timestamp> order with its items, assigns a distributor,
commits, and deletes the rows again. Exit code 0 on success, 1 on any
failure.

    DB_HOST=... DB_NAME=... DB_USER=... DB_PASSWORD=... bakery-order-check
    bakery-order-check --item 1:5:20.00 --item 2:3:20.00 --distributor-id 1
"""
import argparse
import asyncio
import sys
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import ValidationError

from bakery.application.dtos import CreateOrderInput, OrderItemInput
from bakery.application.services import OrderCreationResult, OrderCreationService
from bakery.infrastructure.database.config import DatabasePool
from bakery.infrastructure.logging import configure_logging, get_logger
from bakery.settings import AppSettings, ConfigurationError, get_app_settings


logger = get_logger("bakery.diagnostics.order_creation")

DEFAULT_ITEMS = ["1:5:20.00", "2:3:20.00"]


def parse_item(value: str) -> OrderItemInput:
    """
    Parse ``PRODUCT_ID:QUANTITY:UNIT_PRICE_EUR[:UNIT_COST_EUR]``.

    Raises:
        argparse.ArgumentTypeError: On malformed or out-of-range values
    """
    parts = value.split(":")
    if len(parts) not in (3, 4):
        raise argparse.ArgumentTypeError(
            f"Expected PRODUCT_ID:QUANTITY:UNIT_PRICE_EUR[:UNIT_COST_EUR], got: {value}"
        )
    try:
        return OrderItemInput(
            product_id=int(parts[0]),
            quantity=int(parts[1]),
            unit_price_eur=Decimal(parts[2]),
            unit_cost_eur=Decimal(parts[3]) if len(parts) == 4 else Decimal("0"),
        )
    except (ValueError, InvalidOperation, ValidationError) as e:
        raise argparse.ArgumentTypeError(f"Invalid item '{value}': {e}") from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bakery-order-check",
        description="Create and clean up a test order inside one transaction.",
    )
    parser.add_argument("--store-id", type=int, default=1)
    parser.add_argument("--store-name", default="Test Store")
    parser.add_argument(
        "--item",
        dest="items",
        action="append",
        type=parse_item,
        metavar="PRODUCT:QTY:PRICE[:COST]",
        help="Order line, repeatable (default: 1:5:20.00 and 2:3:20.00)",
    )
    parser.add_argument("--distributor-id", type=int, default=1)
    parser.add_argument("--no-assign", action="store_true", help="Skip the distributor assignment")
    parser.add_argument("--notes", default="Test order for lock timeout fix")
    parser.add_argument("--priority", default="normal")
    parser.add_argument("--no-cleanup", action="store_true", help="Keep the committed rows")
    parser.add_argument("--retries", type=int, default=None, help="Retries on lock wait timeout")
    parser.add_argument("--create-schema", action="store_true", help="Create missing tables first")
    parser.add_argument("--env-file", type=Path, default=None, help="Load variables from this .env file")
    return parser


def build_request(args: argparse.Namespace) -> CreateOrderInput:
    items = args.items or [parse_item(item) for item in DEFAULT_ITEMS]
    return CreateOrderInput(
        store_id=args.store_id,
        store_name=args.store_name,
        items=items,
        notes=args.notes,
        priority=args.priority,
        distributor_id=None if args.no_assign else args.distributor_id,
    )


async def run_check(
    settings: AppSettings,
    request: CreateOrderInput,
    create_schema: bool = False,
) -> OrderCreationResult:
    """
    Run the workflow against a fresh pool and always close it.

    Raises:
        ConnectivityError: If the store is unreachable
        StoreError: If the transactional block failed
    """
    pool = DatabasePool(settings.database)
    try:
        await pool.authenticate()
        if create_schema:
            await pool.create_schema()
        service = OrderCreationService(pool, settings.workflow)
        return await service.create_order(request)
    finally:
        await pool.close()


def main(argv: Optional[List[str]] = None) -> int:
    """Console entry point; returns the process exit code."""
    args = build_parser().parse_args(argv)

    # Load environment variables ONCE before any settings objects are created
    load_dotenv(dotenv_path=args.env_file or Path.cwd() / ".env")
    configure_logging()

    logger.info("🧪 Starting order creation test...")

    try:
        settings = get_app_settings()
        settings.database.require()
        if args.no_cleanup or args.retries is not None:
            updates = {}
            if args.no_cleanup:
                updates["cleanup"] = False
            if args.retries is not None:
                updates["lock_timeout_retries"] = max(args.retries, 0)
            settings = settings.model_copy(
                update={"workflow": settings.workflow.model_copy(update=updates)}
            )
        request = build_request(args)
    except (ConfigurationError, ValidationError) as e:
        logger.error(f"❌ Invalid configuration: {e}")
        return 1

    try:
        result = asyncio.run(run_check(settings, request, create_schema=args.create_schema))
    except Exception as e:
        logger.error(f"❌ Test failed: {e}")
        outcome = getattr(e, "outcome", None)
        if outcome is not None:
            logger.error(
                f"Order {outcome.order_number} {outcome.outcome.value} after "
                f"{outcome.attempts} attempt(s), lock_timeout={outcome.lock_timeout}"
            )
        return 1

    logger.info(
        f"✅ Test completed: order {result.order_number} (id={result.order_id}) "
        f"{result.outcome.value} after {result.attempts} attempt(s)"
    )
    if result.cleanup_error:
        logger.warning(f"⚠️ {result.cleanup_error}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
