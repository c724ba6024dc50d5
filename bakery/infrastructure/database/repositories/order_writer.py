"""
Order writers.

Insert/update statements for orders and their lines. Every write takes the
``Transaction`` explicitly; reads and cleanup take a plain connection
because they run outside the order's atomic scope.
"""
import logging
from decimal import Decimal
from typing import Optional, Tuple

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection

from bakery.domain.entities import OrderDraft, OrderItemSnapshot, OrderLine, OrderSnapshot
from bakery.domain.enums import OrderStatus
from bakery.domain.value_objects import DualAmount
from bakery.infrastructure.database.errors import to_store_error
from bakery.infrastructure.database.models import order_items_table, orders_table, utcnow
from bakery.infrastructure.database.transaction import Transaction


logger = logging.getLogger(__name__)


class OrderNotFoundError(LookupError):
    """No order row matched the identifier."""


class OrderWriter:
    """
    SQLAlchemy Core writer for the orders / order_items tables.

    Holds no connection state: the transaction is an argument of each
    write so the atomic scope is visible at every call site.
    """

    async def create_order(self, tx: Transaction, draft: OrderDraft) -> int:
        """
        Insert the order header.

        Args:
            tx: Open transaction
            draft: Order to insert; totals are derived from its lines

        Returns:
            Generated order id

        Raises:
            ConstraintViolationError: Duplicate order number, FK failure, ...
        """
        now = utcnow()
        amount = draft.total_amount
        cost = draft.total_cost
        commission = draft.commission

        result = await tx.execute(
            insert(orders_table).values(
                order_number=draft.order_number.value,
                store_id=draft.store_id,
                store_name=draft.store_name,
                order_date=draft.order_date,
                delivery_date=draft.delivery_date,
                total_amount_eur=amount.eur,
                total_amount_syp=amount.syp,
                total_cost_eur=cost.eur,
                total_cost_syp=cost.syp,
                commission_eur=commission.eur,
                commission_syp=commission.syp,
                status=draft.status,
                payment_status=draft.payment_status,
                priority=draft.priority,
                notes=draft.notes,
                created_by=draft.created_by,
                created_by_name=draft.created_by_name,
                created_at=now,
                updated_at=now,
            )
        )
        order_id = result.inserted_primary_key[0]
        logger.info(f"✅ Order created with ID: {order_id} ({draft.order_number})")
        return order_id

    async def create_order_item(self, tx: Transaction, order_id: int, line: OrderLine) -> None:
        """
        Insert one order line.

        The line total is computed here, per currency, as unit price x
        quantity; callers never pass totals.
        """
        total = line.calculate_total()
        now = utcnow()

        await tx.execute(
            insert(order_items_table).values(
                order_id=order_id,
                product_id=line.product_id,
                product_name=line.product_name,
                quantity=line.quantity,
                unit_price_eur=line.unit_price.eur,
                unit_price_syp=line.unit_price.syp,
                total_price_eur=total.eur,
                total_price_syp=total.syp,
                created_at=now,
                updated_at=now,
            )
        )
        logger.debug(f"Order {order_id}: line product={line.product_id} qty={line.quantity} total={total}")

    async def assign_distributor(
        self,
        tx: Transaction,
        order_id: int,
        distributor_id: int,
        new_status: OrderStatus = OrderStatus.CONFIRMED,
    ) -> None:
        """
        Attach a distributor and move the order to ``new_status``.

        Raises:
            OrderNotFoundError: If no order has ``order_id``
        """
        status = OrderStatus(new_status)
        result = await tx.execute(
            update(orders_table)
            .where(orders_table.c.id == order_id)
            .values(
                assigned_distributor_id=distributor_id,
                status=status,
                updated_at=utcnow(),
            )
        )
        if result.rowcount == 0:
            raise OrderNotFoundError(f"Order not found for assignment: {order_id}")
        logger.info(f"✅ Distributor {distributor_id} assigned to order {order_id} ({status.value})")


# =============================================================================
# READS / CLEANUP (outside the order transaction)
# =============================================================================

async def delete_order(conn: AsyncConnection, order_id: int, order_number: str) -> Tuple[int, int]:
    """
    Delete an order and its lines if they exist.

    Only the row with both ``order_id`` and ``order_number`` matches, so an
    id reused after a rollback, or another order holding the same number,
    is never touched.

    Args:
        conn: Connection with an active (auto-committing) ``begin`` block
        order_id: Id produced by this run's insert
        order_number: Order number the run inserted it under

    Returns:
        (deleted order rows, deleted item rows); (0, 0) when nothing existed

    Raises:
        StoreError: Classified store failure
    """
    owned = (orders_table.c.id == order_id) & (orders_table.c.order_number == order_number)
    try:
        items = await conn.execute(
            delete(order_items_table).where(
                order_items_table.c.order_id.in_(select(orders_table.c.id).where(owned))
            )
        )
        orders = await conn.execute(delete(orders_table).where(owned))
    except SQLAlchemyError as e:
        raise to_store_error(e) from e
    return orders.rowcount, items.rowcount


async def count_rows(conn: AsyncConnection, order_number: str) -> Tuple[int, int]:
    """Return (order rows, item rows) stored under ``order_number``."""
    order_ids = select(orders_table.c.id).where(orders_table.c.order_number == order_number)
    orders = await conn.scalar(
        select(func.count()).select_from(orders_table).where(orders_table.c.order_number == order_number)
    )
    items = await conn.scalar(
        select(func.count()).select_from(order_items_table).where(order_items_table.c.order_id.in_(order_ids))
    )
    return int(orders or 0), int(items or 0)


def _dual(eur, syp) -> DualAmount:
    return DualAmount(eur=Decimal(str(eur)), syp=Decimal(str(syp)))


async def find_by_order_number(conn: AsyncConnection, order_number: str) -> Optional[OrderSnapshot]:
    """
    Load an order with its lines.

    Returns:
        OrderSnapshot if found, None otherwise
    """
    result = await conn.execute(select(orders_table).where(orders_table.c.order_number == order_number))
    row = result.mappings().one_or_none()
    if row is None:
        return None

    item_rows = await conn.execute(
        select(order_items_table)
        .where(order_items_table.c.order_id == row["id"])
        .order_by(order_items_table.c.id)
    )
    items = [
        OrderItemSnapshot(
            id=item["id"],
            product_id=item["product_id"],
            product_name=item["product_name"],
            quantity=item["quantity"],
            unit_price=_dual(item["unit_price_eur"], item["unit_price_syp"]),
            total_price=_dual(item["total_price_eur"], item["total_price_syp"]),
        )
        for item in item_rows.mappings()
    ]

    return OrderSnapshot(
        id=row["id"],
        order_number=row["order_number"],
        store_id=row["store_id"],
        store_name=row["store_name"],
        status=row["status"],
        payment_status=row["payment_status"],
        total_amount=_dual(row["total_amount_eur"], row["total_amount_syp"]),
        assigned_distributor_id=row["assigned_distributor_id"],
        updated_at=row["updated_at"],
        items=items,
    )
