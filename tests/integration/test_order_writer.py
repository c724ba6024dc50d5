"""
Integration tests for the order writers.

Runs the writers against in-memory SQLite through the real
TransactionController.
"""
from decimal import Decimal

import pytest
from sqlalchemy import select

from bakery.domain.entities import OrderDraft, OrderLine
from bakery.domain.enums import OrderStatus
from bakery.domain.value_objects import DualAmount, OrderNumber
from bakery.infrastructure.database.errors import ConstraintViolationError
from bakery.infrastructure.database.isolation import IsolationLevel
from bakery.infrastructure.database.models import orders_table
from bakery.infrastructure.database.repositories import (
    OrderNotFoundError,
    OrderWriter,
    count_rows,
    delete_order,
    find_by_order_number,
)
from bakery.infrastructure.database.transaction import TransactionState

RATE = Decimal("1800")


def _draft(order_number: str) -> OrderDraft:
    price = DualAmount.from_eur("20.00", RATE)
    return OrderDraft(
        order_number=OrderNumber(order_number),
        store_id=1,
        store_name="Test Store",
        lines=[
            OrderLine(product_id=1, product_name="Product 1", quantity=5, unit_price=price),
            OrderLine(product_id=2, product_name="Product 2", quantity=3, unit_price=price),
        ],
        notes="Test order for lock timeout fix",
        created_by=1,
        created_by_name="Test User",
    )


async def _begin(controller):
    return await controller.begin(IsolationLevel.SERIALIZABLE, timeout=5)


async def _write_committed(controller, draft: OrderDraft, distributor_id=None) -> int:
    writer = OrderWriter()
    tx = await _begin(controller)
    order_id = await writer.create_order(tx, draft)
    for line in draft.lines:
        await writer.create_order_item(tx, order_id, line)
    if distributor_id is not None:
        await writer.assign_distributor(tx, order_id, distributor_id)
    await tx.commit()
    return order_id


@pytest.mark.asyncio
async def test_committed_order_has_consistent_totals(controller, test_engine):
    """Test line totals are unit price x quantity in both currencies."""
    order_id = await _write_committed(controller, _draft("TEST-100"), distributor_id=1)

    async with test_engine.connect() as conn:
        snapshot = await find_by_order_number(conn, "TEST-100")
        commission = (
            await conn.execute(
                select(orders_table.c.commission_eur, orders_table.c.commission_syp)
                .where(orders_table.c.id == order_id)
            )
        ).one()

    assert snapshot is not None
    assert snapshot.id == order_id
    assert snapshot.status is OrderStatus.CONFIRMED
    assert snapshot.assigned_distributor_id == 1
    assert snapshot.total_amount.eur == Decimal("160.00")
    assert snapshot.total_amount.syp == Decimal("288000.00")
    assert Decimal(str(commission.commission_eur)) == Decimal("16.00")
    assert Decimal(str(commission.commission_syp)) == Decimal("28800.00")

    assert [item.quantity for item in snapshot.items] == [5, 3]
    assert snapshot.items[0].total_price.eur == Decimal("100.00")
    assert snapshot.items[0].total_price.syp == Decimal("180000.00")
    assert snapshot.items[1].total_price.eur == Decimal("60.00")
    assert snapshot.items[1].total_price.syp == Decimal("108000.00")
    assert all(item.is_consistent() for item in snapshot.items)


@pytest.mark.asyncio
async def test_unassigned_order_stays_draft(controller, test_engine):
    await _write_committed(controller, _draft("TEST-101"))

    async with test_engine.connect() as conn:
        snapshot = await find_by_order_number(conn, "TEST-101")

    assert snapshot.status is OrderStatus.DRAFT
    assert snapshot.assigned_distributor_id is None


@pytest.mark.asyncio
async def test_rollback_discards_every_write(controller, test_engine):
    """Test no row survives a rolled-back transaction."""
    draft = _draft("TEST-102")
    writer = OrderWriter()

    tx = await _begin(controller)
    order_id = await writer.create_order(tx, draft)
    await writer.create_order_item(tx, order_id, draft.lines[0])
    await tx.rollback()

    assert tx.state is TransactionState.ROLLED_BACK
    async with test_engine.connect() as conn:
        assert await count_rows(conn, "TEST-102") == (0, 0)


@pytest.mark.asyncio
async def test_duplicate_order_number_rejected(controller, test_engine):
    await _write_committed(controller, _draft("TEST-103"))

    tx = await _begin(controller)
    with pytest.raises(ConstraintViolationError):
        await OrderWriter().create_order(tx, _draft("TEST-103"))
    await tx.rollback()

    async with test_engine.connect() as conn:
        assert await count_rows(conn, "TEST-103") == (1, 2)


@pytest.mark.asyncio
async def test_assign_unknown_order(controller):
    tx = await _begin(controller)
    with pytest.raises(OrderNotFoundError):
        await OrderWriter().assign_distributor(tx, 999999, 1)
    await tx.rollback()


@pytest.mark.asyncio
async def test_delete_order(controller, test_engine):
    order_id = await _write_committed(controller, _draft("TEST-104"))

    async with test_engine.begin() as conn:
        assert await delete_order(conn, order_id, "TEST-104") == (1, 2)

    async with test_engine.begin() as conn:
        # Already gone: deleting again is a no-op
        assert await delete_order(conn, order_id, "TEST-104") == (0, 0)
        assert await count_rows(conn, "TEST-104") == (0, 0)


@pytest.mark.asyncio
async def test_find_missing_order(test_engine):
    async with test_engine.connect() as conn:
        assert await find_by_order_number(conn, "TEST-404") is None


@pytest.mark.asyncio
async def test_delete_order_requires_matching_number(controller, test_engine):
    """Test an id paired with another order number deletes nothing."""
    order_id = await _write_committed(controller, _draft("TEST-105"))

    async with test_engine.begin() as conn:
        assert await delete_order(conn, order_id, "TEST-999") == (0, 0)
        assert await delete_order(conn, order_id + 1, "TEST-105") == (0, 0)
        assert await count_rows(conn, "TEST-105") == (1, 2)
