"""
Tests for the explicit transaction handle.

Uses fake connection/transaction objects so state transitions and
timeouts can be driven without a database.
"""
import asyncio

import pytest
from sqlalchemy import exc as sa_exc

from bakery.infrastructure.database.errors import (
    LockWaitTimeoutError,
    StoreError,
    TransactionStateError,
    TransactionTimeoutError,
)
from bakery.infrastructure.database.isolation import IsolationLevel
from bakery.infrastructure.database.transaction import (
    Transaction,
    TransactionController,
    TransactionState,
)


class FakeConnection:
    """Fake AsyncConnection."""

    def __init__(self, delay: float = 0.0, error: Exception = None) -> None:
        self.delay = delay
        self.error = error
        self.executed: list[object] = []
        self.closed = False

    async def execute(self, statement):
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        self.executed.append(statement)
        return "result"

    async def close(self) -> None:
        self.closed = True


class FakeTransaction:
    """Fake AsyncTransaction."""

    def __init__(self, commit_error: Exception = None, commit_delay: float = 0.0) -> None:
        self.commit_error = commit_error
        self.commit_delay = commit_delay
        self.committed = False
        self.rolled_back = False

    async def commit(self) -> None:
        if self.commit_delay:
            await asyncio.sleep(self.commit_delay)
        if self.commit_error is not None:
            raise self.commit_error
        self.committed = True

    async def rollback(self) -> None:
        self.rolled_back = True


def _lock_timeout() -> sa_exc.OperationalError:
    return sa_exc.OperationalError(
        "UPDATE orders ...", {}, Exception(1205, "Lock wait timeout exceeded; try restarting transaction")
    )


def _tx(connection=None, transaction=None, timeout: float = 5.0) -> Transaction:
    return Transaction(
        connection or FakeConnection(),
        transaction or FakeTransaction(),
        IsolationLevel.READ_COMMITTED,
        timeout,
    )


@pytest.mark.asyncio
async def test_commit_releases_connection():
    connection, transaction = FakeConnection(), FakeTransaction()
    tx = _tx(connection, transaction)

    assert await tx.execute("SELECT 1") == "result"
    await tx.commit()

    assert tx.state is TransactionState.COMMITTED
    assert transaction.committed
    assert connection.closed


@pytest.mark.asyncio
async def test_second_terminal_call_rejected():
    tx = _tx()
    await tx.commit()

    with pytest.raises(TransactionStateError):
        await tx.commit()
    with pytest.raises(TransactionStateError):
        await tx.rollback()
    with pytest.raises(TransactionStateError):
        await tx.execute("SELECT 1")


@pytest.mark.asyncio
async def test_rollback_then_commit_rejected():
    transaction = FakeTransaction()
    tx = _tx(transaction=transaction)
    await tx.rollback()

    assert tx.state is TransactionState.ROLLED_BACK
    assert transaction.rolled_back
    with pytest.raises(TransactionStateError):
        await tx.commit()


@pytest.mark.asyncio
async def test_statement_past_deadline_times_out():
    tx = _tx(FakeConnection(delay=1.0), timeout=0.05)

    with pytest.raises(TransactionTimeoutError):
        await tx.execute("SELECT SLEEP(1)")
    assert tx.is_open


@pytest.mark.asyncio
async def test_driver_error_is_classified():
    tx = _tx(FakeConnection(error=_lock_timeout()))

    with pytest.raises(LockWaitTimeoutError) as exc_info:
        await tx.execute("UPDATE orders ...")
    assert exc_info.value.code == 1205


@pytest.mark.asyncio
async def test_failed_commit_ends_rolled_back():
    connection = FakeConnection()
    transaction = FakeTransaction(commit_error=sa_exc.OperationalError("COMMIT", {}, Exception("gone away")))
    tx = _tx(connection, transaction)

    with pytest.raises(StoreError):
        await tx.commit()

    assert tx.state is TransactionState.ROLLED_BACK
    assert transaction.rolled_back
    assert connection.closed


@pytest.mark.asyncio
async def test_slow_commit_times_out_and_rolls_back():
    connection = FakeConnection()
    transaction = FakeTransaction(commit_delay=1.0)
    tx = _tx(connection, transaction, timeout=0.05)

    with pytest.raises(TransactionTimeoutError):
        await tx.commit()

    assert tx.state is TransactionState.ROLLED_BACK
    assert not transaction.committed
    assert transaction.rolled_back
    assert connection.closed


@pytest.mark.asyncio
async def test_commit_after_budget_spent_times_out():
    transaction = FakeTransaction()
    tx = _tx(transaction=transaction, timeout=0.01)
    await asyncio.sleep(0.05)

    with pytest.raises(TransactionTimeoutError):
        await tx.commit()

    assert not transaction.committed
    assert tx.state is TransactionState.ROLLED_BACK


@pytest.mark.asyncio
async def test_context_manager_rolls_back_on_error():
    transaction = FakeTransaction()

    with pytest.raises(ValueError):
        async with _tx(transaction=transaction) as tx:
            raise ValueError("writer failed")

    assert tx.state is TransactionState.ROLLED_BACK
    assert transaction.rolled_back


@pytest.mark.asyncio
async def test_context_manager_leaves_committed_alone():
    transaction = FakeTransaction()

    async with _tx(transaction=transaction) as tx:
        await tx.commit()

    assert tx.state is TransactionState.COMMITTED
    assert not transaction.rolled_back


@pytest.mark.asyncio
async def test_begin_rejects_non_positive_timeout():
    controller = TransactionController(pool=None)

    with pytest.raises(ValueError):
        await controller.begin(IsolationLevel.READ_COMMITTED, timeout=0)
