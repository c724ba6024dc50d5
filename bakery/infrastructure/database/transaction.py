"""
Explicit transaction handles.

``TransactionController.begin`` returns a ``Transaction`` that every writer
receives as an argument; there is no ambient or context-local transaction.
"""
import asyncio
import logging
from enum import Enum
from typing import Any, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncTransaction

from bakery.infrastructure.database.config import DatabasePool
from bakery.infrastructure.database.errors import (
    TransactionStateError,
    TransactionTimeoutError,
    to_store_error,
)
from bakery.infrastructure.database.isolation import IsolationLevel


logger = logging.getLogger(__name__)


class TransactionState(str, Enum):
    """Transaction lifecycle: OPEN -> COMMITTED | ROLLED_BACK."""

    OPEN = "open"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class Transaction:
    """
    One atomic scope on one pooled connection.

    ``commit`` and ``rollback`` are the only terminal operations and are
    mutually exclusive; any call after the transaction left OPEN raises
    ``TransactionStateError``. Statements run through ``execute`` share a
    single time budget of ``timeout`` seconds counted from ``begin``.

    Usage:
        tx = await controller.begin(IsolationLevel.READ_COMMITTED, timeout=30)
        try:
            await writer.create_order(tx, draft)
            await tx.commit()
        except Exception:
            if tx.is_open:
                await tx.rollback()
            raise
    """

    def __init__(
        self,
        connection: AsyncConnection,
        transaction: AsyncTransaction,
        isolation_level: IsolationLevel,
        timeout: float,
    ):
        """
        Wrap an already-begun SQLAlchemy transaction.

        Args:
            connection: Connection the transaction runs on (closed on finish)
            transaction: Begun SQLAlchemy transaction
            isolation_level: Level the connection was configured with
            timeout: Time budget in seconds for all statements
        """
        self._connection = connection
        self._transaction = transaction
        self.isolation_level = isolation_level
        self.timeout = timeout
        self.state = TransactionState.OPEN
        self._loop = asyncio.get_running_loop()
        self._deadline = self._loop.time() + timeout

    async def __aenter__(self) -> "Transaction":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Roll back whatever was not committed."""
        if self.is_open:
            if exc_type is not None:
                logger.error(f"Transaction failed: {exc_val}")
            else:
                logger.warning("Transaction left open at scope exit, rolling back")
            await self.rollback()

    @property
    def is_open(self) -> bool:
        return self.state is TransactionState.OPEN

    def remaining(self) -> float:
        """Seconds left in the time budget (may be negative)."""
        return self._deadline - self._loop.time()

    def _ensure_open(self, operation: str) -> None:
        if not self.is_open:
            raise TransactionStateError(
                f"Cannot {operation}: transaction already {self.state.value}"
            )

    async def execute(self, statement: Any) -> Any:
        """
        Execute a statement inside the transaction.

        Raises:
            TransactionStateError: If the transaction is no longer open
            TransactionTimeoutError: If the time budget is exhausted
            StoreError: Classified store failure
        """
        self._ensure_open("execute")

        remaining = self.remaining()
        if remaining <= 0:
            raise TransactionTimeoutError(f"Transaction exceeded its {self.timeout}s timeout")

        try:
            return await asyncio.wait_for(self._connection.execute(statement), timeout=remaining)
        except asyncio.TimeoutError as e:
            raise TransactionTimeoutError(
                f"Transaction exceeded its {self.timeout}s timeout"
            ) from e
        except SQLAlchemyError as e:
            raise to_store_error(e) from e

    async def commit(self) -> None:
        """
        Commit transaction.

        Bounded by the remaining time budget. A failed or timed-out commit
        rolls back and leaves the transaction ROLLED_BACK.

        Raises:
            TransactionStateError: If the transaction is no longer open
            TransactionTimeoutError: If the time budget runs out first
            StoreError: Classified store failure
        """
        self._ensure_open("commit")
        try:
            remaining = self.remaining()
            if remaining <= 0:
                raise asyncio.TimeoutError()
            await asyncio.wait_for(self._transaction.commit(), timeout=remaining)
        except asyncio.TimeoutError as e:
            error = TransactionTimeoutError(f"Commit exceeded the {self.timeout}s transaction timeout")
            await self._abort(error)
            raise error from e
        except SQLAlchemyError as e:
            error = to_store_error(e)
            await self._abort(error)
            raise error from e

        self.state = TransactionState.COMMITTED
        await self._release()
        logger.info("✅ Transaction committed successfully")

    async def _abort(self, error: Exception) -> None:
        """Roll back after a failed commit and release the connection."""
        logger.error(f"❌ Commit failed: {error}")
        self.state = TransactionState.ROLLED_BACK
        try:
            await self._transaction.rollback()
        except SQLAlchemyError as rollback_error:
            logger.error(f"Rollback after failed commit also failed: {rollback_error}")
        await self._release()

    async def rollback(self) -> None:
        """Rollback transaction."""
        self._ensure_open("rollback")
        self.state = TransactionState.ROLLED_BACK
        try:
            await self._transaction.rollback()
        except SQLAlchemyError as e:
            raise to_store_error(e) from e
        finally:
            await self._release()
        logger.warning("Transaction rolled back")

    async def _release(self) -> None:
        """Return the connection to the pool."""
        try:
            await self._connection.close()
        except SQLAlchemyError as e:
            logger.warning(f"Failed to release transaction connection: {e}")


class TransactionController:
    """Begins transactions on connections taken from a ``DatabasePool``."""

    def __init__(self, pool: DatabasePool):
        self._pool = pool

    async def begin(
        self,
        isolation_level: Union[IsolationLevel, str] = IsolationLevel.READ_COMMITTED,
        timeout: float = 30.0,
    ) -> Transaction:
        """
        Begin a transaction.

        Args:
            isolation_level: Isolation level for the connection
            timeout: Time budget in seconds for the transaction's statements

        Returns:
            Open ``Transaction``

        Raises:
            ConnectivityError: If no connection can be acquired
            StoreError: If the store rejects the isolation level or BEGIN
        """
        if timeout <= 0:
            raise ValueError(f"Transaction timeout must be positive, got: {timeout}")
        level = IsolationLevel(isolation_level)

        connection = await self._pool.connect()
        try:
            connection = await connection.execution_options(isolation_level=level.value)
            transaction = await connection.begin()
        except SQLAlchemyError as e:
            await connection.close()
            raise to_store_error(e) from e

        logger.info(f"Transaction started (isolation={level.value}, timeout={timeout}s)")
        return Transaction(connection, transaction, level, timeout)
