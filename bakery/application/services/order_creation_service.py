"""
Order creation workflow.

Creates one order, its lines and the distributor assignment in a single
transaction, then (optionally) deletes the rows again. Used as the
diagnostic check for order writes and lock contention.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError

from bakery.application.dtos.order_dto import CreateOrderInput
from bakery.domain.entities import OrderDraft
from bakery.domain.enums import OrderStatus
from bakery.domain.value_objects import OrderNumber
from bakery.infrastructure.database.config import DatabasePool
from bakery.infrastructure.database.errors import (
    CleanupError,
    StoreError,
    StoreErrorKind,
    classify_store_error,
)
from bakery.infrastructure.database.repositories import OrderWriter, delete_order
from bakery.infrastructure.database.transaction import TransactionController, TransactionState
from bakery.settings.workflow import WorkflowSettings


logger = logging.getLogger(__name__)

LockTimeoutHook = Callable[[BaseException], None]


@dataclass
class RetryPolicy:
    """Retry policy for the transactional block (lock-wait-timeout only)."""

    max_attempts: int = 1
    backoff_seconds: float = 0.0


@dataclass
class OrderCreationResult:
    """
    Outcome of one ``create_order`` call.

    Returned when the order committed. When the workflow fails, the
    re-raised exception carries the ROLLED_BACK result as ``outcome``.
    """

    order_number: str
    order_id: Optional[int]
    outcome: TransactionState
    attempts: int
    lock_timeout: bool = False
    cleaned_up: bool = False
    cleanup_error: Optional[str] = None


@dataclass
class _RunState:
    """Bookkeeping shared by the attempts of one run."""

    order_ids: List[int] = field(default_factory=list)
    attempts: int = 0
    lock_timeout: bool = False


class OrderCreationService:
    """
    Runs the order creation workflow.

    Outcome handling:
    - every writer succeeds -> commit
    - any writer raises -> rollback, log, re-raise; lock-wait-timeouts
      additionally log a distinct signal, set ``lock_timeout`` on the
      outcome and call ``on_lock_timeout``
    - afterwards, whatever the outcome, delete the rows this run inserted
      (by their id) outside the transaction; failures are logged, never
      raised

    The pool is not closed here; its owner closes it.
    """

    def __init__(
        self,
        pool: DatabasePool,
        settings: WorkflowSettings,
        writer: Optional[OrderWriter] = None,
        controller: Optional[TransactionController] = None,
        on_lock_timeout: Optional[LockTimeoutHook] = None,
    ) -> None:
        """
        Initialize the workflow.

        Args:
            pool: Pool the transaction and cleanup connections come from
            settings: Workflow settings (isolation, timeout, rates, cleanup)
            writer: Order writer (defaults to ``OrderWriter()``)
            controller: Transaction controller (defaults to one on ``pool``)
            on_lock_timeout: Called with the error when a lock-wait-timeout
                causes a rollback
        """
        self._pool = pool
        self.settings = settings
        self._writer = writer or OrderWriter()
        self._controller = controller or TransactionController(pool)
        self._on_lock_timeout = on_lock_timeout
        self.retry_policy = RetryPolicy(
            max_attempts=settings.lock_timeout_retries + 1,
            backoff_seconds=settings.retry_backoff_seconds,
        )

    async def create_order(
        self,
        request: CreateOrderInput,
        order_number: Optional[OrderNumber] = None,
    ) -> OrderCreationResult:
        """
        Create the order described by ``request``.

        Args:
            request: Validated order input
            order_number: Order number to use; a TEST-<timestamp> number
                is generated when omitted

        Returns:
            OrderCreationResult for the committed order

        Raises:
            StoreError: Classified failure of the transactional block
                (after rollback and cleanup); its ``outcome`` attribute
                holds the ROLLED_BACK OrderCreationResult
        """
        order_number = order_number or OrderNumber.generate_test()
        draft = request.to_draft(
            order_number,
            exchange_rate=self.settings.exchange_rate,
            commission_rate=self.settings.commission_rate,
        )
        logger.info(f"📝 Testing order creation: {order_number} ({len(draft.lines)} lines)")

        run = _RunState()
        try:
            order_id = await self._run_with_retry(draft, request.distributor_id, run)
        except Exception as e:
            cleaned_up, cleanup_error = await self._cleanup_run(order_number, run)
            e.outcome = self._result(
                order_number, run, TransactionState.ROLLED_BACK, cleaned_up, cleanup_error
            )
            raise

        cleaned_up, cleanup_error = await self._cleanup_run(order_number, run)
        return self._result(
            order_number, run, TransactionState.COMMITTED, cleaned_up, cleanup_error, order_id
        )

    @staticmethod
    def _result(
        order_number: OrderNumber,
        run: _RunState,
        outcome: TransactionState,
        cleaned_up: bool,
        cleanup_error: Optional[str],
        order_id: Optional[int] = None,
    ) -> OrderCreationResult:
        return OrderCreationResult(
            order_number=order_number.value,
            order_id=order_id,
            outcome=outcome,
            attempts=run.attempts,
            lock_timeout=run.lock_timeout,
            cleaned_up=cleaned_up,
            cleanup_error=cleanup_error,
        )

    async def _run_with_retry(
        self, draft: OrderDraft, distributor_id: Optional[int], run: _RunState
    ) -> int:
        """Run the transactional block, retrying lock-wait-timeouts per policy."""
        policy = self.retry_policy
        while True:
            run.attempts += 1
            try:
                return await self._create_in_transaction(draft, distributor_id, run)
            except Exception as e:
                if classify_store_error(e) is not StoreErrorKind.LOCK_WAIT_TIMEOUT:
                    raise
                if run.attempts >= policy.max_attempts:
                    raise
                logger.warning(
                    f"🔁 Retrying {draft.order_number} after lock wait timeout "
                    f"(attempt {run.attempts}/{policy.max_attempts}, backoff {policy.backoff_seconds}s)"
                )
                await asyncio.sleep(policy.backoff_seconds)

    async def _create_in_transaction(
        self, draft: OrderDraft, distributor_id: Optional[int], run: _RunState
    ) -> int:
        tx = await self._controller.begin(
            self.settings.isolation_level,
            timeout=self.settings.transaction_timeout,
        )
        try:
            logger.info("1. Creating order...")
            order_id = await self._writer.create_order(tx, draft)
            run.order_ids.append(order_id)

            logger.info("2. Creating order items...")
            for line in draft.lines:
                await self._writer.create_order_item(tx, order_id, line)
            logger.info(f"✅ {len(draft.lines)} order items created")

            if distributor_id is not None:
                logger.info("3. Assigning distributor...")
                await self._writer.assign_distributor(tx, order_id, distributor_id, OrderStatus.CONFIRMED)

            await tx.commit()
        except Exception as e:
            await self._handle_failure(tx, e, run)
            raise

        return order_id

    async def _handle_failure(self, tx, error: Exception, run: _RunState) -> None:
        """Roll back and log; the caller re-raises ``error``."""
        if tx.is_open:
            try:
                await tx.rollback()
            except StoreError as rollback_error:
                logger.error(f"Rollback failed: {rollback_error}")

        logger.error(f"❌ Transaction failed: {error}")

        if classify_store_error(error) is StoreErrorKind.LOCK_WAIT_TIMEOUT:
            run.lock_timeout = True
            logger.error(f"🔒 Lock wait timeout detected: {error}")
            if self._on_lock_timeout is not None:
                self._on_lock_timeout(error)

    async def _cleanup_run(
        self, order_number: OrderNumber, run: _RunState
    ) -> Tuple[bool, Optional[str]]:
        if not self.settings.cleanup:
            return False, None
        return await self.cleanup(order_number, run.order_ids)

    async def cleanup(
        self, order_number: OrderNumber, order_ids: List[int]
    ) -> Tuple[bool, Optional[str]]:
        """
        Delete the orders this run inserted, with their items, if they exist.

        Runs in its own auto-committed block, outside the order transaction.
        Rows are matched by id and order number; nothing is deleted when no
        insert succeeded.

        Returns:
            (success, error message)
        """
        if not order_ids:
            logger.info(f"4. No order row was written for {order_number}, nothing to clean up")
            return True, None

        logger.info("4. Cleaning up test data...")
        orders = items = 0
        try:
            async with self._pool.engine.begin() as conn:
                for order_id in order_ids:
                    deleted_orders, deleted_items = await delete_order(conn, order_id, order_number.value)
                    orders += deleted_orders
                    items += deleted_items
        except (StoreError, SQLAlchemyError, ConnectionError) as e:
            error = CleanupError(f"Cleanup failed for {order_number}: {e}")
            logger.error(f"⚠️ {error}")
            return False, str(error)

        logger.info(f"✅ Test data cleaned up ({orders} orders, {items} items)")
        return True, None
