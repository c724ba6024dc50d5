"""
Store error taxonomy.

Vendor-specific error codes are mapped to ``StoreErrorKind`` here, at the
database boundary. Everything above this module matches on the kind (or
the exception subclass) and never looks at driver codes.
"""
from enum import Enum
from typing import Optional, Union

from sqlalchemy import exc as sa_exc


class StoreErrorKind(str, Enum):
    """Closed set of store failure classifications."""

    CONNECTIVITY = "connectivity"
    CONSTRAINT_VIOLATION = "constraint_violation"
    LOCK_WAIT_TIMEOUT = "lock_wait_timeout"
    TRANSACTION_TIMEOUT = "transaction_timeout"
    UNKNOWN = "unknown"


# MySQL / MariaDB
MYSQL_LOCK_WAIT_TIMEOUT = 1205
MYSQL_LOCK_WAIT_TIMEOUT_NAME = "ER_LOCK_WAIT_TIMEOUT"
MYSQL_CONNECTION_ERRORS = frozenset({
    1045,  # access denied
    2002,  # can't connect through socket
    2003,  # can't connect to server
    2005,  # unknown host
    2006,  # server has gone away
    2013,  # lost connection during query
})

# PostgreSQL SQLSTATE
POSTGRES_LOCK_NOT_AVAILABLE = "55P03"

# SQLite
SQLITE_LOCKED_MESSAGES = ("database is locked", "database table is locked")


class StoreError(Exception):
    """Base class for classified store failures."""

    kind: StoreErrorKind = StoreErrorKind.UNKNOWN

    def __init__(self, message: str, code: Optional[Union[int, str]] = None):
        super().__init__(message)
        self.message = message
        self.code = code

    def __str__(self) -> str:
        if self.code is not None:
            return f"{self.message} (code={self.code})"
        return self.message


class ConnectivityError(StoreError):
    """Store unreachable or authentication rejected."""

    kind = StoreErrorKind.CONNECTIVITY


class ConstraintViolationError(StoreError):
    """Uniqueness, foreign-key or type constraint rejected a write."""

    kind = StoreErrorKind.CONSTRAINT_VIOLATION


class LockWaitTimeoutError(ConstraintViolationError):
    """Row or table lock not acquired in time (contention, not bad data)."""

    kind = StoreErrorKind.LOCK_WAIT_TIMEOUT


class TransactionTimeoutError(StoreError):
    """Transaction exceeded its configured time budget."""

    kind = StoreErrorKind.TRANSACTION_TIMEOUT


class TransactionStateError(RuntimeError):
    """Terminal operation called on a transaction that is no longer open."""


class CleanupError(StoreError):
    """Best-effort cleanup failed; logged, never raised past the workflow."""


_ERROR_CLASSES = {
    StoreErrorKind.CONNECTIVITY: ConnectivityError,
    StoreErrorKind.CONSTRAINT_VIOLATION: ConstraintViolationError,
    StoreErrorKind.LOCK_WAIT_TIMEOUT: LockWaitTimeoutError,
    StoreErrorKind.TRANSACTION_TIMEOUT: TransactionTimeoutError,
    StoreErrorKind.UNKNOWN: StoreError,
}


def vendor_code(error: BaseException) -> Optional[Union[int, str]]:
    """
    Extract the driver error code from an exception.

    Looks at the DBAPI exception wrapped by SQLAlchemy when present.
    MySQL drivers put the numeric code in ``args[0]``, PostgreSQL drivers
    expose ``sqlstate``/``pgcode``, and some wrappers carry a ``code`` name.
    """
    orig = getattr(error, "orig", None)
    if orig is None:
        # SQLAlchemyError.code is a docs link id, not a driver code
        if isinstance(error, sa_exc.SQLAlchemyError):
            return None
        orig = error

    for attr in ("sqlstate", "pgcode"):
        value = getattr(orig, attr, None)
        if value:
            return value

    args = getattr(orig, "args", ())
    if args and isinstance(args[0], int):
        return args[0]

    code = getattr(orig, "code", None)
    if isinstance(code, (int, str)):
        return code
    return None


def _message(error: BaseException) -> str:
    orig = getattr(error, "orig", None)
    return str(orig if orig is not None else error)


def classify_store_error(error: BaseException) -> StoreErrorKind:
    """
    Map any exception raised by the store to a ``StoreErrorKind``.

    Args:
        error: Exception raised by SQLAlchemy, the driver, or this package

    Returns:
        The classification; ``UNKNOWN`` when nothing matches
    """
    if isinstance(error, StoreError):
        return error.kind

    code = vendor_code(error)
    message = _message(error).lower()

    if code in (MYSQL_LOCK_WAIT_TIMEOUT, MYSQL_LOCK_WAIT_TIMEOUT_NAME, POSTGRES_LOCK_NOT_AVAILABLE):
        return StoreErrorKind.LOCK_WAIT_TIMEOUT
    if "lock wait timeout" in message or any(m in message for m in SQLITE_LOCKED_MESSAGES):
        return StoreErrorKind.LOCK_WAIT_TIMEOUT

    if isinstance(error, (sa_exc.IntegrityError, sa_exc.DataError)):
        return StoreErrorKind.CONSTRAINT_VIOLATION

    if code in MYSQL_CONNECTION_ERRORS:
        return StoreErrorKind.CONNECTIVITY
    if isinstance(error, (sa_exc.InterfaceError, ConnectionError)):
        return StoreErrorKind.CONNECTIVITY
    if isinstance(error, sa_exc.DBAPIError) and error.connection_invalidated:
        return StoreErrorKind.CONNECTIVITY

    return StoreErrorKind.UNKNOWN


def to_store_error(error: BaseException) -> StoreError:
    """
    Wrap an exception in the ``StoreError`` subclass matching its kind.

    Already-classified errors are returned unchanged.
    """
    if isinstance(error, StoreError):
        return error
    kind = classify_store_error(error)
    return _ERROR_CLASSES[kind](_message(error), code=vendor_code(error))
