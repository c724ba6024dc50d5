"""
Transaction isolation levels.

Values are the strings SQLAlchemy accepts for the ``isolation_level``
execution option.
"""
from enum import Enum


class IsolationLevel(str, Enum):
    """Supported isolation levels."""

    READ_UNCOMMITTED = "READ UNCOMMITTED"
    READ_COMMITTED = "READ COMMITTED"
    REPEATABLE_READ = "REPEATABLE READ"
    SERIALIZABLE = "SERIALIZABLE"

    @classmethod
    def _missing_(cls, value):
        # Accept READ_COMMITTED / read-committed spellings from env files
        if isinstance(value, str):
            normalized = value.strip().upper().replace("_", " ").replace("-", " ")
            for member in cls:
                if member.value == normalized:
                    return member
        return None
