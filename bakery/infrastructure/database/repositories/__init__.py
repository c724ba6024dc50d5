"""Order persistence."""

from .order_writer import (
    OrderNotFoundError,
    OrderWriter,
    count_rows,
    delete_order,
    find_by_order_number,
)

__all__ = [
    "OrderNotFoundError",
    "OrderWriter",
    "count_rows",
    "delete_order",
    "find_by_order_number",
]
