"""
Order Status Enums.

Lifecycle, payment and priority values stored on the orders table.
"""
from enum import Enum


class OrderStatus(str, Enum):
    """Order lifecycle status values."""

    DRAFT = "draft"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    """Payment status values."""

    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"
    OVERDUE = "overdue"


class OrderPriority(str, Enum):
    """Delivery priority values."""

    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"

    @classmethod
    def parse(cls, value: str) -> "OrderPriority":
        """Parse a priority, mapping the dashboard's 'medium' to NORMAL."""
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower()
        if normalized == "medium":
            return cls.NORMAL
        return cls(normalized)
