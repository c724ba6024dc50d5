"""Domain layer - pure domain models."""

from .entities import OrderDraft, OrderItemSnapshot, OrderLine, OrderSnapshot
from .enums import OrderPriority, OrderStatus, PaymentStatus
from .value_objects import DualAmount, OrderNumber

__all__ = [
    "DualAmount",
    "OrderDraft",
    "OrderItemSnapshot",
    "OrderLine",
    "OrderNumber",
    "OrderPriority",
    "OrderSnapshot",
    "OrderStatus",
    "PaymentStatus",
]
