"""Domain enums."""

from .order_status import OrderPriority, OrderStatus, PaymentStatus

__all__ = ["OrderPriority", "OrderStatus", "PaymentStatus"]
