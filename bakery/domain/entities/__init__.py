"""Domain entities."""

from .order import OrderDraft, OrderItemSnapshot, OrderLine, OrderSnapshot

__all__ = ["OrderDraft", "OrderItemSnapshot", "OrderLine", "OrderSnapshot"]
