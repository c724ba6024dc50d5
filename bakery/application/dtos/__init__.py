"""Application DTOs."""

from .order_dto import CreateOrderInput, OrderItemInput

__all__ = ["CreateOrderInput", "OrderItemInput"]
