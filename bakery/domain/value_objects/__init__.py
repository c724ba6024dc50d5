"""Domain value objects."""

from .money import DualAmount, quantize, to_decimal
from .order_number import OrderNumber

__all__ = [
    "DualAmount",
    "OrderNumber",
    "quantize",
    "to_decimal",
]
