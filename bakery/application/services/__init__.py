"""Application services."""

from .order_creation_service import (
    OrderCreationResult,
    OrderCreationService,
    RetryPolicy,
)

__all__ = [
    "OrderCreationResult",
    "OrderCreationService",
    "RetryPolicy",
]
