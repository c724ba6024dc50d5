"""Order number value object."""
import time
from dataclasses import dataclass
from datetime import date
from typing import Optional

MAX_LENGTH = 50


@dataclass(frozen=True)
class OrderNumber:
    """
    Unique order identifier, also used as the idempotency key of a run.

    Formats:
    - TEST-1733050000000   (diagnostic runs, epoch milliseconds)
    - ORD-20241201-0001    (dashboard orders, daily sequence)
    """
    value: str

    def __post_init__(self):
        if not self.value or not self.value.strip():
            raise ValueError("Order number cannot be empty")

        if len(self.value) > MAX_LENGTH:
            raise ValueError(
                f"Order number longer than {MAX_LENGTH} characters: {self.value}"
            )

    @classmethod
    def generate_test(cls, timestamp_ms: Optional[int] = None) -> "OrderNumber":
        """Timestamp-derived number for diagnostic runs."""
        if timestamp_ms is None:
            timestamp_ms = time.time_ns() // 1_000_000
        return cls(value=f"TEST-{timestamp_ms}")

    @classmethod
    def for_sequence(cls, day: date, sequence: int) -> "OrderNumber":
        """
        Daily sequence number.

        Args:
            day: Order day
            sequence: 1-based position of the order within the day
        """
        if sequence < 1:
            raise ValueError(f"Sequence must start at 1, got: {sequence}")
        return cls(value=f"ORD-{day:%Y%m%d}-{sequence:04d}")

    def __str__(self) -> str:
        return self.value
