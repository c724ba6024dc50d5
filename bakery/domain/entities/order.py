"""
Order aggregate types.

CRITICAL: This file must contain ZERO imports from:
- sqlalchemy
- pydantic
"""
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from ..enums import OrderPriority, OrderStatus, PaymentStatus
from ..value_objects import DualAmount, OrderNumber, quantize


@dataclass(frozen=True)
class OrderLine:
    """One product line of an order about to be written."""
    product_id: int
    product_name: str
    quantity: int
    unit_price: DualAmount
    unit_cost: DualAmount = field(default_factory=DualAmount.zero)

    def __post_init__(self):
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int):
            raise ValueError(f"Quantity must be an integer: {self.quantity!r}")
        if self.quantity <= 0:
            raise ValueError(
                f"Quantity must be greater than zero for product {self.product_id}"
            )

    def calculate_total(self) -> DualAmount:
        """Line total in both currencies: unit price x quantity."""
        return self.unit_price * self.quantity

    def calculate_cost(self) -> DualAmount:
        return self.unit_cost * self.quantity


@dataclass
class OrderDraft:
    """
    Order header plus lines, before it has a database identity.

    Totals are derived from the lines; commission is ``commission_rate``
    of the margin (amount - cost), floored at zero.
    """
    order_number: OrderNumber
    store_id: int
    store_name: str
    lines: List[OrderLine] = field(default_factory=list)
    order_date: date = field(default_factory=date.today)
    delivery_date: Optional[date] = None
    notes: Optional[str] = None
    priority: OrderPriority = OrderPriority.NORMAL
    status: OrderStatus = OrderStatus.DRAFT
    payment_status: PaymentStatus = PaymentStatus.PENDING
    created_by: Optional[int] = None
    created_by_name: Optional[str] = None
    commission_rate: Decimal = Decimal("0.10")

    def __post_init__(self):
        if not self.lines:
            raise ValueError("An order needs at least one line")

    @property
    def total_amount(self) -> DualAmount:
        total = DualAmount.zero()
        for line in self.lines:
            total = total + line.calculate_total()
        return total.quantized()

    @property
    def total_cost(self) -> DualAmount:
        total = DualAmount.zero()
        for line in self.lines:
            total = total + line.calculate_cost()
        return total.quantized()

    @property
    def commission(self) -> DualAmount:
        margin = self.total_amount.minus_or_zero(self.total_cost)
        return (margin * self.commission_rate).quantized()


@dataclass(frozen=True)
class OrderItemSnapshot:
    """Order line as read back from the store."""
    id: int
    product_id: int
    product_name: str
    quantity: int
    unit_price: DualAmount
    total_price: DualAmount

    def is_consistent(self) -> bool:
        """True when the stored total equals unit price x quantity on both sides."""
        expected = self.unit_price * self.quantity
        return (
            quantize(expected.eur) == quantize(self.total_price.eur)
            and quantize(expected.syp) == quantize(self.total_price.syp)
        )


@dataclass(frozen=True)
class OrderSnapshot:
    """Order row and its lines as read back from the store."""
    id: int
    order_number: str
    store_id: int
    store_name: str
    status: OrderStatus
    payment_status: PaymentStatus
    total_amount: DualAmount
    assigned_distributor_id: Optional[int]
    updated_at: Optional[datetime]
    items: List[OrderItemSnapshot] = field(default_factory=list)
