"""Application DTOs for order creation."""

from datetime import date
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from bakery.domain.entities import OrderDraft, OrderLine
from bakery.domain.enums import OrderPriority
from bakery.domain.value_objects import DualAmount, OrderNumber


class OrderItemInput(BaseModel):
    """DTO for one requested order line (prices in EUR)."""

    product_id: int = Field(..., gt=0, description="Product ID")
    quantity: int = Field(..., gt=0, description="Quantity ordered")
    unit_price_eur: Decimal = Field(..., ge=0, description="Unit price in EUR")
    unit_cost_eur: Decimal = Field(default=Decimal("0"), ge=0, description="Unit cost in EUR")
    product_name: Optional[str] = Field(None, max_length=100, description="Product name snapshot")

    model_config = {"frozen": True}

    def to_line(self, exchange_rate: Decimal) -> OrderLine:
        return OrderLine(
            product_id=self.product_id,
            product_name=self.product_name or f"Product {self.product_id}",
            quantity=self.quantity,
            unit_price=DualAmount.from_eur(self.unit_price_eur, exchange_rate),
            unit_cost=DualAmount.from_eur(self.unit_cost_eur, exchange_rate),
        )


class CreateOrderInput(BaseModel):
    """Request DTO for the order creation workflow."""

    store_id: int = Field(..., gt=0, description="Store ID (not validated against stores)")
    store_name: str = Field(default="Test Store", max_length=100, description="Store name snapshot")
    items: List[OrderItemInput] = Field(..., min_length=1, description="Order lines")
    notes: Optional[str] = Field(None, description="Free-text notes")
    priority: OrderPriority = Field(default=OrderPriority.NORMAL, description="Delivery priority")
    delivery_date: Optional[date] = Field(None, description="Requested delivery date")
    created_by: Optional[int] = Field(default=1, description="Creating user ID")
    created_by_name: Optional[str] = Field(default="Test User", max_length=100, description="Creating user name")
    distributor_id: Optional[int] = Field(None, gt=0, description="Distributor to assign before commit")

    model_config = {"frozen": True}

    @field_validator("priority", mode="before")
    @classmethod
    def _parse_priority(cls, value):
        return OrderPriority.parse(value)

    def to_draft(
        self,
        order_number: OrderNumber,
        exchange_rate: Decimal,
        commission_rate: Decimal,
    ) -> OrderDraft:
        """
        Convert to a domain draft with both currencies filled in.

        Args:
            order_number: Freshly generated order number
            exchange_rate: SYP per EUR
            commission_rate: Share of the margin booked as commission
        """
        return OrderDraft(
            order_number=order_number,
            store_id=self.store_id,
            store_name=self.store_name,
            lines=[item.to_line(exchange_rate) for item in self.items],
            delivery_date=self.delivery_date,
            notes=self.notes,
            priority=self.priority,
            created_by=self.created_by,
            created_by_name=self.created_by_name,
            commission_rate=commission_rate,
        )
