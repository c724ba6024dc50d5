"""
SQLAlchemy ORM Models.

Tables touched by the order creation workflow. Writers use the Core
tables (``orders_table``, ``order_items_table``) so every statement runs
on the explicit transaction connection.
"""
from datetime import date, datetime, timezone

from sqlalchemy import (
    Column, Date, DateTime, Enum as SAEnum, ForeignKey, Index, Integer,
    Numeric, String, Text,
)
from sqlalchemy.orm import declarative_base, relationship

from bakery.domain.enums import OrderPriority, OrderStatus, PaymentStatus


Base = declarative_base()


def utcnow() -> datetime:
    """Naive UTC timestamp (columns are stored without zone)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _enum(enum_cls, name: str) -> SAEnum:
    # Store the lowercase values, not the member names
    return SAEnum(
        enum_cls,
        name=name,
        values_callable=lambda members: [member.value for member in members],
        validate_strings=True,
    )


# =============================================================================
# ORDER MODEL
# =============================================================================

class OrderModel(Base):
    """
    Order database model.

    Monetary columns come in EUR/SYP pairs.
    """

    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_number = Column(String(50), nullable=False, unique=True)

    # Store snapshot
    store_id = Column(Integer, nullable=False)
    store_name = Column(String(100), nullable=False)

    order_date = Column(Date, nullable=False, default=date.today)
    delivery_date = Column(Date, nullable=True)

    # Financials
    total_amount_eur = Column(Numeric(10, 2), nullable=False, default=0)
    total_amount_syp = Column(Numeric(15, 2), nullable=False, default=0)
    total_cost_eur = Column(Numeric(10, 2), nullable=False, default=0)
    total_cost_syp = Column(Numeric(15, 2), nullable=False, default=0)
    commission_eur = Column(Numeric(10, 2), nullable=False, default=0)
    commission_syp = Column(Numeric(15, 2), nullable=False, default=0)

    status = Column(_enum(OrderStatus, "order_status"), nullable=False, default=OrderStatus.DRAFT)
    payment_status = Column(
        _enum(PaymentStatus, "order_payment_status"), nullable=False, default=PaymentStatus.PENDING
    )
    priority = Column(_enum(OrderPriority, "order_priority"), nullable=False, default=OrderPriority.NORMAL)

    notes = Column(Text, nullable=True)

    created_by = Column(Integer, nullable=True)
    created_by_name = Column(String(100), nullable=True)

    assigned_distributor_id = Column(Integer, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    items = relationship("OrderItemModel", back_populates="order", cascade="all, delete-orphan")

    __table_args__ = (
        Index("ix_orders_store_id", "store_id"),
        Index("ix_orders_order_date", "order_date"),
        Index("ix_orders_status", "status"),
        Index("ix_orders_assigned_distributor_id", "assigned_distributor_id"),
    )

    def __repr__(self):
        return f"<OrderModel(id={self.id}, order_number={self.order_number}, status={self.status})>"


# =============================================================================
# ORDER ITEM MODEL
# =============================================================================

class OrderItemModel(Base):
    """Order line database model."""

    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)

    product_id = Column(Integer, nullable=False, index=True)
    product_name = Column(String(100), nullable=False)

    quantity = Column(Integer, nullable=False)

    unit_price_eur = Column(Numeric(10, 2), nullable=False, default=0)
    unit_price_syp = Column(Numeric(15, 2), nullable=False, default=0)
    total_price_eur = Column(Numeric(10, 2), nullable=False, default=0)
    total_price_syp = Column(Numeric(15, 2), nullable=False, default=0)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    order = relationship("OrderModel", back_populates="items")

    def __repr__(self):
        return f"<OrderItemModel(id={self.id}, product_id={self.product_id}, quantity={self.quantity})>"


orders_table = OrderModel.__table__
order_items_table = OrderItemModel.__table__
