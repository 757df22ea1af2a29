from sqlalchemy import Column, Integer, String, Text, Numeric, Date, ForeignKey, Enum, UniqueConstraint
from sqlalchemy.orm import relationship
import enum

from database import Base
from models.audit_mixin import AuditMixin


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    RECEIVED = "received"
    WASHING = "washing"
    DRYING = "drying"
    READY = "ready"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(str, enum.Enum):
    UNPAID = "unpaid"
    PARTIAL = "partial"
    PAID = "paid"


def _enum_values(e):
    return [m.value for m in e]


class Order(Base, AuditMixin):
    __tablename__ = "orders"
    __table_args__ = (
        UniqueConstraint('order_seq', name='uq_orders_order_seq'),
        UniqueConstraint('order_number', name='uq_orders_order_number'),
    )

    order_id = Column(Integer, primary_key=True, index=True)
    order_seq = Column(Integer, nullable=False)  # sequential number behind order_number
    order_number = Column(String(32), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.customer_id"), nullable=False, index=True)
    order_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=True)
    delivery_date = Column(Date, nullable=True)
    status = Column(Enum(OrderStatus, values_callable=_enum_values), default=OrderStatus.PENDING, nullable=False)
    payment_status = Column(Enum(PaymentStatus, values_callable=_enum_values), default=PaymentStatus.UNPAID, nullable=False)
    payment_method = Column(String(32), nullable=True)
    total_amount = Column(Numeric(12, 2), default=0, nullable=False)
    paid_amount = Column(Numeric(12, 2), default=0, nullable=False)
    discount = Column(Numeric(12, 2), default=0, nullable=False)
    notes = Column(Text, nullable=True)

    # Relationships
    customer = relationship("Customer", back_populates="orders")
    items = relationship("OrderItem", back_populates="order")
    payments = relationship("Payment", back_populates="order")


class OrderItem(Base, AuditMixin):
    __tablename__ = "order_items"

    item_id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.order_id"), nullable=False, index=True)
    item_name = Column(String(150), nullable=False)
    description = Column(Text, nullable=True)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    total_price = Column(Numeric(12, 2), nullable=False)
    color = Column(String(50), nullable=True)
    size = Column(String(50), nullable=True)
    special_instructions = Column(Text, nullable=True)

    # Relationships
    order = relationship("Order", back_populates="items")
