from sqlalchemy import Column, Integer, String, Text, Numeric, DateTime, JSON, Enum, UniqueConstraint
import enum

from database import Base
from models.audit_mixin import AuditMixin
from utils.formatting import utcnow


class DeliveryStatus(str, enum.Enum):
    PENDING = "pending"
    READY = "ready"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class RegisterEntry(Base, AuditMixin):
    __tablename__ = "register"
    # active_phone is cleared on soft delete so only live entries compete for a phone number
    __table_args__ = (UniqueConstraint('active_phone', name='uq_register_active_phone'),)

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(150), nullable=False)
    customer_name = Column(String(150), nullable=True)
    phone = Column(String(32), nullable=False, index=True)
    active_phone = Column(String(32), nullable=True)
    email = Column(String(150), nullable=True)
    laundry_items = Column(JSON, nullable=True)
    drop_off_date = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    pickup_date = Column(DateTime(timezone=True), nullable=True)
    delivery_status = Column(Enum(DeliveryStatus, values_callable=lambda e: [m.value for m in e]), default=DeliveryStatus.PENDING, nullable=False)
    total_amount = Column(Numeric(12, 2), default=0, nullable=False)
    paid_amount = Column(Numeric(12, 2), default=0, nullable=False)
    payment_status = Column(String(20), default="pending", nullable=False)
    notes = Column(Text, nullable=True)
    receipt_number = Column(String(64), unique=True, nullable=False)
    status = Column(String(20), default="active", nullable=False)
