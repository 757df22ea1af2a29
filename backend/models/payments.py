from sqlalchemy import Column, Integer, Numeric, DateTime, String, ForeignKey, Text, Enum
from sqlalchemy.orm import relationship
import enum

from database import Base
from models.audit_mixin import AuditMixin
from utils.formatting import utcnow


class PaymentMethod(str, enum.Enum):
    CASH = "cash"
    CARD = "card"
    MOBILE = "mobile"
    BANK_TRANSFER = "bank_transfer"


class PaymentRecordStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class Payment(Base, AuditMixin):
    __tablename__ = "payments"

    payment_id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.order_id"), nullable=False, index=True)
    payment_date = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    payment_method = Column(Enum(PaymentMethod, values_callable=lambda e: [m.value for m in e]), nullable=False)
    reference_number = Column(String(100), nullable=True)
    transaction_id = Column(String(64), nullable=False, unique=True)
    status = Column(Enum(PaymentRecordStatus, values_callable=lambda e: [m.value for m in e]), default=PaymentRecordStatus.COMPLETED, nullable=False)
    notes = Column(Text, nullable=True)
    processed_by = Column(String(100), nullable=True)
    receipt_number = Column(String(64), nullable=True)
    refund_amount = Column(Numeric(12, 2), default=0, nullable=False)
    refund_reason = Column(Text, nullable=True)

    # Relationships
    order = relationship("Order", back_populates="payments")
