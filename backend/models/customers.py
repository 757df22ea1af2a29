import enum

from sqlalchemy import Column, Integer, String, Text, Enum, UniqueConstraint
from sqlalchemy.orm import relationship

from database import Base
from models.audit_mixin import AuditMixin


class CustomerStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class Customer(Base, AuditMixin):
    __tablename__ = "customers"
    # active_phone_number mirrors phone_number while the row is live and is
    # cleared on soft delete, so the unique index only covers live customers.
    __table_args__ = (UniqueConstraint('active_phone_number', name='uq_customers_active_phone'),)

    customer_id = Column(Integer, primary_key=True, index=True)
    customer_name = Column(String(150), nullable=False)
    phone_number = Column(String(32), nullable=False, index=True)
    active_phone_number = Column(String(32), nullable=True)
    email = Column(String(150), nullable=True)
    address = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    status = Column(Enum(CustomerStatus, values_callable=lambda e: [m.value for m in e]), default=CustomerStatus.ACTIVE, nullable=False)

    # Relationships
    orders = relationship("Order", back_populates="customer")
