from sqlalchemy import Column, Integer, Numeric, Date, Text, UniqueConstraint

from database import Base
from models.audit_mixin import AuditMixin


class DailyCashClose(Base, AuditMixin):
    __tablename__ = "daily_cash_close"
    __table_args__ = (UniqueConstraint('close_date', name='uq_daily_cash_close_date'),)

    close_id = Column(Integer, primary_key=True, index=True)
    close_date = Column(Date, nullable=False, index=True)
    cash_amount = Column(Numeric(12, 2), default=0, nullable=False)
    card_amount = Column(Numeric(12, 2), default=0, nullable=False)
    mobile_amount = Column(Numeric(12, 2), default=0, nullable=False)
    bank_transfer_amount = Column(Numeric(12, 2), default=0, nullable=False)
    total_amount = Column(Numeric(12, 2), nullable=False)
    expenses_amount = Column(Numeric(12, 2), default=0, nullable=False)
    notes = Column(Text, nullable=True)
