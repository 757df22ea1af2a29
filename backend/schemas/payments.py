from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from decimal import Decimal
from models.payments import PaymentMethod, PaymentRecordStatus


class PaymentCreate(BaseModel):
    order_id: int
    amount: Decimal = Field(..., decimal_places=2)
    payment_method: str
    payment_date: Optional[datetime] = None
    reference_number: Optional[str] = None
    transaction_id: Optional[str] = None
    notes: Optional[str] = None


class PaymentValidation(BaseModel):
    valid: bool
    error: Optional[str] = None


class RefundRequest(BaseModel):
    refund_amount: Decimal = Field(..., gt=0, decimal_places=2)
    refund_reason: str = Field(..., min_length=1)


class Payment(BaseModel):
    payment_id: int
    order_id: int
    payment_date: datetime
    amount: Decimal
    payment_method: PaymentMethod
    reference_number: Optional[str] = None
    transaction_id: str
    status: PaymentRecordStatus
    notes: Optional[str] = None
    processed_by: Optional[str] = None
    receipt_number: Optional[str] = None
    refund_amount: Decimal = Decimal("0")
    refund_reason: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
