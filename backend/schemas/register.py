from pydantic import BaseModel, EmailStr, Field, ValidationInfo, field_validator
from typing import Optional, List, Any
from datetime import datetime
from decimal import Decimal
from models.register import DeliveryStatus
from schemas.validators import check_not_null, check_phone


class RegisterCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    customer_name: Optional[str] = Field(None, max_length=150)
    phone: str = Field(..., max_length=32)
    email: Optional[EmailStr] = None
    laundry_items: Optional[List[Any]] = None
    drop_off_date: Optional[datetime] = None
    total_amount: Decimal = Field(Decimal("0"), ge=0, decimal_places=2)
    paid_amount: Decimal = Field(Decimal("0"), ge=0, decimal_places=2)
    payment_status: str = "pending"
    notes: Optional[str] = None

    @field_validator("name", "customer_name")
    @classmethod
    def strip_text(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v else v

    @field_validator("phone")
    @classmethod
    def phone_format(cls, v: str) -> str:
        return check_phone(v, min_digits=1)


class RegisterUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    customer_name: Optional[str] = Field(None, max_length=150)
    phone: Optional[str] = Field(None, max_length=32)
    email: Optional[EmailStr] = None
    laundry_items: Optional[List[Any]] = None
    drop_off_date: Optional[datetime] = None
    total_amount: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    paid_amount: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    payment_status: Optional[str] = None
    delivery_status: Optional[DeliveryStatus] = None
    notes: Optional[str] = None

    @field_validator("name", "phone", "drop_off_date", "total_amount", "paid_amount", "payment_status", "delivery_status")
    @classmethod
    def required_columns(cls, v, info: ValidationInfo):
        return check_not_null(v, info.field_name)

    @field_validator("phone")
    @classmethod
    def phone_format(cls, v: Optional[str]) -> Optional[str]:
        return check_phone(v, min_digits=1) if v is not None else v


class DeliveryStatusUpdate(BaseModel):
    delivery_status: DeliveryStatus
    notes: Optional[str] = None


class RegisterRecord(BaseModel):
    id: int
    name: str
    customer_name: Optional[str] = None
    phone: str
    email: Optional[str] = None
    laundry_items: Optional[List[Any]] = None
    drop_off_date: Optional[datetime] = None
    pickup_date: Optional[datetime] = None
    delivery_status: DeliveryStatus
    total_amount: Decimal
    paid_amount: Decimal
    balance: Decimal = Decimal("0")
    payment_status: str
    notes: Optional[str] = None
    receipt_number: str
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    created_by: Optional[str] = None
    updated_by: Optional[str] = None

    class Config:
        from_attributes = True
