from pydantic import BaseModel, EmailStr, Field, ValidationInfo, field_validator
from typing import Optional
from datetime import date, datetime
from decimal import Decimal
from models.customers import CustomerStatus
from schemas.validators import check_full_name, check_not_null, check_phone


class CustomerBase(BaseModel):
    customer_name: str = Field(..., max_length=150)
    phone_number: str = Field(..., max_length=32)
    email: Optional[EmailStr] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    status: CustomerStatus = CustomerStatus.ACTIVE

    @field_validator("customer_name")
    @classmethod
    def full_name(cls, v: str) -> str:
        return check_full_name(v)

    @field_validator("phone_number")
    @classmethod
    def phone_format(cls, v: str) -> str:
        return check_phone(v)


class CustomerCreate(CustomerBase):
    pass


class CustomerUpdate(BaseModel):
    customer_name: Optional[str] = Field(None, max_length=150)
    phone_number: Optional[str] = Field(None, max_length=32)
    email: Optional[EmailStr] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    status: Optional[CustomerStatus] = None

    @field_validator("customer_name", "phone_number", "status")
    @classmethod
    def required_columns(cls, v, info: ValidationInfo):
        return check_not_null(v, info.field_name)

    @field_validator("customer_name")
    @classmethod
    def full_name(cls, v: Optional[str]) -> Optional[str]:
        return check_full_name(v) if v is not None else v

    @field_validator("phone_number")
    @classmethod
    def phone_format(cls, v: Optional[str]) -> Optional[str]:
        return check_phone(v) if v is not None else v


class Customer(BaseModel):
    customer_id: int
    customer_name: str
    phone_number: str
    email: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    status: CustomerStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    created_by: Optional[str] = None
    updated_by: Optional[str] = None

    class Config:
        from_attributes = True


class CustomerWithStats(Customer):
    total_orders: int = 0
    total_spent: Decimal = Decimal("0")
    last_order_date: Optional[date] = None
