from pydantic import BaseModel, Field, ValidationInfo, field_validator
from typing import Optional, List
from datetime import date, datetime
from decimal import Decimal
from models.orders import OrderStatus, PaymentStatus
from schemas.validators import check_not_null


class OrderItemCreate(BaseModel):
    item_name: str = Field(..., min_length=1, max_length=150)
    description: Optional[str] = None
    quantity: int = Field(..., gt=0)
    unit_price: Decimal = Field(..., ge=0, decimal_places=2)
    color: Optional[str] = None
    size: Optional[str] = None
    special_instructions: Optional[str] = None


class OrderItem(OrderItemCreate):
    item_id: int
    order_id: int
    total_price: Decimal

    class Config:
        from_attributes = True


class OrderBase(BaseModel):
    customer_id: int
    order_date: Optional[date] = None
    due_date: Optional[date] = None
    delivery_date: Optional[date] = None
    payment_method: Optional[str] = None
    discount: Decimal = Field(Decimal("0"), ge=0, decimal_places=2)
    notes: Optional[str] = None


class OrderCreate(OrderBase):
    items: List[OrderItemCreate] = Field(..., min_length=1)


class OrderUpdate(BaseModel):
    """Header fields; when ``items`` is given the line items are replaced and the total recomputed."""
    customer_id: Optional[int] = None
    order_date: Optional[date] = None
    due_date: Optional[date] = None
    delivery_date: Optional[date] = None
    status: Optional[OrderStatus] = None
    payment_method: Optional[str] = None
    discount: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    notes: Optional[str] = None
    items: Optional[List[OrderItemCreate]] = Field(None, min_length=1)

    @field_validator("customer_id", "order_date", "status", "discount")
    @classmethod
    def required_columns(cls, v, info: ValidationInfo):
        return check_not_null(v, info.field_name)


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


class Order(BaseModel):
    order_id: int
    order_number: str
    customer_id: int
    order_date: date
    due_date: Optional[date] = None
    delivery_date: Optional[date] = None
    status: OrderStatus
    payment_status: PaymentStatus
    payment_method: Optional[str] = None
    total_amount: Decimal
    paid_amount: Decimal
    discount: Decimal
    notes: Optional[str] = None
    created_by: Optional[str] = None
    updated_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class OrderSummary(Order):
    customer_name: Optional[str] = None
    phone_number: Optional[str] = None
    item_count: int = 0
    items_summary: Optional[str] = None
