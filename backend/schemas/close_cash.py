from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import date, datetime
from decimal import Decimal


class CashCloseCreate(BaseModel):
    # Required-ness of close_date/total_amount is checked by validate_cash_close
    # so the caller gets the same message from /validate and /close.
    close_date: Optional[date] = None
    cash_amount: Decimal = Field(Decimal("0"), decimal_places=2)
    card_amount: Decimal = Field(Decimal("0"), decimal_places=2)
    mobile_amount: Decimal = Field(Decimal("0"), decimal_places=2)
    bank_transfer_amount: Decimal = Field(Decimal("0"), decimal_places=2)
    total_amount: Optional[Decimal] = Field(None, decimal_places=2)
    expenses_amount: Decimal = Field(Decimal("0"), decimal_places=2)
    notes: Optional[str] = None


class CashCloseUpdate(BaseModel):
    cash_amount: Optional[Decimal] = Field(None, decimal_places=2)
    card_amount: Optional[Decimal] = Field(None, decimal_places=2)
    mobile_amount: Optional[Decimal] = Field(None, decimal_places=2)
    bank_transfer_amount: Optional[Decimal] = Field(None, decimal_places=2)
    total_amount: Optional[Decimal] = Field(None, decimal_places=2)
    expenses_amount: Optional[Decimal] = Field(None, decimal_places=2)
    notes: Optional[str] = None


class CashCloseValidation(BaseModel):
    valid: bool
    error: Optional[str] = None


class CashClose(BaseModel):
    close_id: int
    close_date: date
    cash_amount: Decimal
    card_amount: Decimal
    mobile_amount: Decimal
    bank_transfer_amount: Decimal
    total_amount: Decimal
    expenses_amount: Decimal
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    created_by: Optional[str] = None
    updated_by: Optional[str] = None

    class Config:
        from_attributes = True


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    totalPages: int


class CashCloseHistory(BaseModel):
    records: List[CashClose]
    pagination: Pagination
