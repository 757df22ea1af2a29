from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Literal
from datetime import date
from decimal import Decimal

PayCheck = Literal["paid", "pending", "partial"]

# Request and response bodies keep the ledger's historical key names
# (itemNum, NAME, totalAmount, payCheck); attributes use snake_case.


class LegacyRegisterBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    name: str = Field(..., alias="NAME", min_length=1, max_length=150)
    descr: str = ""
    quan: Optional[int] = Field(None, ge=0)
    unitprice: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    amntword: Optional[str] = None
    duedate: Optional[date] = None
    deliverdate: Optional[date] = None
    total_amount: Decimal = Field(Decimal("0"), alias="totalAmount", ge=0, decimal_places=2)
    mobnum: int = Field(..., gt=0)
    pay_check: PayCheck = Field("pending", alias="payCheck")
    col: Optional[str] = None
    siz: Optional[str] = None


class LegacyRegisterCreate(LegacyRegisterBase):
    pass


class LegacyRegisterPatch(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = Field(None, alias="NAME", min_length=1, max_length=150)
    descr: Optional[str] = None
    quan: Optional[int] = Field(None, ge=0)
    unitprice: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    amntword: Optional[str] = None
    duedate: Optional[date] = None
    deliverdate: Optional[date] = None
    total_amount: Optional[Decimal] = Field(None, alias="totalAmount", ge=0, decimal_places=2)
    mobnum: Optional[int] = Field(None, gt=0)
    pay_check: Optional[PayCheck] = Field(None, alias="payCheck")
    col: Optional[str] = None
    siz: Optional[str] = None


class LegacyPaymentUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    pay_check: PayCheck = Field(..., alias="payCheck")
    total_amount: Optional[Decimal] = Field(None, alias="totalAmount", ge=0, decimal_places=2)


class LegacyRegisterRecord(LegacyRegisterBase):
    item_num: int = Field(..., alias="itemNum")
