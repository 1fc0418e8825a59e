from datetime import date as date_type
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class AgencyCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    contact: str = ""
    address: str = ""


class AgencyResponse(BaseModel):
    id: str
    name: str
    contact: str
    address: str

    class Config:
        from_attributes = True


class AgencyBillCreate(BaseModel):
    agency_id: str
    bill_number: str = Field(min_length=1, max_length=64)
    date: Optional[date_type] = None
    total_amount: Decimal = Field(ge=0)
    paid_amount: Decimal = Field(default=Decimal("0"), ge=0)


class BillPayment(BaseModel):
    # checked by the service so "abc" and -5 map to InvalidAmountError
    amount: str | float
    confirm_overpayment: bool = False


class AgencyBillResponse(BaseModel):
    id: str
    agency_id: str
    bill_number: str
    date: date_type
    total_amount: float
    paid_amount: float
    pending_amount: float

    class Config:
        from_attributes = True
