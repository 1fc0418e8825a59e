from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field


class SaleLine(BaseModel):
    medicine_id: str
    quantity: int = Field(gt=0)


class SaleRequest(BaseModel):
    patient_id: Optional[str] = None
    lines: List[SaleLine] = []
    is_credit: bool = False
    amount_paid: Optional[Decimal] = None
    notes: Optional[str] = None


class QuickSaleRequest(BaseModel):
    medicine: str = Field(min_length=1)
    units: int = Field(default=1, gt=0)


class TransactionLineResponse(BaseModel):
    medicine_id: Optional[str] = None
    medicine_name: str
    quantity: int
    unit_price: float
    price: float

    class Config:
        from_attributes = True


class TransactionResponse(BaseModel):
    id: str
    patient_id: str
    lines: List[TransactionLineResponse]
    total_amount: float
    paid_amount: float
    credit_amount: float
    total_cost: float
    profit: float
    is_credit: bool
    date: datetime

    class Config:
        from_attributes = True
