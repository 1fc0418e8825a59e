from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class CreditResponse(BaseModel):
    id: str
    patient_id: str
    transaction_id: Optional[str] = None
    amount: float
    status: str
    notes: Optional[str] = None
    date: datetime
    paid_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CreditTotals(BaseModel):
    pending: float
    collected: float


class ReminderLink(BaseModel):
    credit_id: str
    phone: str
    message: str
    url: str
