from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class PatientCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    phone: str = Field(default="", max_length=64)


class PatientResponse(BaseModel):
    id: str
    name: str
    phone: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
