from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

CATEGORIES = ["Tablet", "Capsule", "Syrup", "Injection", "Cream", "Drops", "Other"]
GST_RATES = [Decimal("5"), Decimal("12"), Decimal("18")]
# upper bounds of the Numeric(12, 2) and Integer columns
MAX_PRICE = Decimal("9999999999.99")
MAX_STOCK = 10_000_000


def parse_expiry(value):
    """Accept a date, `YYYY-MM-DD`, or the catalog form's `MM/YYYY`."""
    if value is None or isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    if "/" in text:
        month, year = text.split("/", 1)
        return date(int(year), int(month), 1)
    return date.fromisoformat(text[:10])


class MedicineCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    category: str = "Tablet"
    cost_price: Optional[Decimal] = Field(default=None, ge=0, le=MAX_PRICE)
    # Alternative to cost_price: base price + GST rate
    base_price: Optional[Decimal] = Field(default=None, ge=0, le=MAX_PRICE)
    gst_rate: Decimal = Field(default=Decimal("12"), ge=0)
    mrp: Decimal = Field(ge=0, le=MAX_PRICE)
    stock: int = Field(default=0, ge=0, le=MAX_STOCK)
    units_per_package: int = Field(default=1, ge=1)
    expiry_date: Optional[date] = None
    agency_id: Optional[str] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Medicine name cannot be empty")
        return v

    @field_validator("expiry_date", mode="before")
    @classmethod
    def coerce_expiry(cls, v):
        return parse_expiry(v)

    @model_validator(mode="after")
    def require_cost(self):
        if self.cost_price is None and self.base_price is None:
            raise ValueError("Either cost_price or base_price is required")
        return self


class MedicineUpdate(BaseModel):
    name: Optional[str] = None
    category: Optional[str] = None
    cost_price: Optional[Decimal] = Field(default=None, ge=0)
    mrp: Optional[Decimal] = Field(default=None, ge=0)
    stock: Optional[int] = Field(default=None, ge=0)
    units_per_package: Optional[int] = Field(default=None, ge=1)
    expiry_date: Optional[date] = None
    agency_id: Optional[str] = None

    @field_validator("expiry_date", mode="before")
    @classmethod
    def coerce_expiry(cls, v):
        return parse_expiry(v)


class StockAdjust(BaseModel):
    delta: int = 1


class MedicineResponse(BaseModel):
    id: str
    name: str
    category: str
    cost_price: float
    mrp: float
    stock: int
    sold: int
    units_per_package: int
    expiry_date: Optional[date] = None
    agency_id: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
