"""Bill line-item schema.

The extraction service is best-effort, so every field is coerced instead of
rejected: numbers that cannot be read become 0, missing text becomes a
default. Nothing is committed from here; rows go to a staging list first.
"""

import re
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import List

from pydantic import BaseModel, Field, field_validator

_NUMBER = re.compile(r"-?\d+(?:\.\d+)?")

DEFAULT_CATEGORY = "Tablet"


def coerce_decimal(value) -> Decimal:
    """Leading number of `value` as Decimal, or 0 when there is none.

    Examples:
        "₹ 1,250.50" -> Decimal("1250.50")
        "12 strips"  -> Decimal("12")
        "abc"        -> Decimal("0")
    """
    if value is None or isinstance(value, bool):
        return Decimal("0")
    if isinstance(value, (int, float, Decimal)):
        try:
            number = Decimal(str(value))
        except InvalidOperation:
            return Decimal("0")
        # inf and nan from JSON like 1e999 count as unreadable
        return number if number.is_finite() else Decimal("0")
    match = _NUMBER.search(str(value).replace(",", ""))
    return Decimal(match.group()) if match else Decimal("0")


def coerce_int(value) -> int:
    return int(coerce_decimal(value))


class BillItem(BaseModel):
    """One row read off a supplier bill."""
    name: str = ""
    quantity: int = 0
    cost_price: Decimal = Decimal("0")
    mrp: Decimal = Decimal("0")
    category: str = DEFAULT_CATEGORY
    expiry_date: str = ""

    @field_validator("name", "expiry_date", mode="before")
    @classmethod
    def clean_text(cls, v) -> str:
        if v is None:
            return ""
        return " ".join(str(v).split())

    @field_validator("category", mode="before")
    @classmethod
    def default_category(cls, v) -> str:
        text = " ".join(str(v).split()) if v is not None else ""
        return text or DEFAULT_CATEGORY

    @field_validator("quantity", mode="before")
    @classmethod
    def coerce_quantity(cls, v) -> int:
        return coerce_int(v)

    @field_validator("cost_price", "mrp", mode="before")
    @classmethod
    def coerce_price(cls, v) -> Decimal:
        return coerce_decimal(v)

    @classmethod
    def blank(cls, today: date = None) -> "BillItem":
        """Empty row added by hand in the staging editor."""
        today = today or date.today()
        return cls(name="", quantity=1, cost_price=0, mrp=0,
                   category=DEFAULT_CATEGORY, expiry_date=today.isoformat())


class ExtractedBill(BaseModel):
    """Top-level JSON object the vision model must return."""
    items: List[BillItem] = Field(default_factory=list)
