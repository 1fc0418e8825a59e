"""Small helpers shared by the services."""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Callable, Iterable, List, TypeVar

from medai.core.exceptions import InvalidAmountError

T = TypeVar("T")

CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    """Decimal rounded to paise. Raises InvalidAmountError on non-numeric input."""
    if isinstance(value, bool):
        raise InvalidAmountError(f"Invalid amount: {value!r}")
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise InvalidAmountError(f"Invalid amount: {value!r}")
    if not amount.is_finite():
        raise InvalidAmountError(f"Invalid amount: {value!r}")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def filter_by_term(records: Iterable[T], term: str | None, *fields: Callable[[T], str | None]) -> List[T]:
    """
    Case-insensitive substring filter over the given field getters.

    An empty or blank term returns every record, in the original order.
    """
    records = list(records)
    needle = (term or "").strip().lower()
    if not needle:
        return records
    return [
        r for r in records
        if any(needle in (get(r) or "").lower() for get in fields)
    ]
