"""Medicine catalog: CRUD, quick stock adjustment, expiry and stock status."""
import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional

from dateutil.relativedelta import relativedelta
from sqlalchemy import func
from sqlalchemy.orm import Session

from medai.core.audit import AuditLog
from medai.core.config import settings
from medai.core.exceptions import (
    InsufficientStockError,
    InvalidAmountError,
    MissingSelectionError,
    RecordNotFoundError,
)
from medai.core.utils import filter_by_term, to_money
from medai.models.agency import Agency
from medai.models.medicine import Medicine
from medai.models.transaction import TransactionLine
from medai.schemas.medicine import MedicineCreate, MedicineUpdate

logger = logging.getLogger(__name__)

EXPIRY_EXPIRED = "expired"
EXPIRY_SOON = "soon"
EXPIRY_OK = "ok"
EXPIRY_UNKNOWN = "unknown"

STOCK_OUT = "out_of_stock"
STOCK_LOW = "low_stock"
STOCK_AVAILABLE = "available"


def cost_with_gst(base_price, gst_rate) -> Decimal:
    """Per-unit cost price including GST: base + base * rate / 100."""
    base = to_money(base_price)
    rate = Decimal(str(gst_rate))
    return to_money(base + base * rate / Decimal("100"))


def get_medicine(db: Session, medicine_id: str) -> Medicine:
    medicine = db.get(Medicine, medicine_id) if medicine_id else None
    if not medicine:
        raise RecordNotFoundError("Medicine", medicine_id)
    return medicine


def _check_agency(db: Session, agency_id: Optional[str]) -> Optional[str]:
    if not agency_id:
        return None
    if not db.get(Agency, agency_id):
        raise RecordNotFoundError("Agency", agency_id)
    return agency_id


def _build_medicine(db: Session, data: MedicineCreate) -> Medicine:
    cost = data.cost_price if data.cost_price is not None else cost_with_gst(data.base_price, data.gst_rate)
    return Medicine(
        name=data.name,
        category=data.category or "Tablet",
        cost_price=to_money(cost),
        mrp=to_money(data.mrp),
        stock=data.stock,
        sold=0,
        units_per_package=data.units_per_package,
        expiry_date=data.expiry_date,
        agency_id=_check_agency(db, data.agency_id),
    )


def create_medicine(db: Session, data: MedicineCreate) -> Medicine:
    medicine = _build_medicine(db, data)
    db.add(medicine)
    db.commit()
    db.refresh(medicine)
    AuditLog.log_action("create", "medicine", medicine.id, changes={"name": medicine.name, "stock": medicine.stock})
    return medicine


def batch_add_medicines(db: Session, items: List[MedicineCreate]) -> List[Medicine]:
    """Add several medicines in one commit; nothing is written if any row is invalid."""
    try:
        medicines = [_build_medicine(db, item) for item in items]
        db.add_all(medicines)
        db.commit()
    except Exception:
        db.rollback()
        raise
    for medicine in medicines:
        db.refresh(medicine)
    logger.info(f"Batch added {len(medicines)} medicines")
    return medicines


def update_medicine(db: Session, medicine_id: str, updates: MedicineUpdate) -> Medicine:
    """
    Partial update. Editing mrp/cost_price never touches past transactions,
    which keep their sale-time prices.
    """
    medicine = get_medicine(db, medicine_id)
    data = updates.model_dump(exclude_unset=True)

    if "name" in data:
        name = " ".join((data["name"] or "").split())
        if not name:
            raise MissingSelectionError("Medicine name cannot be empty")
        data["name"] = name
    if data.get("stock") is not None and data["stock"] < 0:
        raise InvalidAmountError("Stock cannot be negative")
    for key in ("cost_price", "mrp"):
        if data.get(key) is not None:
            data[key] = to_money(data[key])
    if "agency_id" in data:
        data["agency_id"] = _check_agency(db, data["agency_id"])

    changes = {}
    for key, value in data.items():
        if value is None and key not in ("agency_id", "expiry_date"):
            continue
        changes[key] = [getattr(medicine, key), value]
        setattr(medicine, key, value)

    db.commit()
    db.refresh(medicine)
    if changes:
        AuditLog.log_action("update", "medicine", medicine.id, changes=changes)
    return medicine


def delete_medicine(db: Session, medicine_id: str) -> str:
    """Delete a catalog entry. Transaction lines keep the medicine name."""
    medicine = get_medicine(db, medicine_id)
    name = medicine.name
    db.query(TransactionLine).filter(TransactionLine.medicine_id == medicine.id).update(
        {TransactionLine.medicine_id: None}, synchronize_session=False
    )
    db.delete(medicine)
    db.commit()
    AuditLog.log_action("delete", "medicine", medicine_id, changes={"name": name})
    return name


def adjust_stock(db: Session, medicine_id: str, delta: int = 1) -> Medicine:
    """
    Manual stock correction by `delta` (normally +1 or -1).

    Creates no transaction and leaves `sold` alone. A decrement below zero is
    refused, not clamped.
    """
    if isinstance(delta, bool) or not isinstance(delta, int) or delta == 0:
        raise InvalidAmountError(f"Invalid stock adjustment: {delta!r}")

    medicine = get_medicine(db, medicine_id)
    new_stock = medicine.stock + delta
    if new_stock < 0:
        raise InsufficientStockError(medicine.name, -delta, medicine.stock)

    before = medicine.stock
    medicine.stock = new_stock
    db.commit()
    db.refresh(medicine)
    AuditLog.log_action("adjust", "medicine", medicine.id, changes={"stock": [before, new_stock]})
    return medicine


def list_medicines(db: Session, search: str | None = None) -> List[Medicine]:
    """Catalog in insertion order, optionally filtered by name or category."""
    medicines = db.query(Medicine).order_by(Medicine.seq).all()
    return filter_by_term(medicines, search, lambda m: m.name, lambda m: m.category)


def find_by_name(db: Session, query: str) -> Medicine:
    """
    Resolve a medicine from typed text.

    Exact (case-insensitive) name match wins; otherwise the partial match
    must be unique.
    """
    text = " ".join((query or "").split()).lower()
    if not text:
        raise MissingSelectionError("Medicine name is required")

    exact = db.query(Medicine).filter(func.lower(Medicine.name) == text).order_by(Medicine.seq).first()
    if exact:
        return exact

    partial = filter_by_term(list_medicines(db), text, lambda m: m.name)
    if not partial:
        raise MissingSelectionError(f"No medicine matches '{query}'")
    if len(partial) > 1:
        names = ", ".join(m.name for m in partial[:5])
        raise MissingSelectionError(f"'{query}' matches several medicines: {names}")
    return partial[0]


def stock_status(medicine: Medicine, threshold: int = None) -> str:
    threshold = settings.LOW_STOCK_THRESHOLD if threshold is None else threshold
    if medicine.stock <= 0:
        return STOCK_OUT
    if medicine.stock < threshold:
        return STOCK_LOW
    return STOCK_AVAILABLE


def expiry_status(medicine: Medicine, today: date = None) -> str:
    """`expired` before today, `soon` within EXPIRY_WARNING_MONTHS, else `ok`."""
    if medicine.expiry_date is None:
        return EXPIRY_UNKNOWN
    today = today or date.today()
    if medicine.expiry_date < today:
        return EXPIRY_EXPIRED
    if medicine.expiry_date <= today + relativedelta(months=settings.EXPIRY_WARNING_MONTHS):
        return EXPIRY_SOON
    return EXPIRY_OK


def list_by_expiry(db: Session, expiry_filter: str = "all", today: date = None) -> List[Medicine]:
    """expiry_filter: all | expired | soon"""
    medicines = list_medicines(db)
    if expiry_filter == "all":
        return medicines
    if expiry_filter not in (EXPIRY_EXPIRED, EXPIRY_SOON):
        raise MissingSelectionError(f"Unknown expiry filter: {expiry_filter}")
    return [m for m in medicines if expiry_status(m, today) == expiry_filter]
