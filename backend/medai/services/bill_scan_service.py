"""
Bill-scan ingestion.

A photographed supplier bill goes to the extraction service; the returned
rows land in a `StagedBill` where they can be corrected, added or removed.
Only `confirm()` turns them into catalog medicines (stock = quantity,
sold = 0), all in one commit. Extraction output is never committed on its
own.

`BillScanner` keeps one busy flag: while a scan is in flight another one is
refused. A failed scan clears the flag and stages nothing.
"""
import logging
import threading
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional

from pydantic import ValidationError
from sqlalchemy.orm import Session

from billscan.bill_schema import BillItem, DEFAULT_CATEGORY
from billscan.extractor import BillExtractor, GroqBillExtractor
from billscan.prompts import FIELD_ALIASES
from medai.core.audit import AuditLog
from medai.core.config import settings
from medai.core.exceptions import (
    InvalidAmountError,
    MissingSelectionError,
    RecordNotFoundError,
    ScanBusyError,
    ScanError,
)
from medai.core.ids import new_id
from medai.models.medicine import Medicine
from medai.schemas.medicine import MedicineCreate, parse_expiry
from medai.services.medicine_service import batch_add_medicines

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = set(BillItem.model_fields)
NUMERIC_FIELDS = {"cost_price", "mrp", "stock"}


def _row_error(index: int, error: ValidationError):
    """First validation problem of a staged row as a correctable error."""
    first = error.errors()[0]
    field = str(first["loc"][0]) if first.get("loc") else "row"
    message = f"Row {index + 1}: {field} {first['msg'].lower()}"
    if field in NUMERIC_FIELDS:
        return InvalidAmountError(message)
    return MissingSelectionError(message)


class StagedBill:
    """Editable list of extracted rows awaiting confirmation."""

    def __init__(self, items: Optional[List[BillItem]] = None):
        self.id = new_id()
        self.items: List[BillItem] = list(items or [])
        self.created_at = datetime.utcnow()

    def _check_index(self, index: int):
        if not 0 <= index < len(self.items):
            raise RecordNotFoundError("Bill row", str(index))

    def update_item(self, index: int, field: str, value) -> BillItem:
        """Set one field of one row; numeric fields coerce junk to 0."""
        self._check_index(index)
        field = FIELD_ALIASES.get(field, field)
        if field not in EDITABLE_FIELDS:
            raise MissingSelectionError(f"Unknown bill field: {field}")
        data = self.items[index].model_dump()
        data[field] = value
        self.items[index] = BillItem(**data)
        return self.items[index]

    def add_row(self, today: date = None) -> BillItem:
        row = BillItem.blank(today)
        self.items.append(row)
        return row

    def remove_item(self, index: int) -> BillItem:
        self._check_index(index)
        return self.items.pop(index)

    def discard(self):
        self.items = []

    def to_medicines(self, agency_id: Optional[str] = None, today: date = None) -> List[MedicineCreate]:
        """
        Convert rows to catalog entries.

        Blank names are refused so the pharmacist can fix the row. Negative
        numbers read off the bill are floored at 0. A missing or unreadable
        expiry becomes today + DEFAULT_SHELF_LIFE_DAYS.
        """
        today = today or date.today()
        default_expiry = today + timedelta(days=settings.DEFAULT_SHELF_LIFE_DAYS)
        medicines = []
        for index, item in enumerate(self.items):
            if not item.name:
                raise MissingSelectionError(f"Row {index + 1} has no medicine name")
            try:
                expiry = parse_expiry(item.expiry_date) or default_expiry
            except ValueError:
                expiry = default_expiry
            try:
                medicines.append(MedicineCreate(
                    name=item.name,
                    category=item.category or DEFAULT_CATEGORY,
                    cost_price=max(item.cost_price, 0),
                    mrp=max(item.mrp, 0),
                    stock=max(item.quantity, 0),
                    expiry_date=expiry,
                    agency_id=agency_id or None,
                ))
            except ValidationError as e:
                raise _row_error(index, e) from e
        return medicines

    def confirm(self, db: Session, agency_id: Optional[str] = None, today: date = None) -> List[Medicine]:
        if not self.items:
            raise MissingSelectionError("No bill items to save")
        medicines = batch_add_medicines(db, self.to_medicines(agency_id, today))
        AuditLog.log_action("commit", "bill_scan", self.id, changes={
            "agency_id": agency_id,
            "medicine_ids": [m.id for m in medicines],
        })
        self.items = []
        return medicines


class BillScanner:
    """Runs extractions one at a time and keeps the staged bills."""

    def __init__(self, extractor: BillExtractor = None, max_staged: int = None, ttl_minutes: int = None):
        self._extractor = extractor
        self._lock = threading.Lock()
        self.busy = False
        self.staged: Dict[str, StagedBill] = {}
        self.max_staged = settings.SCAN_STAGING_MAX if max_staged is None else max_staged
        self.ttl = timedelta(minutes=settings.SCAN_STAGING_TTL_MINUTES if ttl_minutes is None else ttl_minutes)

    @property
    def extractor(self) -> BillExtractor:
        if self._extractor is None:
            self._extractor = GroqBillExtractor()
        return self._extractor

    def scan(self, image_bytes: bytes, mime_type: str = "image/jpeg") -> StagedBill:
        """
        Extract a bill image into a new staged bill.

        Raises:
            MissingSelectionError: empty upload
            ScanBusyError: another scan is still running
            ScanError: the extraction service failed; nothing is staged
        """
        if not image_bytes:
            raise MissingSelectionError("No bill image uploaded")

        with self._lock:
            if self.busy:
                raise ScanBusyError()
            self.busy = True

        try:
            items = self.extractor.extract(image_bytes, mime_type)
        except ScanError as e:
            logger.warning(f"Bill scan failed: {e.detail}")
            raise
        except Exception as e:
            logger.error(f"Unexpected error during bill scan: {e}", exc_info=True)
            raise ScanError("Bill extraction service failed. Please retry.") from e
        finally:
            self.busy = False

        staged = self._keep(StagedBill(items))
        logger.info(f"Staged bill {staged.id} with {len(staged.items)} rows")
        return staged

    def stage_manual(self) -> StagedBill:
        """Empty staging list for typing a bill in by hand."""
        return self._keep(StagedBill())

    def _keep(self, staged: StagedBill) -> StagedBill:
        """Register a staged bill, dropping expired ones and the oldest beyond the cap."""
        cutoff = datetime.utcnow() - self.ttl
        for staged_id, old in list(self.staged.items()):
            if old.created_at < cutoff:
                logger.info(f"Dropping unconfirmed staged bill {staged_id}")
                del self.staged[staged_id]
        while self.staged and len(self.staged) >= self.max_staged:
            oldest = next(iter(self.staged))  # dicts keep insertion order
            logger.info(f"Staging full, dropping bill {oldest}")
            del self.staged[oldest]
        self.staged[staged.id] = staged
        return staged

    def get(self, staged_id: str) -> StagedBill:
        staged = self.staged.get(staged_id)
        if not staged:
            raise RecordNotFoundError("Staged bill", staged_id)
        return staged

    def discard(self, staged_id: str):
        self.get(staged_id).discard()
        del self.staged[staged_id]

    def confirm(self, db: Session, staged_id: str, agency_id: Optional[str] = None) -> List[Medicine]:
        medicines = self.get(staged_id).confirm(db, agency_id)
        del self.staged[staged_id]
        return medicines


_scanner: Optional[BillScanner] = None


def get_bill_scanner() -> BillScanner:
    """Process-wide scanner (one busy flag, one staging registry)."""
    global _scanner
    if _scanner is None:
        _scanner = BillScanner()
    return _scanner
