"""Agency registry and supplier bill ledger."""
import logging
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from medai.core.audit import AuditLog
from medai.core.exceptions import (
    InvalidAmountError,
    InvalidStateError,
    MissingSelectionError,
    OverpaymentNotConfirmedError,
    RecordNotFoundError,
)
from medai.core.utils import to_money
from medai.models.agency import Agency, AgencyBill
from medai.models.medicine import Medicine

logger = logging.getLogger(__name__)


def pending_for(total_amount: Decimal, paid_amount: Decimal) -> Decimal:
    """Outstanding balance; never negative."""
    return max(Decimal("0"), total_amount - paid_amount)


# ==============================================================================
# AGENCIES
# ==============================================================================

def get_agency(db: Session, agency_id: str) -> Agency:
    agency = db.get(Agency, agency_id) if agency_id else None
    if not agency:
        raise RecordNotFoundError("Agency", agency_id)
    return agency


def create_agency(db: Session, name: str, contact: str = "", address: str = "") -> Agency:
    name = " ".join((name or "").split())
    if not name:
        raise MissingSelectionError("Agency name cannot be empty")
    agency = Agency(name=name, contact=(contact or "").strip(), address=(address or "").strip())
    db.add(agency)
    db.commit()
    db.refresh(agency)
    AuditLog.log_action("create", "agency", agency.id, changes={"name": agency.name})
    return agency


def list_agencies(db: Session) -> List[Agency]:
    return db.query(Agency).order_by(Agency.seq).all()


def product_counts(db: Session) -> Dict[str, int]:
    """Number of catalog medicines linked to each agency."""
    rows = db.query(Medicine.agency_id, func.count(Medicine.id)).filter(
        Medicine.agency_id.isnot(None)
    ).group_by(Medicine.agency_id).all()
    return {agency_id: count for agency_id, count in rows}


def delete_agency(db: Session, agency_id: str) -> str:
    """
    Delete a supplier. Refused while bills reference it, since bills are
    ledger history. Linked medicines simply lose their supplier tag.
    """
    agency = get_agency(db, agency_id)
    bill_count = db.query(func.count(AgencyBill.id)).filter(AgencyBill.agency_id == agency.id).scalar() or 0
    if bill_count:
        raise InvalidStateError(f"Agency {agency.name} has {bill_count} bill(s) and cannot be deleted")

    name = agency.name
    db.query(Medicine).filter(Medicine.agency_id == agency.id).update(
        {Medicine.agency_id: None}, synchronize_session=False
    )
    db.delete(agency)
    db.commit()
    AuditLog.log_action("delete", "agency", agency_id, changes={"name": name})
    return name


# ==============================================================================
# AGENCY BILLS
# ==============================================================================

def get_bill(db: Session, bill_id: str) -> AgencyBill:
    bill = db.get(AgencyBill, bill_id) if bill_id else None
    if not bill:
        raise RecordNotFoundError("Agency bill", bill_id)
    return bill


def create_bill(
    db: Session,
    agency_id: Optional[str],
    bill_number: str,
    total_amount,
    paid_amount=0,
    bill_date: Optional[date] = None,
) -> AgencyBill:
    if not agency_id:
        raise MissingSelectionError("Select an agency for the bill")
    agency = get_agency(db, agency_id)
    bill_number = (bill_number or "").strip()
    if not bill_number:
        raise MissingSelectionError("Bill number is required")

    total = to_money(total_amount)
    paid = to_money(paid_amount)
    if total < 0 or paid < 0:
        raise InvalidAmountError("Bill amounts cannot be negative")

    bill = AgencyBill(
        agency_id=agency.id,
        bill_number=bill_number,
        date=bill_date or date.today(),
        total_amount=total,
        paid_amount=paid,
        pending_amount=pending_for(total, paid),
    )
    db.add(bill)
    db.commit()
    db.refresh(bill)
    AuditLog.log_action("create", "agency_bill", bill.id, changes={
        "agency_id": agency.id, "total_amount": total, "paid_amount": paid,
    })
    return bill


def apply_payment(db: Session, bill_id: str, amount, confirm_overpayment: bool = False) -> AgencyBill:
    """
    Record a payment against a supplier bill.

    paid += amount and pending = max(0, total - paid). A payment larger than
    the pending balance needs `confirm_overpayment=True`; the excess is then
    written to the audit log and not carried forward as a balance.

    Raises:
        InvalidAmountError: non-numeric, zero or negative amount
        OverpaymentNotConfirmedError: amount > pending without confirmation
    """
    payment = to_money(amount)
    if payment <= 0:
        raise InvalidAmountError("Payment amount must be greater than zero")

    bill = get_bill(db, bill_id)
    pending_before = to_money(bill.pending_amount)
    if payment > pending_before:
        if not confirm_overpayment:
            raise OverpaymentNotConfirmedError(payment, pending_before)
        AuditLog.log_overpayment(bill.id, payment, pending_before)

    bill.paid_amount = to_money(bill.paid_amount) + payment
    bill.pending_amount = pending_for(to_money(bill.total_amount), bill.paid_amount)
    db.commit()
    db.refresh(bill)

    logger.info(f"Payment {payment} applied to bill {bill.bill_number}; pending {bill.pending_amount}")
    AuditLog.log_action("pay", "agency_bill", bill.id, changes={
        "amount": payment,
        "paid_amount": bill.paid_amount,
        "pending_amount": bill.pending_amount,
    })
    return bill


def list_bills(db: Session, agency_id: Optional[str] = None, status: str = "all") -> List[AgencyBill]:
    """status: all | pending | paid"""
    q = db.query(AgencyBill)
    if agency_id:
        q = q.filter(AgencyBill.agency_id == agency_id)
    if status == "pending":
        q = q.filter(AgencyBill.pending_amount > 0)
    elif status == "paid":
        q = q.filter(AgencyBill.pending_amount <= 0)
    elif status != "all":
        raise MissingSelectionError(f"Unknown bill status filter: {status}")
    return q.order_by(AgencyBill.date, AgencyBill.seq).all()


def agency_outstanding(db: Session, agency_id: str) -> Decimal:
    """Total still owed to one supplier across all its bills."""
    get_agency(db, agency_id)
    total = db.query(func.sum(AgencyBill.pending_amount)).filter(
        AgencyBill.agency_id == agency_id
    ).scalar()
    return to_money(total or 0)
