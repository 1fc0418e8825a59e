"""Credit (udhari) ledger: listing, settlement and payment reminders."""
import logging
from datetime import datetime
from decimal import Decimal
from typing import Dict, List
from urllib.parse import quote

from sqlalchemy.orm import Session

from medai.core.audit import AuditLog
from medai.core.config import settings
from medai.core.exceptions import InvalidStateError, MissingSelectionError, RecordNotFoundError
from medai.core.utils import filter_by_term
from medai.models.credit import Credit, CREDIT_PAID, CREDIT_PENDING
from medai.models.patient import Patient

logger = logging.getLogger(__name__)

STATUS_FILTERS = ("all", CREDIT_PENDING, CREDIT_PAID)


def get_credit(db: Session, credit_id: str) -> Credit:
    credit = db.get(Credit, credit_id) if credit_id else None
    if not credit:
        raise RecordNotFoundError("Credit", credit_id)
    return credit


def list_credits(db: Session, search: str | None = None, status: str = "all") -> List[Credit]:
    """Credits oldest first, filtered by status and by patient name or phone."""
    if status not in STATUS_FILTERS:
        raise MissingSelectionError(f"Unknown credit status filter: {status}")

    q = db.query(Credit)
    if status != "all":
        q = q.filter(Credit.status == status)
    credits = q.order_by(Credit.date, Credit.seq).all()
    return filter_by_term(
        credits, search,
        lambda c: c.patient.name if c.patient else None,
        lambda c: c.patient.phone if c.patient else None,
    )


def mark_paid(db: Session, credit_id: str) -> Credit:
    """Settle a credit. One-way: a paid credit cannot be settled again or reopened."""
    credit = get_credit(db, credit_id)
    if credit.status != CREDIT_PENDING:
        raise InvalidStateError(f"Credit {credit_id} is already {credit.status}")

    credit.status = CREDIT_PAID
    credit.paid_at = datetime.utcnow()
    db.commit()
    db.refresh(credit)
    AuditLog.log_action("settle", "credit", credit.id, changes={
        "patient_id": credit.patient_id,
        "amount": credit.amount,
    })
    return credit


def credit_totals(db: Session) -> Dict[str, Decimal]:
    """Outstanding (pending) and collected (paid) sums over the whole ledger."""
    totals = {"pending": Decimal("0"), "collected": Decimal("0")}
    for credit in db.query(Credit).all():
        if credit.status == CREDIT_PENDING:
            totals["pending"] += credit.amount
        else:
            totals["collected"] += credit.amount
    return totals


def patient_outstanding(db: Session, patient_id: str) -> Decimal:
    credits = db.query(Credit).filter(
        Credit.patient_id == patient_id,
        Credit.status == CREDIT_PENDING,
    ).all()
    return sum((c.amount for c in credits), Decimal("0"))


def format_reminder(patient: Patient, credit: Credit) -> str:
    amount = f"{credit.amount:,.2f}".rstrip("0").rstrip(".")
    return (
        f"Hello {patient.name}, this is a reminder from {settings.PHARMACY_NAME} "
        f"regarding a pending payment of ₹{amount} from your visit on "
        f"{credit.date.strftime('%d %b %Y')}. "
        f"Please settle this at your earliest convenience. Thank you!"
    )


def reminder_link(db: Session, credit_id: str) -> Dict[str, str]:
    """
    WhatsApp deep link for a pending credit.

    The message is handed to the messaging app as-is; delivery is not tracked.
    """
    credit = get_credit(db, credit_id)
    if credit.status != CREDIT_PENDING:
        raise InvalidStateError("Reminders are only sent for pending credits")
    patient = credit.patient
    if not patient:
        raise RecordNotFoundError("Patient", credit.patient_id)

    phone = "".join(ch for ch in patient.phone if ch.isdigit())
    if not phone:
        raise MissingSelectionError(f"{patient.name} has no phone number on record")

    message = format_reminder(patient, credit)
    logger.info(f"Reminder prepared for credit {credit.id}")
    return {
        "credit_id": credit.id,
        "phone": phone,
        "message": message,
        "url": f"https://wa.me/{phone}?text={quote(message)}",
    }
