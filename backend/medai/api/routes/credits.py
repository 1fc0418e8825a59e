"""Credit (udhari) ledger."""
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from medai.api.deps import get_db
from medai.schemas.credit import CreditResponse, CreditTotals, ReminderLink
from medai.services import credit_service

router = APIRouter()


@router.get("", response_model=List[CreditResponse])
def list_credits(
    search: str | None = Query(None),
    status: str = Query("pending", description="all | pending | paid"),
    db: Session = Depends(get_db),
):
    return credit_service.list_credits(db, search, status)


@router.get("/totals", response_model=CreditTotals)
def get_totals(db: Session = Depends(get_db)):
    return credit_service.credit_totals(db)


@router.post("/{credit_id}/pay", response_model=CreditResponse)
def mark_paid(credit_id: str, db: Session = Depends(get_db)):
    return credit_service.mark_paid(db, credit_id)


@router.get("/{credit_id}/reminder", response_model=ReminderLink)
def get_reminder(credit_id: str, db: Session = Depends(get_db)):
    """WhatsApp link with a prefilled reminder message."""
    return credit_service.reminder_link(db, credit_id)
