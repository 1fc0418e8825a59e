"""Sales counter and transaction history."""
from datetime import date
from typing import List

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from medai.api.deps import get_db
from medai.schemas.transaction import SaleRequest, TransactionResponse
from medai.services import sale_service, transaction_service

router = APIRouter()


@router.post("/sales", response_model=TransactionResponse, status_code=201)
def create_sale(data: SaleRequest, db: Session = Depends(get_db)):
    """Checkout. Refused as a whole on missing patient, empty cart or short stock."""
    return sale_service.checkout(
        db,
        data.patient_id,
        data.lines,
        is_credit=data.is_credit,
        amount_paid=data.amount_paid,
        notes=data.notes,
    )


@router.get("/transactions", response_model=List[TransactionResponse])
def list_transactions(search: str | None = Query(None), db: Session = Depends(get_db)):
    return transaction_service.list_transactions(db, search)


@router.get("/transactions/export")
def export_transactions(search: str | None = Query(None), db: Session = Depends(get_db)):
    """Download the (filtered) history as CSV."""
    content = transaction_service.export_transactions_csv(db, search)
    return StreamingResponse(
        iter([content]),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename=transactions_report_{date.today()}.csv"},
    )


@router.get("/transactions/{transaction_id}", response_model=TransactionResponse)
def get_transaction(transaction_id: str, db: Session = Depends(get_db)):
    return transaction_service.get_transaction(db, transaction_id)
