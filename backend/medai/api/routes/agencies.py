"""Agency partners and their bills."""
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from medai.api.deps import get_db
from medai.schemas.agency import (
    AgencyBillCreate,
    AgencyBillResponse,
    AgencyCreate,
    AgencyResponse,
    BillPayment,
)
from medai.services import agency_service

router = APIRouter()


@router.get("", response_model=list)
def list_agencies(db: Session = Depends(get_db)):
    """Suppliers with product count and outstanding balance."""
    counts = agency_service.product_counts(db)
    result = []
    for agency in agency_service.list_agencies(db):
        data = AgencyResponse.model_validate(agency).model_dump()
        data["products"] = counts.get(agency.id, 0)
        data["outstanding"] = float(agency_service.agency_outstanding(db, agency.id))
        result.append(data)
    return result


@router.post("", response_model=AgencyResponse, status_code=201)
def create_agency(data: AgencyCreate, db: Session = Depends(get_db)):
    return agency_service.create_agency(db, data.name, data.contact, data.address)


@router.delete("/{agency_id}", response_model=dict)
def delete_agency(agency_id: str, db: Session = Depends(get_db)):
    name = agency_service.delete_agency(db, agency_id)
    return {"message": f"Deleted {name}", "id": agency_id}


# ==============================================================================
# BILLS
# ==============================================================================

@router.get("/bills", response_model=List[AgencyBillResponse])
def list_bills(
    agency_id: str | None = Query(None),
    status: str = Query("all", description="all | pending | paid"),
    db: Session = Depends(get_db),
):
    return agency_service.list_bills(db, agency_id, status)


@router.post("/bills", response_model=AgencyBillResponse, status_code=201)
def create_bill(data: AgencyBillCreate, db: Session = Depends(get_db)):
    return agency_service.create_bill(
        db,
        data.agency_id,
        data.bill_number,
        data.total_amount,
        paid_amount=data.paid_amount,
        bill_date=data.date,
    )


@router.post("/bills/{bill_id}/payments", response_model=AgencyBillResponse)
def pay_bill(bill_id: str, body: BillPayment, db: Session = Depends(get_db)):
    """
    Apply a payment. Amounts above the pending balance return 409 unless
    `confirm_overpayment` is set.
    """
    return agency_service.apply_payment(db, bill_id, body.amount, body.confirm_overpayment)
