"""Medicine catalog and stock view."""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from medai.api.deps import get_db
from medai.core.utils import filter_by_term
from medai.schemas.medicine import MedicineCreate, MedicineResponse, MedicineUpdate, StockAdjust
from medai.schemas.transaction import QuickSaleRequest, TransactionResponse
from medai.services import medicine_service, sale_service

router = APIRouter()


def _with_status(medicine) -> dict:
    data = MedicineResponse.model_validate(medicine).model_dump()
    data["stock_status"] = medicine_service.stock_status(medicine)
    data["expiry_status"] = medicine_service.expiry_status(medicine)
    # "In Stock" column of the stock view: everything ever received
    data["total_received"] = medicine.stock + medicine.sold
    return data


@router.get("", response_model=list)
def list_medicines(
    search: str | None = Query(None),
    expiry: str = Query("all", description="all | expired | soon"),
    db: Session = Depends(get_db),
):
    """Catalog with stock and expiry status. Empty search returns everything."""
    medicines = filter_by_term(
        medicine_service.list_by_expiry(db, expiry),
        search, lambda m: m.name, lambda m: m.category,
    )
    return [_with_status(m) for m in medicines]


@router.post("", response_model=dict, status_code=201)
def create_medicine(data: MedicineCreate, db: Session = Depends(get_db)):
    return _with_status(medicine_service.create_medicine(db, data))


@router.get("/{medicine_id}", response_model=dict)
def get_medicine(medicine_id: str, db: Session = Depends(get_db)):
    return _with_status(medicine_service.get_medicine(db, medicine_id))


@router.patch("/{medicine_id}", response_model=dict)
def update_medicine(medicine_id: str, updates: MedicineUpdate, db: Session = Depends(get_db)):
    return _with_status(medicine_service.update_medicine(db, medicine_id, updates))


@router.delete("/{medicine_id}", response_model=dict)
def delete_medicine(medicine_id: str, db: Session = Depends(get_db)):
    name = medicine_service.delete_medicine(db, medicine_id)
    return {"message": f"Deleted {name}", "id": medicine_id}


@router.post("/{medicine_id}/adjust", response_model=dict)
def adjust_stock(medicine_id: str, body: StockAdjust, db: Session = Depends(get_db)):
    """Quick +1/-1 correction. No transaction is recorded."""
    return _with_status(medicine_service.adjust_stock(db, medicine_id, body.delta))


@router.post("/quick-sale", response_model=TransactionResponse, status_code=201)
def quick_sale(body: QuickSaleRequest, db: Session = Depends(get_db)):
    """Direct counter sale by medicine name to the walk-in patient."""
    return sale_service.quick_sale(db, body.medicine, body.units)
