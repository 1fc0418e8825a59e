"""Medicine catalog: creation, quick stock adjustment, status and expiry filters."""
from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest
from pydantic import ValidationError

from medai.core.exceptions import (
    InsufficientStockError,
    InvalidAmountError,
    MissingSelectionError,
    RecordNotFoundError,
)
from medai.models.medicine import Medicine
from medai.models.patient import Patient
from medai.models.transaction import Transaction
from medai.schemas.medicine import MedicineCreate, MedicineUpdate, parse_expiry
from medai.services import medicine_service
from medai.services.patient_service import create_patient, list_patients
from medai.services.medicine_service import (
    EXPIRY_EXPIRED,
    EXPIRY_OK,
    EXPIRY_SOON,
    STOCK_AVAILABLE,
    STOCK_LOW,
    STOCK_OUT,
)

TODAY = date(2026, 10, 17)


def test_cost_from_base_price_and_gst(db):
    med = medicine_service.create_medicine(db, MedicineCreate(
        name="Azithromycin 500", base_price="100", gst_rate="12", mrp="150", stock=4,
    ))
    assert med.cost_price == Decimal("112.00")
    assert med.sold == 0


def test_create_requires_some_cost():
    with pytest.raises(ValidationError):
        MedicineCreate(name="No Cost", mrp="10")
    with pytest.raises(ValidationError):
        MedicineCreate(name="   ", cost_price="1", mrp="10")


def test_create_with_unknown_agency_refused(db):
    with pytest.raises(RecordNotFoundError):
        medicine_service.create_medicine(db, MedicineCreate(
            name="Orphan", cost_price="1", mrp="2", agency_id="missing",
        ))


def test_expiry_accepts_month_year():
    assert parse_expiry("06/2027") == date(2027, 6, 1)
    assert parse_expiry("2027-06-30") == date(2027, 6, 30)
    assert parse_expiry("") is None


def test_adjust_stock_moves_stock_only(db, make_medicine):
    med = make_medicine(stock=1)

    medicine_service.adjust_stock(db, med.id, +1)
    medicine_service.adjust_stock(db, med.id, -1)
    medicine_service.adjust_stock(db, med.id, -1)

    db.refresh(med)
    assert (med.stock, med.sold) == (0, 0)
    assert db.query(Transaction).count() == 0


def test_adjust_stock_never_goes_negative(db, make_medicine):
    med = make_medicine(stock=0)
    with pytest.raises(InsufficientStockError):
        medicine_service.adjust_stock(db, med.id, -1)
    db.refresh(med)
    assert med.stock == 0


@pytest.mark.parametrize("delta", [0, True, "1", 1.5])
def test_adjust_stock_rejects_bad_delta(db, make_medicine, delta):
    med = make_medicine(stock=3)
    with pytest.raises(InvalidAmountError):
        medicine_service.adjust_stock(db, med.id, delta)


def test_update_is_partial(db, make_medicine, agency):
    med = make_medicine(name="Cetirizine", mrp="5.50", stock=10)

    updated = medicine_service.update_medicine(db, med.id, MedicineUpdate(stock=25, agency_id=agency.id))

    assert updated.stock == 25
    assert updated.mrp == Decimal("5.50")
    assert updated.name == "Cetirizine"
    assert updated.agency_id == agency.id


def test_update_rejects_blank_name(db, make_medicine):
    med = make_medicine()
    with pytest.raises(MissingSelectionError):
        medicine_service.update_medicine(db, med.id, MedicineUpdate(name="  "))


def test_stock_status(make_medicine):
    assert medicine_service.stock_status(make_medicine(name="A", stock=0)) == STOCK_OUT
    assert medicine_service.stock_status(make_medicine(name="B", stock=9)) == STOCK_LOW
    assert medicine_service.stock_status(make_medicine(name="C", stock=10)) == STOCK_AVAILABLE


def test_expiry_filters(db, make_medicine):
    expired = make_medicine(name="Expired", expiry_date=TODAY - timedelta(days=1))
    soon = make_medicine(name="Soon", expiry_date=TODAY + timedelta(days=60))
    fine = make_medicine(name="Fine", expiry_date=TODAY + timedelta(days=200))

    assert medicine_service.expiry_status(expired, TODAY) == EXPIRY_EXPIRED
    assert medicine_service.expiry_status(soon, TODAY) == EXPIRY_SOON
    assert medicine_service.expiry_status(fine, TODAY) == EXPIRY_OK

    assert [m.id for m in medicine_service.list_by_expiry(db, "expired", TODAY)] == [expired.id]
    assert [m.id for m in medicine_service.list_by_expiry(db, "soon", TODAY)] == [soon.id]
    assert len(medicine_service.list_by_expiry(db, "all", TODAY)) == 3
    with pytest.raises(MissingSelectionError):
        medicine_service.list_by_expiry(db, "later", TODAY)


def test_empty_search_returns_catalog_in_order(db, make_medicine):
    names = ["Zinc", "Amoxicillin", "Mupirocin Cream"]
    for name in names:
        make_medicine(name=name)

    assert [m.name for m in medicine_service.list_medicines(db, "")] == names
    assert [m.name for m in medicine_service.list_medicines(db, "   ")] == names
    assert [m.name for m in medicine_service.list_medicines(db, None)] == names
    assert [m.name for m in medicine_service.list_medicines(db, "AMOX")] == ["Amoxicillin"]


def test_batch_add_is_all_or_nothing(db):
    items = [
        MedicineCreate(name="Good", cost_price="1", mrp="2", stock=3),
        MedicineCreate(name="Bad", cost_price="1", mrp="2", stock=3, agency_id="missing"),
    ]
    with pytest.raises(RecordNotFoundError):
        medicine_service.batch_add_medicines(db, items)
    assert medicine_service.list_medicines(db) == []


def test_listing_keeps_insertion_order_when_timestamps_tie(db):
    names = [f"Med{i:02d}" for i in range(12)]
    medicine_service.batch_add_medicines(db, [
        MedicineCreate(name=name, cost_price="1", mrp="2", stock=1) for name in names
    ])
    db.query(Medicine).update({Medicine.created_at: datetime(2026, 1, 1)}, synchronize_session=False)
    db.commit()

    assert [m.name for m in medicine_service.list_medicines(db, "")] == names


def test_patient_listing_keeps_insertion_order_when_timestamps_tie(db):
    names = ["Ramesh", "Sunita", "Anil", "Kavya"]
    for name in names:
        create_patient(db, name, "")
    db.query(Patient).update({Patient.created_at: datetime(2026, 1, 1)}, synchronize_session=False)
    db.commit()

    assert [p.name for p in list_patients(db, None)] == names
