"""
Shared fixtures: in-memory SQLite database, API client with the session
overridden, and a fake bill extractor so no test talks to Groq.
"""
import json
import sys
from datetime import date, timedelta
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent))

from billscan.extractor import parse_bill_response
from medai import models  # noqa: F401 - register models
from medai.api.deps import get_db, get_scanner
from medai.core.exceptions import ScanError
from medai.db.base import Base
from medai.main import app
from medai.schemas.medicine import MedicineCreate
from medai.services.agency_service import create_agency
from medai.services.bill_scan_service import BillScanner
from medai.services.medicine_service import create_medicine
from medai.services.patient_service import create_patient


class FakeExtractor:
    """Returns canned rows, or raises ScanError when `fail` is set."""

    def __init__(self, items=None, fail=False):
        self.items = items or []
        self.fail = fail
        self.calls = 0

    def extract(self, image_bytes, mime_type="image/jpeg"):
        self.calls += 1
        if self.fail:
            raise ScanError("Bill extraction service failed. Please retry.")
        return parse_bill_response(json.dumps({"items": self.items}))


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def extractor():
    return FakeExtractor(items=[
        {"name": "Paracetamol 500mg", "quantity": "20", "costPrice": "18.50", "mrp": "25", "expiryDate": "2027-06-30"},
        {"name": "Cough Syrup", "qty": "10 bottles", "cost_price": "₹ 55", "mrp": "abc", "category": "Syrup"},
    ])


@pytest.fixture
def scanner(extractor):
    return BillScanner(extractor=extractor)


@pytest.fixture
def client(engine, scanner):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        session = TestingSession()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_scanner] = lambda: scanner
    # no context manager: the lifespan would initialise the real database
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


@pytest.fixture
def patient(db):
    return create_patient(db, "Ramesh Kumar", "+91 98111 11111")


@pytest.fixture
def agency(db):
    return create_agency(db, "Sharma Pharma", "9876543210", "Main Market")


@pytest.fixture
def make_medicine(db):
    def _make(name="Paracetamol 500mg", cost_price="18.00", mrp="25.00", stock=10, **kwargs):
        kwargs.setdefault("expiry_date", date.today() + timedelta(days=400))
        return create_medicine(db, MedicineCreate(
            name=name, cost_price=cost_price, mrp=mrp, stock=stock, **kwargs
        ))
    return _make
