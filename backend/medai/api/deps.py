"""FastAPI dependencies: DB session and the bill scanner."""
from typing import Generator

from sqlalchemy.orm import Session

from medai.db.session import SessionLocal
from medai.services.bill_scan_service import BillScanner, get_bill_scanner


def get_db() -> Generator[Session, None, None]:
    """Get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_scanner() -> BillScanner:
    return get_bill_scanner()
