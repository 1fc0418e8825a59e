"""Patient registry."""
import logging
from typing import List

from sqlalchemy.orm import Session

from medai.core.config import settings
from medai.core.exceptions import MissingSelectionError, RecordNotFoundError
from medai.core.utils import filter_by_term
from medai.models.patient import Patient

logger = logging.getLogger(__name__)


def get_patient(db: Session, patient_id: str) -> Patient:
    patient = db.get(Patient, patient_id) if patient_id else None
    if not patient:
        raise RecordNotFoundError("Patient", patient_id)
    return patient


def create_patient(db: Session, name: str, phone: str = "") -> Patient:
    name = " ".join((name or "").split())
    if not name:
        raise MissingSelectionError("Patient name cannot be empty")
    patient = Patient(name=name, phone=(phone or "").strip())
    db.add(patient)
    db.commit()
    db.refresh(patient)
    logger.info(f"Registered patient {patient.id}")
    return patient


def list_patients(db: Session, search: str | None = None) -> List[Patient]:
    """Patients in registration order, optionally filtered by name or phone."""
    patients = db.query(Patient).order_by(Patient.seq).all()
    return filter_by_term(patients, search, lambda p: p.name, lambda p: p.phone)


def get_or_create_walk_in_patient(db: Session) -> Patient:
    """
    Stable placeholder patient for counter sales with no named customer.

    Looked up by name and phone from settings so every direct sale is
    attributed to the same row.
    """
    patient = db.query(Patient).filter(
        Patient.name == settings.WALK_IN_PATIENT_NAME,
        Patient.phone == settings.WALK_IN_PATIENT_PHONE,
    ).order_by(Patient.seq).first()
    if patient:
        return patient
    patient = Patient(name=settings.WALK_IN_PATIENT_NAME, phone=settings.WALK_IN_PATIENT_PHONE)
    db.add(patient)
    db.commit()
    db.refresh(patient)
    return patient
