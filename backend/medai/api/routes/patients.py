"""Patient registry."""
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from medai.api.deps import get_db
from medai.schemas.patient import PatientCreate, PatientResponse
from medai.services import credit_service, patient_service

router = APIRouter()


@router.get("", response_model=List[PatientResponse])
def list_patients(search: str | None = Query(None), db: Session = Depends(get_db)):
    return patient_service.list_patients(db, search)


@router.post("", response_model=PatientResponse, status_code=201)
def create_patient(data: PatientCreate, db: Session = Depends(get_db)):
    return patient_service.create_patient(db, data.name, data.phone)


@router.get("/{patient_id}", response_model=dict)
def get_patient(patient_id: str, db: Session = Depends(get_db)):
    """Patient with the amount still owed on pending credits."""
    patient = patient_service.get_patient(db, patient_id)
    data = PatientResponse.model_validate(patient).model_dump()
    data["outstanding_credit"] = float(credit_service.patient_outstanding(db, patient.id))
    return data
