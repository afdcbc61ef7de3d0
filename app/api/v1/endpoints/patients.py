# app/api/v1/endpoints/patients.py
import logging

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.models.patient import Patient
from app.schemas.patient import PatientCreate, PatientResponse, PatientUpdate
from app.services import patient_service

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("", response_model=PatientResponse, status_code=status.HTTP_201_CREATED)
def create_patient(
    payload: PatientCreate,
    db: Session = Depends(get_db),
) -> Patient:
    return patient_service.create_patient(db, payload=payload)


@router.get("", response_model=list[PatientResponse])
def list_patients(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
) -> list[Patient]:
    return patient_service.list_patients(db, skip=skip, limit=limit)


@router.get("/search", response_model=list[PatientResponse])
def search_patients(
    q: str = Query(..., min_length=1, description="Matches name, phone or email (case-insensitive)"),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
) -> list[Patient]:
    return patient_service.search_patients(db, query=q, limit=limit)


@router.get("/{patient_id}", response_model=PatientResponse)
def get_patient(
    patient_id: int,
    db: Session = Depends(get_db),
) -> Patient:
    return patient_service.get_patient(db, patient_id=patient_id)


@router.patch("/{patient_id}", response_model=PatientResponse)
def update_patient(
    patient_id: int,
    payload: PatientUpdate,
    db: Session = Depends(get_db),
) -> Patient:
    return patient_service.update_patient(db, patient_id=patient_id, payload=payload)


@router.delete("/{patient_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_patient(
    patient_id: int,
    db: Session = Depends(get_db),
) -> Response:
    """
    Delete a patient. Patients with visits, prescriptions or payments are kept (409).
    """
    patient_service.delete_patient(db, patient_id=patient_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
