# app/api/v1/endpoints/visits.py
import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.models.visit import Visit
from app.schemas.visit import VisitCreate, VisitResponse, VisitUpdate
from app.services import visit_service

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("", response_model=VisitResponse, status_code=status.HTTP_201_CREATED)
def create_visit(
    payload: VisitCreate,
    db: Session = Depends(get_db),
) -> Visit:
    return visit_service.create_visit(db, payload=payload)


@router.get("", response_model=list[VisitResponse])
def list_visits(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
) -> list[Visit]:
    return visit_service.list_visits(db, skip=skip, limit=limit)


@router.get("/by-patient/{patient_id}", response_model=list[VisitResponse])
def list_visits_for_patient(
    patient_id: int,
    db: Session = Depends(get_db),
) -> list[Visit]:
    return visit_service.list_visits_for_patient(db, patient_id=patient_id)


@router.get("/by-doctor/{doctor_id}", response_model=list[VisitResponse])
def list_visits_for_doctor(
    doctor_id: int,
    db: Session = Depends(get_db),
) -> list[Visit]:
    return visit_service.list_visits_for_doctor(db, doctor_id=doctor_id)


@router.get("/{visit_id}", response_model=VisitResponse)
def get_visit(
    visit_id: int,
    db: Session = Depends(get_db),
) -> Visit:
    return visit_service.get_visit(db, visit_id=visit_id)


@router.patch("/{visit_id}", response_model=VisitResponse)
def update_visit(
    visit_id: int,
    payload: VisitUpdate,
    db: Session = Depends(get_db),
) -> Visit:
    return visit_service.update_visit(db, visit_id=visit_id, payload=payload)
