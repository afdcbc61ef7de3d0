# app/api/v1/endpoints/prescriptions.py
import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.models.prescription import Prescription, PrescriptionItem, PrescriptionStatus
from app.schemas.prescription import (
    DispenseRequest,
    DispenseResponse,
    PrescriptionCreate,
    PrescriptionItemResponse,
    PrescriptionResponse,
    PrescriptionStatusUpdate,
)
from app.services import prescription_service

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("", response_model=PrescriptionResponse, status_code=status.HTTP_201_CREATED)
def create_prescription(
    payload: PrescriptionCreate,
    db: Session = Depends(get_db),
) -> Prescription:
    """
    Create a prescription; item prices are snapshotted from the medicines.
    """
    return prescription_service.create_prescription(db, payload=payload)


@router.get("", response_model=list[PrescriptionResponse])
def list_prescriptions(
    status_filter: PrescriptionStatus | None = Query(None, alias="status"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
) -> list[Prescription]:
    return prescription_service.list_prescriptions(db, status=status_filter, skip=skip, limit=limit)


@router.get("/pending", response_model=list[PrescriptionResponse])
def list_pending_prescriptions(
    db: Session = Depends(get_db),
) -> list[Prescription]:
    return prescription_service.list_pending_prescriptions(db)


@router.get("/by-patient/{patient_id}", response_model=list[PrescriptionResponse])
def list_prescriptions_for_patient(
    patient_id: int,
    db: Session = Depends(get_db),
) -> list[Prescription]:
    return prescription_service.list_prescriptions_for_patient(db, patient_id=patient_id)


@router.get("/by-doctor/{doctor_id}", response_model=list[PrescriptionResponse])
def list_prescriptions_for_doctor(
    doctor_id: int,
    db: Session = Depends(get_db),
) -> list[Prescription]:
    return prescription_service.list_prescriptions_for_doctor(db, doctor_id=doctor_id)


@router.get("/{prescription_id}", response_model=PrescriptionResponse)
def get_prescription(
    prescription_id: int,
    db: Session = Depends(get_db),
) -> Prescription:
    return prescription_service.get_prescription(db, prescription_id=prescription_id)


@router.patch("/{prescription_id}/status", response_model=PrescriptionResponse)
def update_prescription_status(
    prescription_id: int,
    payload: PrescriptionStatusUpdate,
    db: Session = Depends(get_db),
) -> Prescription:
    return prescription_service.update_status(db, prescription_id=prescription_id, status=payload.status)


@router.post("/{prescription_id}/dispense", response_model=DispenseResponse)
def dispense_medicine(
    prescription_id: int,
    payload: DispenseRequest,
    db: Session = Depends(get_db),
) -> DispenseResponse:
    """
    Dispense part or all of one prescribed medicine.

    Errors:
    - 404 when the prescription, item or performer does not exist
    - 400 when the quantity exceeds what remains on the prescription
    - 409 when there is not enough stock
    """
    result = prescription_service.dispense_medicine(
        db,
        prescription_id=prescription_id,
        medicine_id=payload.medicine_id,
        quantity=payload.quantity,
        performed_by=payload.performed_by,
    )
    return DispenseResponse(
        prescription_id=result.prescription.id,
        prescription_status=result.prescription.status,
        item=PrescriptionItemResponse.model_validate(result.item),
        remaining_stock=result.remaining_stock,
        transaction_id=result.transaction.id,
    )


@router.get("/{prescription_id}/items", response_model=list[PrescriptionItemResponse])
def list_prescription_items(
    prescription_id: int,
    db: Session = Depends(get_db),
) -> list[PrescriptionItem]:
    return prescription_service.list_prescription_items(db, prescription_id=prescription_id)
