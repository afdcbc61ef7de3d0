# app/services/patient_service.py
import logging

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.core.database import atomic
from app.core.exceptions import ConflictError, NotFoundError
from app.models.patient import Patient
from app.models.payment import Payment
from app.models.prescription import Prescription
from app.models.visit import Visit
from app.schemas.patient import PatientCreate, PatientUpdate

logger = logging.getLogger(__name__)

# Columns a PATCH may change but never clear
_REQUIRED_FIELDS = frozenset({"first_name", "last_name", "date_of_birth", "gender", "phone"})


def create_patient(db: Session, *, payload: PatientCreate) -> Patient:
    patient = Patient(**payload.model_dump())
    with atomic(db):
        db.add(patient)
    db.refresh(patient)

    logger.info("Registered patient id=%s", patient.id)
    return patient


def get_patient(db: Session, *, patient_id: int) -> Patient:
    patient = db.get(Patient, patient_id)
    if not patient:
        raise NotFoundError.for_entity("Patient", patient_id)
    return patient


def list_patients(db: Session, *, skip: int = 0, limit: int = 100) -> list[Patient]:
    return (
        db.query(Patient)
        .order_by(Patient.last_name.asc(), Patient.first_name.asc(), Patient.id.asc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def search_patients(db: Session, *, query: str, limit: int = 50) -> list[Patient]:
    """
    Case-insensitive substring match on name, phone and email.
    """
    term = query.strip()
    if not term:
        return []

    pattern = f"%{term}%"
    return (
        db.query(Patient)
        .filter(
            or_(
                Patient.first_name.ilike(pattern),
                Patient.last_name.ilike(pattern),
                Patient.phone.ilike(pattern),
                Patient.email.ilike(pattern),
            )
        )
        .order_by(Patient.last_name.asc(), Patient.first_name.asc())
        .limit(limit)
        .all()
    )


def update_patient(db: Session, *, patient_id: int, payload: PatientUpdate) -> Patient:
    patient = get_patient(db, patient_id=patient_id)

    update_data = {
        field: value
        for field, value in payload.model_dump(exclude_unset=True).items()
        if value is not None or field not in _REQUIRED_FIELDS
    }
    with atomic(db):
        for field, value in update_data.items():
            setattr(patient, field, value)
    db.refresh(patient)

    logger.info("Updated patient id=%s fields=%s", patient_id, sorted(update_data))
    return patient


def delete_patient(db: Session, *, patient_id: int) -> None:
    """
    Delete a patient with no clinical or billing history.

    Patients referenced by visits, prescriptions or payments cannot be deleted.
    """
    patient = get_patient(db, patient_id=patient_id)

    for model, label in ((Visit, "visits"), (Prescription, "prescriptions"), (Payment, "payments")):
        referenced = db.query(model.id).filter(model.patient_id == patient_id).first()
        if referenced:
            raise ConflictError(f"Patient {patient_id} has {label} and cannot be deleted")

    with atomic(db):
        db.delete(patient)

    logger.info("Deleted patient id=%s", patient_id)
