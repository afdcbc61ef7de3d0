# app/services/visit_service.py
import logging

from sqlalchemy.orm import Session

from app.core.database import atomic
from app.core.exceptions import NotFoundError
from app.models.visit import Visit
from app.schemas.visit import VisitCreate, VisitUpdate
from app.services.patient_service import get_patient
from app.services.user_service import get_doctor
from app.utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)


def create_visit(db: Session, *, payload: VisitCreate) -> Visit:
    get_patient(db, patient_id=payload.patient_id)
    get_doctor(db, doctor_id=payload.doctor_id)

    data = payload.model_dump()
    if data["visit_date"] is None:
        data["visit_date"] = utc_now()

    visit = Visit(**data)
    with atomic(db):
        db.add(visit)
    db.refresh(visit)

    logger.info("Recorded visit id=%s patient_id=%s doctor_id=%s", visit.id, visit.patient_id, visit.doctor_id)
    return visit


def get_visit(db: Session, *, visit_id: int) -> Visit:
    visit = db.get(Visit, visit_id)
    if not visit:
        raise NotFoundError.for_entity("Visit", visit_id)
    return visit


def list_visits(db: Session, *, skip: int = 0, limit: int = 100) -> list[Visit]:
    return (
        db.query(Visit)
        .order_by(Visit.visit_date.desc(), Visit.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def list_visits_for_patient(db: Session, *, patient_id: int) -> list[Visit]:
    get_patient(db, patient_id=patient_id)
    return (
        db.query(Visit)
        .filter(Visit.patient_id == patient_id)
        .order_by(Visit.visit_date.desc(), Visit.id.desc())
        .all()
    )


def list_visits_for_doctor(db: Session, *, doctor_id: int) -> list[Visit]:
    get_doctor(db, doctor_id=doctor_id)
    return (
        db.query(Visit)
        .filter(Visit.doctor_id == doctor_id)
        .order_by(Visit.visit_date.desc(), Visit.id.desc())
        .all()
    )


def update_visit(db: Session, *, visit_id: int, payload: VisitUpdate) -> Visit:
    visit = get_visit(db, visit_id=visit_id)

    update_data = {
        field: value
        for field, value in payload.model_dump(exclude_unset=True).items()
        if value is not None or field not in ("visit_date", "reason_for_visit")
    }

    with atomic(db):
        for field, value in update_data.items():
            setattr(visit, field, value)
    db.refresh(visit)
    return visit
