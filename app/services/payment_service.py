# app/services/payment_service.py
import logging
from datetime import date
from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.database import atomic
from app.core.exceptions import InvalidArgumentError, NotFoundError
from app.models.payment import Payment
from app.models.prescription import Prescription
from app.schemas.payment import PaymentCreate
from app.services.patient_service import get_patient
from app.services.user_service import get_user
from app.utils.datetime_utils import day_bounds, range_bounds
from app.utils.money import quantize_money

logger = logging.getLogger(__name__)


def create_payment(db: Session, *, payload: PaymentCreate) -> Payment:
    """
    Record a payment.

    When a prescription is given it must exist and belong to the same patient.
    """
    if payload.amount <= 0:
        raise InvalidArgumentError("Payment amount must be greater than 0")

    get_patient(db, patient_id=payload.patient_id)
    get_user(db, user_id=payload.processed_by)

    if payload.prescription_id is not None:
        prescription = db.get(Prescription, payload.prescription_id)
        if not prescription:
            raise NotFoundError.for_entity("Prescription", payload.prescription_id)
        if prescription.patient_id != payload.patient_id:
            raise InvalidArgumentError(
                f"Prescription {payload.prescription_id} does not belong to patient {payload.patient_id}"
            )

    data = payload.model_dump()
    data["amount"] = quantize_money(payload.amount)
    payment = Payment(**data)
    with atomic(db):
        db.add(payment)
    db.refresh(payment)

    logger.info(
        "Recorded payment id=%s patient_id=%s amount=%s method=%s",
        payment.id,
        payment.patient_id,
        payment.amount,
        payment.payment_method.value,
    )
    return payment


def get_payment(db: Session, *, payment_id: int) -> Payment:
    payment = db.get(Payment, payment_id)
    if not payment:
        raise NotFoundError.for_entity("Payment", payment_id)
    return payment


def list_payments(db: Session, *, skip: int = 0, limit: int = 100) -> list[Payment]:
    return (
        db.query(Payment)
        .order_by(Payment.created_at.desc(), Payment.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def list_payments_for_patient(db: Session, *, patient_id: int) -> list[Payment]:
    get_patient(db, patient_id=patient_id)
    return (
        db.query(Payment)
        .filter(Payment.patient_id == patient_id)
        .order_by(Payment.created_at.desc(), Payment.id.desc())
        .all()
    )


def list_payments_for_prescription(db: Session, *, prescription_id: int) -> list[Payment]:
    if not db.get(Prescription, prescription_id):
        raise NotFoundError.for_entity("Prescription", prescription_id)
    return (
        db.query(Payment)
        .filter(Payment.prescription_id == prescription_id)
        .order_by(Payment.created_at.asc(), Payment.id.asc())
        .all()
    )


def list_payments_by_date_range(db: Session, *, start_date: date, end_date: date) -> list[Payment]:
    if start_date > end_date:
        raise InvalidArgumentError("start_date must be on or before end_date")

    start, end = range_bounds(start_date, end_date)
    return (
        db.query(Payment)
        .filter(Payment.created_at >= start, Payment.created_at < end)
        .order_by(Payment.created_at.asc(), Payment.id.asc())
        .all()
    )


def total_by_date(db: Session, *, day: date) -> tuple[Decimal, int]:
    """Sum and count of payments taken on one UTC calendar day."""
    start, end = day_bounds(day)
    total, count = (
        db.query(func.coalesce(func.sum(Payment.amount), 0), func.count(Payment.id))
        .filter(Payment.created_at >= start, Payment.created_at < end)
        .one()
    )
    return quantize_money(total), int(count)
