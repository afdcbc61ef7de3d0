# app/api/v1/endpoints/payments.py
import logging
from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.models.payment import Payment
from app.schemas.payment import PaymentCreate, PaymentResponse, PaymentTotalResponse
from app.services import payment_service

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
def create_payment(
    payload: PaymentCreate,
    db: Session = Depends(get_db),
) -> Payment:
    return payment_service.create_payment(db, payload=payload)


@router.get("", response_model=list[PaymentResponse])
def list_payments(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
) -> list[Payment]:
    return payment_service.list_payments(db, skip=skip, limit=limit)


@router.get("/by-date-range", response_model=list[PaymentResponse])
def list_payments_by_date_range(
    start_date: date = Query(...),
    end_date: date = Query(...),
    db: Session = Depends(get_db),
) -> list[Payment]:
    return payment_service.list_payments_by_date_range(db, start_date=start_date, end_date=end_date)


@router.get("/total-by-date", response_model=PaymentTotalResponse)
def total_payments_by_date(
    day: date = Query(..., alias="date"),
    db: Session = Depends(get_db),
) -> PaymentTotalResponse:
    total, count = payment_service.total_by_date(db, day=day)
    return PaymentTotalResponse(date=day, total_amount=total, payment_count=count)


@router.get("/by-patient/{patient_id}", response_model=list[PaymentResponse])
def list_payments_for_patient(
    patient_id: int,
    db: Session = Depends(get_db),
) -> list[Payment]:
    return payment_service.list_payments_for_patient(db, patient_id=patient_id)


@router.get("/by-prescription/{prescription_id}", response_model=list[PaymentResponse])
def list_payments_for_prescription(
    prescription_id: int,
    db: Session = Depends(get_db),
) -> list[Payment]:
    return payment_service.list_payments_for_prescription(db, prescription_id=prescription_id)


@router.get("/{payment_id}", response_model=PaymentResponse)
def get_payment(
    payment_id: int,
    db: Session = Depends(get_db),
) -> Payment:
    return payment_service.get_payment(db, payment_id=payment_id)
