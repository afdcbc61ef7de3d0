# app/services/prescription_service.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.orm import Session, selectinload

from app.core.database import atomic
from app.core.exceptions import (
    InsufficientStockError,
    InvalidArgumentError,
    NotFoundError,
    OverDispenseError,
)
from app.models.inventory import InventoryTransaction, TransactionType
from app.models.medicine import Medicine
from app.models.prescription import Prescription, PrescriptionItem, PrescriptionStatus
from app.models.visit import Visit
from app.schemas.prescription import PrescriptionCreate
from app.services.inventory_service import lock_medicine, record_transaction
from app.services.patient_service import get_patient
from app.services.user_service import get_doctor, get_user
from app.utils.money import quantize_money

logger = logging.getLogger(__name__)

PRESCRIPTION_REFERENCE = "prescription"


@dataclass
class DispenseResult:
    prescription: Prescription
    item: PrescriptionItem
    remaining_stock: int
    transaction: InventoryTransaction


def create_prescription(db: Session, *, payload: PrescriptionCreate) -> Prescription:
    """
    Create a prescription and its items.

    Each item snapshots the medicine's current unit price; the prescription
    total is the sum of the item totals and is never recomputed.
    """
    get_patient(db, patient_id=payload.patient_id)
    get_doctor(db, doctor_id=payload.doctor_id)

    if payload.visit_id is not None:
        visit = db.get(Visit, payload.visit_id)
        if not visit:
            raise NotFoundError.for_entity("Visit", payload.visit_id)
        if visit.patient_id != payload.patient_id:
            raise InvalidArgumentError(
                f"Visit {payload.visit_id} does not belong to patient {payload.patient_id}"
            )

    items: list[PrescriptionItem] = []
    total = Decimal("0")
    for item_in in payload.items:
        medicine = db.get(Medicine, item_in.medicine_id)
        if not medicine:
            raise NotFoundError.for_entity("Medicine", item_in.medicine_id)

        unit_price = quantize_money(medicine.unit_price)
        line_total = quantize_money(unit_price * item_in.quantity)
        total += line_total
        items.append(
            PrescriptionItem(
                medicine_id=medicine.id,
                quantity_prescribed=item_in.quantity,
                quantity_dispensed=0,
                dosage_instructions=item_in.dosage_instructions,
                duration_days=item_in.duration_days,
                unit_price=unit_price,
                total_price=line_total,
            )
        )

    prescription = Prescription(
        patient_id=payload.patient_id,
        doctor_id=payload.doctor_id,
        visit_id=payload.visit_id,
        diagnosis=payload.diagnosis,
        notes=payload.notes,
        status=PrescriptionStatus.PENDING,
        total_amount=quantize_money(total),
        items=items,
    )
    with atomic(db):
        db.add(prescription)
    db.refresh(prescription)

    logger.info(
        "Created prescription id=%s patient_id=%s items=%s total=%s",
        prescription.id,
        prescription.patient_id,
        len(items),
        prescription.total_amount,
    )
    return prescription


def _base_query(db: Session):
    return db.query(Prescription).options(
        selectinload(Prescription.items).selectinload(PrescriptionItem.medicine)
    )


def get_prescription(db: Session, *, prescription_id: int) -> Prescription:
    prescription = _base_query(db).filter(Prescription.id == prescription_id).first()
    if not prescription:
        raise NotFoundError.for_entity("Prescription", prescription_id)
    return prescription


def list_prescriptions(
    db: Session,
    *,
    status: PrescriptionStatus | None = None,
    skip: int = 0,
    limit: int = 100,
) -> list[Prescription]:
    query = _base_query(db)
    if status is not None:
        query = query.filter(Prescription.status == status)
    return (
        query.order_by(Prescription.created_at.desc(), Prescription.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def list_pending_prescriptions(db: Session) -> list[Prescription]:
    """Oldest first, the order a pharmacy works the queue."""
    return (
        _base_query(db)
        .filter(Prescription.status == PrescriptionStatus.PENDING)
        .order_by(Prescription.created_at.asc(), Prescription.id.asc())
        .all()
    )


def list_prescriptions_for_patient(db: Session, *, patient_id: int) -> list[Prescription]:
    get_patient(db, patient_id=patient_id)
    return (
        _base_query(db)
        .filter(Prescription.patient_id == patient_id)
        .order_by(Prescription.created_at.desc(), Prescription.id.desc())
        .all()
    )


def list_prescriptions_for_doctor(db: Session, *, doctor_id: int) -> list[Prescription]:
    get_doctor(db, doctor_id=doctor_id)
    return (
        _base_query(db)
        .filter(Prescription.doctor_id == doctor_id)
        .order_by(Prescription.created_at.desc(), Prescription.id.desc())
        .all()
    )


def list_prescription_items(db: Session, *, prescription_id: int) -> list[PrescriptionItem]:
    return get_prescription(db, prescription_id=prescription_id).items


def update_status(
    db: Session,
    *,
    prescription_id: int,
    status: PrescriptionStatus,
) -> Prescription:
    """Manual status override (e.g. closing a prescription the patient will not collect)."""
    prescription = get_prescription(db, prescription_id=prescription_id)
    previous = prescription.status

    with atomic(db):
        prescription.status = status
    db.refresh(prescription)

    logger.info("Prescription id=%s status %s -> %s", prescription_id, previous.value, status.value)
    return prescription


def _derive_status(items: list[PrescriptionItem]) -> PrescriptionStatus:
    if items and all(item.quantity_dispensed >= item.quantity_prescribed for item in items):
        return PrescriptionStatus.FILLED
    if any(item.quantity_dispensed > 0 for item in items):
        return PrescriptionStatus.PARTIALLY_FILLED
    return PrescriptionStatus.PENDING


def _lock_prescription(db: Session, *, prescription_id: int) -> Prescription:
    prescription = (
        db.query(Prescription)
        .filter(Prescription.id == prescription_id)
        .with_for_update()
        .first()
    )
    if not prescription:
        raise NotFoundError.for_entity("Prescription", prescription_id)
    return prescription


def dispense_medicine(
    db: Session,
    *,
    prescription_id: int,
    medicine_id: int,
    quantity: int,
    performed_by: int,
) -> DispenseResult:
    """
    Hand out `quantity` units of one prescribed medicine.

    The prescription, item and medicine rows are locked in that order, so
    dispenses against one prescription run one at a time and the status is
    derived from committed item quantities. The stock decrement, the item
    update, the ledger row and the status change commit together.
    """
    if quantity <= 0:
        raise InvalidArgumentError("Quantity to dispense must be greater than 0")

    get_user(db, user_id=performed_by)

    with atomic(db):
        prescription = _lock_prescription(db, prescription_id=prescription_id)
        item = (
            db.query(PrescriptionItem)
            .filter(
                PrescriptionItem.prescription_id == prescription_id,
                PrescriptionItem.medicine_id == medicine_id,
            )
            .with_for_update()
            .first()
        )
        if not item:
            raise NotFoundError(
                f"Prescription item for prescription {prescription_id} and medicine {medicine_id} not found"
            )

        new_dispensed = item.quantity_dispensed + quantity
        if new_dispensed > item.quantity_prescribed:
            raise OverDispenseError(
                f"Cannot dispense {quantity}: only {item.quantity_remaining} of "
                f"{item.quantity_prescribed} remaining on this prescription"
            )

        medicine = lock_medicine(db, medicine_id=medicine_id)
        if medicine.current_stock < quantity:
            raise InsufficientStockError(medicine.name, medicine.current_stock, quantity)

        medicine.current_stock -= quantity
        item.quantity_dispensed = new_dispensed

        transaction = record_transaction(
            db,
            medicine=medicine,
            transaction_type=TransactionType.SUBTRACTION,
            quantity=quantity,
            reason=f"Dispensed for prescription {prescription_id}",
            performed_by=performed_by,
            reference_id=prescription_id,
            reference_type=PRESCRIPTION_REFERENCE,
        )

        prescription.status = _derive_status(prescription.items)

    db.refresh(item)
    db.refresh(medicine)
    db.refresh(transaction)
    db.refresh(prescription)

    logger.info(
        "Dispensed %s of medicine_id=%s for prescription id=%s (stock now %s, status %s)",
        quantity,
        medicine_id,
        prescription_id,
        medicine.current_stock,
        prescription.status.value,
    )
    return DispenseResult(
        prescription=prescription,
        item=item,
        remaining_stock=medicine.current_stock,
        transaction=transaction,
    )
