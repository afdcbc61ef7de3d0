# app/services/medicine_service.py
import logging
from datetime import timedelta

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.core.database import atomic
from app.core.exceptions import ConflictError, InvalidArgumentError, NotFoundError
from app.models.inventory import InventoryTransaction, TransactionType
from app.models.medicine import Medicine
from app.models.prescription import PrescriptionItem
from app.schemas.medicine import MedicineCreate, MedicineUpdate
from app.services.inventory_service import lock_medicine, record_transaction
from app.services.user_service import get_user
from app.utils.datetime_utils import utc_today

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = frozenset({"name", "unit_price", "minimum_stock_level", "requires_prescription"})


def create_medicine(db: Session, *, payload: MedicineCreate) -> Medicine:
    """
    Add a medicine to the catalogue. `current_stock` is the opening balance
    and is not written to the ledger.
    """
    medicine = Medicine(**payload.model_dump())
    with atomic(db):
        db.add(medicine)
    db.refresh(medicine)

    logger.info("Created medicine id=%s name=%s opening_stock=%s", medicine.id, medicine.name, medicine.current_stock)
    return medicine


def get_medicine(db: Session, *, medicine_id: int) -> Medicine:
    medicine = db.get(Medicine, medicine_id)
    if not medicine:
        raise NotFoundError.for_entity("Medicine", medicine_id)
    return medicine


def list_medicines(db: Session, *, skip: int = 0, limit: int = 100) -> list[Medicine]:
    return (
        db.query(Medicine)
        .order_by(Medicine.name.asc(), Medicine.id.asc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def search_medicines(db: Session, *, query: str, limit: int = 50) -> list[Medicine]:
    term = query.strip()
    if not term:
        return []

    pattern = f"%{term}%"
    return (
        db.query(Medicine)
        .filter(
            or_(
                Medicine.name.ilike(pattern),
                Medicine.description.ilike(pattern),
                Medicine.supplier_name.ilike(pattern),
                Medicine.batch_number.ilike(pattern),
            )
        )
        .order_by(Medicine.name.asc())
        .limit(limit)
        .all()
    )


def list_low_stock(db: Session) -> list[Medicine]:
    """Medicines below their minimum level, largest shortage first."""
    shortage = Medicine.minimum_stock_level - Medicine.current_stock
    return (
        db.query(Medicine)
        .filter(Medicine.current_stock < Medicine.minimum_stock_level)
        .order_by(shortage.desc(), Medicine.name.asc())
        .all()
    )


def list_expiring(db: Session, *, days: int) -> list[Medicine]:
    """Medicines whose expiry date falls within the next `days` days (already expired excluded)."""
    if days < 0:
        raise InvalidArgumentError("days cannot be negative")

    today = utc_today()
    return (
        db.query(Medicine)
        .filter(Medicine.expiry_date.is_not(None))
        .filter(Medicine.expiry_date >= today)
        .filter(Medicine.expiry_date <= today + timedelta(days=days))
        .order_by(Medicine.expiry_date.asc(), Medicine.name.asc())
        .all()
    )


def update_medicine(db: Session, *, medicine_id: int, payload: MedicineUpdate) -> Medicine:
    medicine = get_medicine(db, medicine_id=medicine_id)

    update_data = {
        field: value
        for field, value in payload.model_dump(exclude_unset=True).items()
        if value is not None or field not in _REQUIRED_FIELDS
    }
    with atomic(db):
        for field, value in update_data.items():
            setattr(medicine, field, value)
    db.refresh(medicine)

    logger.info("Updated medicine id=%s fields=%s", medicine_id, sorted(update_data))
    return medicine


def delete_medicine(db: Session, *, medicine_id: int) -> None:
    """
    Delete a medicine that was never prescribed and has no ledger history.
    """
    medicine = get_medicine(db, medicine_id=medicine_id)

    if db.query(PrescriptionItem.id).filter(PrescriptionItem.medicine_id == medicine_id).first():
        raise ConflictError(f"Medicine {medicine_id} is referenced by prescriptions and cannot be deleted")
    if db.query(InventoryTransaction.id).filter(InventoryTransaction.medicine_id == medicine_id).first():
        raise ConflictError(f"Medicine {medicine_id} has inventory history and cannot be deleted")

    with atomic(db):
        db.delete(medicine)

    logger.info("Deleted medicine id=%s", medicine_id)


def update_medicine_stock(
    db: Session,
    *,
    medicine_id: int,
    new_stock: int,
    performed_by: int,
    reason: str | None = None,
) -> Medicine:
    """
    Set the stock level directly.

    The ledger gets an ADDITION or SUBTRACTION of the absolute difference,
    or an ADJUSTMENT of 0 when the level is unchanged.
    """
    if new_stock < 0:
        raise InvalidArgumentError("Stock level cannot be negative")
    get_user(db, user_id=performed_by)

    with atomic(db):
        medicine = lock_medicine(db, medicine_id=medicine_id)
        previous = medicine.current_stock
        delta = new_stock - previous

        if delta > 0:
            transaction_type = TransactionType.ADDITION
        elif delta < 0:
            transaction_type = TransactionType.SUBTRACTION
        else:
            transaction_type = TransactionType.ADJUSTMENT

        medicine.current_stock = new_stock
        record_transaction(
            db,
            medicine=medicine,
            transaction_type=transaction_type,
            quantity=abs(delta),
            reason=reason or "Manual stock update",
            performed_by=performed_by,
        )
    db.refresh(medicine)

    logger.info("Stock set medicine_id=%s %s -> %s by user_id=%s", medicine_id, previous, new_stock, performed_by)
    return medicine
