# app/services/inventory_service.py
"""
Stock movements and the inventory ledger.

Every change to `Medicine.current_stock` goes through this module (or the
dispensing flow, which uses `record_transaction`) so that the stock column
and the ledger are written in the same database transaction.

Ledger quantities:
- ADDITION / SUBTRACTION store the requested amount, even when a
  subtraction is clamped at zero stock.
- ADJUSTMENT stores the signed difference between the new and the
  previous level; callers pass the target level.
"""
import logging
from collections.abc import Iterable
from datetime import date

from sqlalchemy.orm import Session

from app.core.database import atomic
from app.core.exceptions import InvalidArgumentError, NotFoundError
from app.models.inventory import InventoryTransaction, TransactionType
from app.models.medicine import Medicine
from app.schemas.inventory import InventoryTransactionCreate, StockChange
from app.services.user_service import get_user
from app.utils.datetime_utils import range_bounds

logger = logging.getLogger(__name__)

STOCK_ADJUSTMENT_REFERENCE = "stock_adjustment"


def lock_medicine(db: Session, *, medicine_id: int) -> Medicine:
    """
    Load a medicine with a row lock (SELECT ... FOR UPDATE) for the rest of
    the current transaction.
    """
    medicine = (
        db.query(Medicine)
        .filter(Medicine.id == medicine_id)
        .with_for_update()
        .first()
    )
    if not medicine:
        raise NotFoundError.for_entity("Medicine", medicine_id)
    return medicine


def record_transaction(
    db: Session,
    *,
    medicine: Medicine,
    transaction_type: TransactionType,
    quantity: int,
    reason: str,
    performed_by: int,
    reference_id: int | None = None,
    reference_type: str | None = None,
) -> InventoryTransaction:
    """Append one ledger row. Does not commit."""
    transaction = InventoryTransaction(
        medicine_id=medicine.id,
        transaction_type=transaction_type,
        quantity=quantity,
        reason=reason,
        reference_id=reference_id,
        reference_type=reference_type,
        performed_by=performed_by,
    )
    db.add(transaction)
    db.flush()
    return transaction


def _apply_change(
    db: Session,
    *,
    medicine_id: int,
    transaction_type: TransactionType,
    quantity: int,
    reason: str,
    performed_by: int,
    reference_id: int | None = None,
    reference_type: str | None = None,
) -> InventoryTransaction:
    """
    Apply one stock movement inside the caller's transaction.
    """
    if transaction_type == TransactionType.ADJUSTMENT:
        if quantity < 0:
            raise InvalidArgumentError("Stock level cannot be negative")
    elif quantity <= 0:
        raise InvalidArgumentError(f"Quantity for {transaction_type.value} must be greater than 0")

    medicine = lock_medicine(db, medicine_id=medicine_id)
    previous = medicine.current_stock

    if transaction_type == TransactionType.ADDITION:
        medicine.current_stock = previous + quantity
        recorded = quantity
    elif transaction_type == TransactionType.SUBTRACTION:
        medicine.current_stock = max(0, previous - quantity)
        recorded = quantity
    else:
        medicine.current_stock = quantity
        recorded = quantity - previous

    transaction = record_transaction(
        db,
        medicine=medicine,
        transaction_type=transaction_type,
        quantity=recorded,
        reason=reason,
        performed_by=performed_by,
        reference_id=reference_id,
        reference_type=reference_type,
    )

    logger.info(
        "Stock %s medicine_id=%s %s -> %s (recorded %s) by user_id=%s",
        transaction_type.value,
        medicine.id,
        previous,
        medicine.current_stock,
        recorded,
        performed_by,
    )
    return transaction


def create_transaction(db: Session, *, payload: InventoryTransactionCreate) -> InventoryTransaction:
    get_user(db, user_id=payload.performed_by)

    with atomic(db):
        transaction = _apply_change(
            db,
            medicine_id=payload.medicine_id,
            transaction_type=payload.transaction_type,
            quantity=payload.quantity,
            reason=payload.reason,
            performed_by=payload.performed_by,
            reference_id=payload.reference_id,
            reference_type=payload.reference_type,
        )
    db.refresh(transaction)
    return transaction


def adjust_stock(
    db: Session,
    *,
    medicine_id: int,
    new_stock: int,
    reason: str,
    performed_by: int,
) -> InventoryTransaction:
    """
    Set a medicine's stock to `new_stock` and log the signed difference.
    """
    if new_stock < 0:
        raise InvalidArgumentError("Stock level cannot be negative")
    get_user(db, user_id=performed_by)

    with atomic(db):
        transaction = _apply_change(
            db,
            medicine_id=medicine_id,
            transaction_type=TransactionType.ADJUSTMENT,
            quantity=new_stock,
            reason=reason,
            performed_by=performed_by,
            reference_type=STOCK_ADJUSTMENT_REFERENCE,
        )
    db.refresh(transaction)
    return transaction


def bulk_update(
    db: Session,
    *,
    updates: Iterable[StockChange],
    performed_by: int,
) -> list[InventoryTransaction]:
    """
    Apply stock changes in order as a single unit of work.

    The first failing entry raises and every earlier entry is rolled back.
    """
    get_user(db, user_id=performed_by)

    transactions: list[InventoryTransaction] = []
    with atomic(db):
        for index, change in enumerate(updates):
            try:
                transaction = _apply_change(
                    db,
                    medicine_id=change.medicine_id,
                    transaction_type=change.transaction_type,
                    quantity=change.quantity,
                    reason=change.reason,
                    performed_by=performed_by,
                )
            except (NotFoundError, InvalidArgumentError):
                logger.warning("Bulk stock update aborted at entry %s; rolling back", index)
                raise
            transactions.append(transaction)

    for transaction in transactions:
        db.refresh(transaction)

    logger.info("Bulk stock update applied %s entries", len(transactions))
    return transactions


def list_transactions(
    db: Session,
    *,
    medicine_id: int | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    skip: int = 0,
    limit: int = 100,
) -> list[InventoryTransaction]:
    if start_date and end_date and start_date > end_date:
        raise InvalidArgumentError("start_date must be on or before end_date")

    query = db.query(InventoryTransaction)
    if medicine_id is not None:
        if not db.get(Medicine, medicine_id):
            raise NotFoundError.for_entity("Medicine", medicine_id)
        query = query.filter(InventoryTransaction.medicine_id == medicine_id)
    if start_date is not None:
        start, _ = range_bounds(start_date, start_date)
        query = query.filter(InventoryTransaction.created_at >= start)
    if end_date is not None:
        _, end = range_bounds(end_date, end_date)
        query = query.filter(InventoryTransaction.created_at < end)

    return (
        query.order_by(InventoryTransaction.created_at.desc(), InventoryTransaction.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )
