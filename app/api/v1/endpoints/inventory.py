# app/api/v1/endpoints/inventory.py
import logging
from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.models.inventory import InventoryTransaction
from app.schemas.inventory import (
    BulkStockUpdateRequest,
    InventoryTransactionCreate,
    InventoryTransactionResponse,
    StockAdjustRequest,
)
from app.services import inventory_service

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post(
    "/transactions",
    response_model=InventoryTransactionResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_transaction(
    payload: InventoryTransactionCreate,
    db: Session = Depends(get_db),
) -> InventoryTransaction:
    """
    Record a stock movement and apply it to the medicine.

    - addition: stock + quantity
    - subtraction: stock - quantity, never below zero (ledger keeps the requested quantity)
    - adjustment: quantity is the target level; the ledger keeps the signed change
    """
    return inventory_service.create_transaction(db, payload=payload)


@router.get("/transactions", response_model=list[InventoryTransactionResponse])
def list_transactions(
    medicine_id: int | None = Query(None, gt=0),
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
) -> list[InventoryTransaction]:
    return inventory_service.list_transactions(
        db,
        medicine_id=medicine_id,
        start_date=start_date,
        end_date=end_date,
        skip=skip,
        limit=limit,
    )


@router.post("/adjust", response_model=InventoryTransactionResponse, status_code=status.HTTP_201_CREATED)
def adjust_stock(
    payload: StockAdjustRequest,
    db: Session = Depends(get_db),
) -> InventoryTransaction:
    return inventory_service.adjust_stock(
        db,
        medicine_id=payload.medicine_id,
        new_stock=payload.new_stock,
        reason=payload.reason,
        performed_by=payload.performed_by,
    )


@router.post(
    "/bulk-update",
    response_model=list[InventoryTransactionResponse],
    status_code=status.HTTP_201_CREATED,
)
def bulk_update(
    payload: BulkStockUpdateRequest,
    db: Session = Depends(get_db),
) -> list[InventoryTransaction]:
    """
    Apply several stock movements in order. Any failure rolls back the whole batch.
    """
    return inventory_service.bulk_update(db, updates=payload.updates, performed_by=payload.performed_by)
