# app/api/v1/endpoints/medicines.py
import logging

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.database import get_db
from app.models.medicine import Medicine
from app.schemas.medicine import (
    MedicineCreate,
    MedicineResponse,
    MedicineStockUpdate,
    MedicineUpdate,
)
from app.schemas.report import LowStockItem
from app.services import medicine_service, report_service

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("", response_model=MedicineResponse, status_code=status.HTTP_201_CREATED)
def create_medicine(
    payload: MedicineCreate,
    db: Session = Depends(get_db),
) -> Medicine:
    return medicine_service.create_medicine(db, payload=payload)


@router.get("", response_model=list[MedicineResponse])
def list_medicines(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
) -> list[Medicine]:
    return medicine_service.list_medicines(db, skip=skip, limit=limit)


@router.get("/search", response_model=list[MedicineResponse])
def search_medicines(
    q: str = Query(..., min_length=1, description="Matches name, description, supplier or batch (case-insensitive)"),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
) -> list[Medicine]:
    return medicine_service.search_medicines(db, query=q, limit=limit)


@router.get("/low-stock", response_model=list[LowStockItem])
def low_stock_alerts(
    db: Session = Depends(get_db),
) -> list[LowStockItem]:
    """
    Medicines below their minimum stock level, largest shortage first.
    """
    return report_service.low_stock_report(db)


@router.get("/expiring", response_model=list[MedicineResponse])
def expiring_medicines(
    days: int | None = Query(None, ge=0, le=3650, description="Window in days (defaults to settings)"),
    db: Session = Depends(get_db),
) -> list[Medicine]:
    window = days if days is not None else get_settings().expiring_window_days
    return medicine_service.list_expiring(db, days=window)


@router.get("/{medicine_id}", response_model=MedicineResponse)
def get_medicine(
    medicine_id: int,
    db: Session = Depends(get_db),
) -> Medicine:
    return medicine_service.get_medicine(db, medicine_id=medicine_id)


@router.patch("/{medicine_id}", response_model=MedicineResponse)
def update_medicine(
    medicine_id: int,
    payload: MedicineUpdate,
    db: Session = Depends(get_db),
) -> Medicine:
    return medicine_service.update_medicine(db, medicine_id=medicine_id, payload=payload)


@router.delete("/{medicine_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_medicine(
    medicine_id: int,
    db: Session = Depends(get_db),
) -> Response:
    medicine_service.delete_medicine(db, medicine_id=medicine_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{medicine_id}/stock", response_model=MedicineResponse)
def update_medicine_stock(
    medicine_id: int,
    payload: MedicineStockUpdate,
    db: Session = Depends(get_db),
) -> Medicine:
    """
    Set the stock level directly; the change is written to the inventory ledger.
    """
    return medicine_service.update_medicine_stock(
        db,
        medicine_id=medicine_id,
        new_stock=payload.new_stock,
        performed_by=payload.performed_by,
        reason=payload.reason,
    )
