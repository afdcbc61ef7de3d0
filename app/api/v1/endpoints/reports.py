# app/api/v1/endpoints/reports.py
import logging
from datetime import date

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.schemas.report import (
    DailySales,
    DashboardStats,
    ExportFormat,
    InventoryValuation,
    LowStockItem,
    MedicineUsage,
    ReportType,
    SalesReport,
    TopSellingMedicine,
    TopSellingOrder,
)
from app.services import report_service
from app.services.report_export_service import export_report

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/dashboard", response_model=DashboardStats)
def dashboard(
    db: Session = Depends(get_db),
) -> DashboardStats:
    return report_service.dashboard_stats(db)


@router.get("/sales", response_model=SalesReport)
def sales_report(
    start_date: date = Query(...),
    end_date: date = Query(...),
    db: Session = Depends(get_db),
) -> SalesReport:
    return report_service.sales_report(db, start_date=start_date, end_date=end_date)


@router.get("/daily-sales", response_model=list[DailySales])
def daily_sales(
    start_date: date = Query(...),
    end_date: date = Query(...),
    db: Session = Depends(get_db),
) -> list[DailySales]:
    return report_service.daily_sales(db, start_date=start_date, end_date=end_date)


@router.get("/medicine-usage", response_model=list[MedicineUsage])
def medicine_usage_report(
    start_date: date = Query(...),
    end_date: date = Query(...),
    medicine_id: int | None = Query(None, gt=0),
    db: Session = Depends(get_db),
) -> list[MedicineUsage]:
    return report_service.medicine_usage_report(
        db,
        start_date=start_date,
        end_date=end_date,
        medicine_id=medicine_id,
    )


@router.get("/low-stock", response_model=list[LowStockItem])
def low_stock_report(
    db: Session = Depends(get_db),
) -> list[LowStockItem]:
    return report_service.low_stock_report(db)


@router.get("/top-selling", response_model=list[TopSellingMedicine])
def top_selling(
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    limit: int = Query(10, ge=1, le=100),
    order_by: TopSellingOrder = Query(TopSellingOrder.QUANTITY),
    db: Session = Depends(get_db),
) -> list[TopSellingMedicine]:
    return report_service.top_selling(
        db,
        start_date=start_date,
        end_date=end_date,
        limit=limit,
        order_by=order_by,
    )


@router.get("/inventory-valuation", response_model=InventoryValuation)
def inventory_valuation(
    db: Session = Depends(get_db),
) -> InventoryValuation:
    return report_service.inventory_valuation(db)


@router.get("/export")
def export(
    report_type: ReportType = Query(...),
    export_format: ExportFormat = Query(ExportFormat.CSV, alias="format"),
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    db: Session = Depends(get_db),
):
    """
    Download a report as CSV or PDF. Sales and medicine usage need a date range.
    """
    exported = export_report(
        db,
        report_type=report_type,
        export_format=export_format,
        start_date=start_date,
        end_date=end_date,
    )
    logger.debug("Streaming %s (%s bytes)", exported.filename, len(exported.content))
    return StreamingResponse(
        iter([exported.content]),
        media_type=exported.media_type,
        headers={"Content-Disposition": f"attachment; filename={exported.filename}"},
    )
