# app/services/report_service.py
"""
Read-only aggregation over payments, prescription items and medicines.

Date ranges are inclusive calendar dates in UTC. Days are grouped with the
database's date() function, then normalized to 'YYYY-MM-DD' keys.
"""
import logging
from datetime import date
from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.exceptions import InvalidArgumentError, NotFoundError
from app.models.medicine import Medicine
from app.models.payment import Payment
from app.models.prescription import Prescription, PrescriptionItem, PrescriptionStatus
from app.schemas.report import (
    DailySales,
    DashboardStats,
    InventoryValuation,
    LowStockItem,
    MedicineUsage,
    SalesReport,
    TopSellingMedicine,
    TopSellingOrder,
    UsagePoint,
)
from app.services.medicine_service import list_low_stock
from app.services.payment_service import total_by_date
from app.utils.datetime_utils import range_bounds, to_date_key, utc_today
from app.utils.money import quantize_money

logger = logging.getLogger(__name__)


def _check_range(start_date: date, end_date: date) -> None:
    if start_date > end_date:
        raise InvalidArgumentError("start_date must be on or before end_date")


def daily_sales(db: Session, *, start_date: date, end_date: date) -> list[DailySales]:
    """Per-day payment totals; days without payments are omitted."""
    _check_range(start_date, end_date)
    start, end = range_bounds(start_date, end_date)

    day = func.date(Payment.created_at)
    rows = (
        db.query(
            day.label("day"),
            func.coalesce(func.sum(Payment.amount), 0).label("sales"),
            func.count(Payment.id).label("transactions"),
        )
        .filter(Payment.created_at >= start, Payment.created_at < end)
        .group_by(day)
        .order_by(day)
        .all()
    )
    return [
        DailySales(
            date=to_date_key(row.day),
            sales=quantize_money(row.sales),
            transactions=int(row.transactions),
        )
        for row in rows
    ]


def sales_report(db: Session, *, start_date: date, end_date: date) -> SalesReport:
    breakdown = daily_sales(db, start_date=start_date, end_date=end_date)

    total = sum((entry.sales for entry in breakdown), Decimal("0"))
    logger.debug("Sales report %s..%s covers %s day(s)", start_date, end_date, len(breakdown))
    return SalesReport(
        start_date=start_date,
        end_date=end_date,
        total_sales=quantize_money(total),
        total_transactions=sum(entry.transactions for entry in breakdown),
        daily_breakdown=breakdown,
    )


def medicine_usage_report(
    db: Session,
    *,
    start_date: date,
    end_date: date,
    medicine_id: int | None = None,
) -> list[MedicineUsage]:
    """
    Dispensed quantities per medicine, broken down by prescription date.
    Only medicines with something dispensed in the range are listed.
    """
    _check_range(start_date, end_date)
    if medicine_id is not None and not db.get(Medicine, medicine_id):
        raise NotFoundError.for_entity("Medicine", medicine_id)

    start, end = range_bounds(start_date, end_date)
    day = func.date(Prescription.created_at)

    query = (
        db.query(
            Medicine.id.label("medicine_id"),
            Medicine.name.label("medicine_name"),
            Medicine.current_stock.label("current_stock"),
            day.label("day"),
            func.sum(PrescriptionItem.quantity_dispensed).label("quantity"),
        )
        .join(PrescriptionItem, PrescriptionItem.medicine_id == Medicine.id)
        .join(Prescription, Prescription.id == PrescriptionItem.prescription_id)
        .filter(Prescription.created_at >= start, Prescription.created_at < end)
        .filter(PrescriptionItem.quantity_dispensed > 0)
    )
    if medicine_id is not None:
        query = query.filter(Medicine.id == medicine_id)

    rows = (
        query.group_by(Medicine.id, Medicine.name, Medicine.current_stock, day)
        .order_by(Medicine.name.asc(), Medicine.id.asc(), day)
        .all()
    )

    usage: dict[int, MedicineUsage] = {}
    for row in rows:
        entry = usage.get(row.medicine_id)
        if entry is None:
            entry = usage[row.medicine_id] = MedicineUsage(
                medicine_id=row.medicine_id,
                medicine_name=row.medicine_name,
                total_dispensed=0,
                current_stock=row.current_stock,
                usage_breakdown=[],
            )
        quantity = int(row.quantity or 0)
        entry.total_dispensed += quantity
        entry.usage_breakdown.append(UsagePoint(date=to_date_key(row.day), quantity=quantity))

    return list(usage.values())


def top_selling(
    db: Session,
    *,
    start_date: date | None = None,
    end_date: date | None = None,
    limit: int = 10,
    order_by: TopSellingOrder = TopSellingOrder.QUANTITY,
) -> list[TopSellingMedicine]:
    """
    Medicines ranked by dispensed quantity or by revenue
    (quantity dispensed x unit price snapshot).
    """
    if limit <= 0:
        raise InvalidArgumentError("limit must be greater than 0")

    total_dispensed = func.sum(PrescriptionItem.quantity_dispensed)
    revenue = func.sum(PrescriptionItem.quantity_dispensed * PrescriptionItem.unit_price)

    query = (
        db.query(
            Medicine.id.label("medicine_id"),
            Medicine.name.label("medicine_name"),
            total_dispensed.label("total_dispensed"),
            revenue.label("revenue"),
        )
        .join(PrescriptionItem, PrescriptionItem.medicine_id == Medicine.id)
        .filter(PrescriptionItem.quantity_dispensed > 0)
    )
    if start_date is not None or end_date is not None:
        start_date = start_date or date.min
        end_date = end_date or utc_today()
        _check_range(start_date, end_date)
        start, end = range_bounds(start_date, end_date)
        query = query.join(Prescription, Prescription.id == PrescriptionItem.prescription_id).filter(
            Prescription.created_at >= start, Prescription.created_at < end
        )

    primary = revenue if order_by == TopSellingOrder.REVENUE else total_dispensed
    rows = (
        query.group_by(Medicine.id, Medicine.name)
        .order_by(primary.desc(), Medicine.name.asc())
        .limit(limit)
        .all()
    )
    return [
        TopSellingMedicine(
            medicine_id=row.medicine_id,
            medicine_name=row.medicine_name,
            total_dispensed=int(row.total_dispensed or 0),
            revenue=quantize_money(row.revenue),
        )
        for row in rows
    ]


def low_stock_report(db: Session) -> list[LowStockItem]:
    return [
        LowStockItem(
            medicine_id=medicine.id,
            medicine_name=medicine.name,
            current_stock=medicine.current_stock,
            minimum_stock_level=medicine.minimum_stock_level,
            shortage=medicine.shortage,
            supplier_name=medicine.supplier_name,
        )
        for medicine in list_low_stock(db)
    ]


def _count_low_stock(db: Session) -> int:
    count = (
        db.query(func.count(Medicine.id))
        .filter(Medicine.current_stock < Medicine.minimum_stock_level)
        .scalar()
    )
    return int(count or 0)


def _count_expired(db: Session) -> int:
    # Null expiry dates never count as expired
    count = (
        db.query(func.count(Medicine.id))
        .filter(Medicine.expiry_date.is_not(None), Medicine.expiry_date < utc_today())
        .scalar()
    )
    return int(count or 0)


def inventory_valuation(db: Session) -> InventoryValuation:
    total_medicines, total_value = db.query(
        func.count(Medicine.id),
        func.coalesce(func.sum(Medicine.current_stock * Medicine.unit_price), 0),
    ).one()

    return InventoryValuation(
        total_medicines=int(total_medicines),
        total_stock_value=quantize_money(total_value),
        low_stock_items=_count_low_stock(db),
        expired_items=_count_expired(db),
    )


def dashboard_stats(db: Session) -> DashboardStats:
    """Today's takings plus the counts the front desk watches."""
    today = utc_today()
    today_sales, today_transactions = total_by_date(db, day=today)
    pending = (
        db.query(func.count(Prescription.id))
        .filter(Prescription.status == PrescriptionStatus.PENDING)
        .scalar()
    )
    return DashboardStats(
        date=today,
        today_sales=today_sales,
        today_transactions=today_transactions,
        pending_prescriptions=int(pending or 0),
        low_stock_items=_count_low_stock(db),
        expired_items=_count_expired(db),
    )
