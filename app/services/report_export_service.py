# app/services/report_export_service.py
import csv
import logging
from dataclasses import dataclass
from datetime import date
from io import StringIO

from sqlalchemy.orm import Session

from app.core.exceptions import InvalidArgumentError
from app.schemas.report import ExportFormat, ReportType
from app.services import report_service
from app.utils.report_pdf import generate_report_pdf

logger = logging.getLogger(__name__)


@dataclass
class ReportTable:
    title: str
    headers: list[str]
    rows: list[list[object]]
    summary: list[tuple[str, object]]
    subtitle: str | None = None


@dataclass
class ExportedReport:
    content: bytes
    media_type: str
    filename: str


def _require_range(report_type: ReportType, start_date: date | None, end_date: date | None) -> tuple[date, date]:
    if start_date is None or end_date is None:
        raise InvalidArgumentError(f"start_date and end_date are required for the {report_type.value} report")
    return start_date, end_date


def build_report_table(
    db: Session,
    *,
    report_type: ReportType,
    start_date: date | None = None,
    end_date: date | None = None,
) -> ReportTable:
    if report_type == ReportType.SALES:
        start_date, end_date = _require_range(report_type, start_date, end_date)
        report = report_service.sales_report(db, start_date=start_date, end_date=end_date)
        return ReportTable(
            title="Sales Report",
            subtitle=f"{start_date.isoformat()} to {end_date.isoformat()}",
            headers=["Date", "Sales", "Transactions"],
            rows=[[day.date, day.sales, day.transactions] for day in report.daily_breakdown],
            summary=[
                ("Total sales", report.total_sales),
                ("Total transactions", report.total_transactions),
            ],
        )

    if report_type == ReportType.MEDICINE_USAGE:
        start_date, end_date = _require_range(report_type, start_date, end_date)
        usage = report_service.medicine_usage_report(db, start_date=start_date, end_date=end_date)
        rows: list[list[object]] = []
        for entry in usage:
            for point in entry.usage_breakdown:
                rows.append([entry.medicine_id, entry.medicine_name, point.date, point.quantity, entry.current_stock])
        return ReportTable(
            title="Medicine Usage Report",
            subtitle=f"{start_date.isoformat()} to {end_date.isoformat()}",
            headers=["Medicine ID", "Medicine", "Date", "Quantity Dispensed", "Current Stock"],
            rows=rows,
            summary=[
                ("Medicines dispensed", len(usage)),
                ("Units dispensed", sum(entry.total_dispensed for entry in usage)),
            ],
        )

    low_stock = report_service.low_stock_report(db)
    return ReportTable(
        title="Low Stock Report",
        headers=["Medicine ID", "Medicine", "Current Stock", "Minimum Level", "Shortage", "Supplier"],
        rows=[
            [
                item.medicine_id,
                item.medicine_name,
                item.current_stock,
                item.minimum_stock_level,
                item.shortage,
                item.supplier_name or "",
            ]
            for item in low_stock
        ],
        summary=[("Items below minimum", len(low_stock))],
    )


def render_csv(table: ReportTable) -> bytes:
    output = StringIO()
    writer = csv.writer(output)
    writer.writerow(table.headers)
    for row in table.rows:
        writer.writerow(["" if cell is None else cell for cell in row])
    return output.getvalue().encode("utf-8")


def export_report(
    db: Session,
    *,
    report_type: ReportType,
    export_format: ExportFormat,
    start_date: date | None = None,
    end_date: date | None = None,
) -> ExportedReport:
    table = build_report_table(db, report_type=report_type, start_date=start_date, end_date=end_date)

    suffix = ""
    if start_date and end_date and report_type != ReportType.LOW_STOCK:
        suffix = f"_{start_date.isoformat()}_{end_date.isoformat()}"
    basename = f"{report_type.value}_report{suffix}"

    if export_format == ExportFormat.CSV:
        exported = ExportedReport(content=render_csv(table), media_type="text/csv", filename=f"{basename}.csv")
    else:
        buffer = generate_report_pdf(
            table.title,
            table.headers,
            table.rows,
            summary=table.summary,
            subtitle=table.subtitle,
        )
        exported = ExportedReport(content=buffer.getvalue(), media_type="application/pdf", filename=f"{basename}.pdf")

    logger.info("Exported %s as %s (%s rows)", report_type.value, export_format.value, len(table.rows))
    return exported
