# tests/test_payment_report_service.py
from datetime import date, timedelta
from decimal import Decimal

import pytest

from app.core.exceptions import InvalidArgumentError, NotFoundError
from app.models.payment import PaymentMethod
from app.schemas.payment import PaymentCreate
from app.schemas.report import ExportFormat, ReportType, TopSellingOrder
from app.services import payment_service, prescription_service, report_export_service, report_service
from app.utils.datetime_utils import utc_today


def _pay(db, patient, cashier, amount, prescription=None, method=PaymentMethod.CASH):
    return payment_service.create_payment(
        db,
        payload=PaymentCreate(
            patient_id=patient.id,
            prescription_id=prescription.id if prescription else None,
            amount=Decimal(amount),
            payment_method=method,
            processed_by=cashier.id,
        ),
    )


@pytest.fixture()
def dispensed(db, patient, doctor, pharmacist, make_medicine, make_prescription):
    """Two medicines partly dispensed on one prescription."""
    cheap = make_medicine(name="Aspirin", unit_price=Decimal("2.00"), current_stock=100)
    pricey = make_medicine(name="Zinc", unit_price=Decimal("50.00"), current_stock=100)
    prescription = make_prescription(patient, doctor, [(cheap, 20), (pricey, 2)])
    for medicine, quantity in ((cheap, 10), (pricey, 2)):
        prescription_service.dispense_medicine(
            db,
            prescription_id=prescription.id,
            medicine_id=medicine.id,
            quantity=quantity,
            performed_by=pharmacist.id,
        )
    return prescription, cheap, pricey


def test_payment_links_and_totals(db, patient, pharmacist, doctor, make_medicine, make_prescription):
    prescription = make_prescription(patient, doctor, [(make_medicine(), 1)])

    first = _pay(db, patient, pharmacist, "10.00", prescription)
    _pay(db, patient, pharmacist, "5.50", method=PaymentMethod.CARD)

    assert first.amount == Decimal("10.00")
    assert [p.id for p in payment_service.list_payments_for_prescription(db, prescription_id=prescription.id)] == [
        first.id
    ]
    assert len(payment_service.list_payments_for_patient(db, patient_id=patient.id)) == 2

    total, count = payment_service.total_by_date(db, day=utc_today())
    assert total == Decimal("15.50")
    assert count == 2

    total, count = payment_service.total_by_date(db, day=utc_today() - timedelta(days=1))
    assert total == Decimal("0.00")
    assert count == 0


def test_payment_rejects_prescription_of_other_patient(
    db, patient, make_patient, pharmacist, doctor, make_medicine, make_prescription
):
    other = make_patient()
    prescription = make_prescription(other, doctor, [(make_medicine(), 1)])

    with pytest.raises(InvalidArgumentError):
        _pay(db, patient, pharmacist, "10.00", prescription)


def test_payment_requires_known_patient_and_processor(db, patient, pharmacist):
    with pytest.raises(NotFoundError, match="Patient"):
        payment_service.create_payment(
            db,
            payload=PaymentCreate(
                patient_id=999, amount=Decimal("1.00"), payment_method=PaymentMethod.CASH, processed_by=pharmacist.id
            ),
        )
    with pytest.raises(NotFoundError, match="User"):
        payment_service.create_payment(
            db,
            payload=PaymentCreate(
                patient_id=patient.id, amount=Decimal("1.00"), payment_method=PaymentMethod.CASH, processed_by=999
            ),
        )


def test_sales_report_sums_payments_per_day(db, patient, pharmacist):
    _pay(db, patient, pharmacist, "12.25")
    _pay(db, patient, pharmacist, "7.75")
    today = utc_today()

    report = report_service.sales_report(db, start_date=today - timedelta(days=7), end_date=today)

    assert report.total_sales == Decimal("20.00")
    assert report.total_transactions == 2
    assert len(report.daily_breakdown) == 1
    assert report.daily_breakdown[0].date == today.isoformat()
    assert report.daily_breakdown[0].transactions == 2

    empty = report_service.sales_report(db, start_date=today - timedelta(days=7), end_date=today - timedelta(days=1))
    assert empty.total_sales == Decimal("0")
    assert empty.daily_breakdown == []


def test_reports_reject_inverted_range(db):
    today = utc_today()
    with pytest.raises(InvalidArgumentError):
        report_service.sales_report(db, start_date=today, end_date=today - timedelta(days=1))
    with pytest.raises(InvalidArgumentError):
        report_service.medicine_usage_report(db, start_date=today, end_date=today - timedelta(days=1))


def test_open_ended_ranges_reach_the_last_calendar_day(db, patient, pharmacist, dispensed):
    payment = _pay(db, patient, pharmacist, "4.50")
    today = utc_today()

    report = report_service.sales_report(db, start_date=date(2024, 1, 1), end_date=date.max)
    assert report.total_sales == Decimal("4.50")
    assert report.total_transactions == 1

    daily = report_service.daily_sales(db, start_date=date.min, end_date=date.max)
    assert [row.date for row in daily] == [today.isoformat()]

    in_range = payment_service.list_payments_by_date_range(db, start_date=today, end_date=date.max)
    assert [p.id for p in in_range] == [payment.id]
    assert payment_service.total_by_date(db, day=date.max) == (Decimal("0.00"), 0)

    top = report_service.top_selling(db, end_date=date.max)
    assert {row.medicine_name for row in top} == {"Aspirin", "Zinc"}


def test_medicine_usage_report(db, dispensed, make_medicine):
    _, cheap, pricey = dispensed
    make_medicine(name="Never dispensed")
    today = utc_today()

    usage = report_service.medicine_usage_report(db, start_date=today, end_date=today)

    assert [entry.medicine_name for entry in usage] == ["Aspirin", "Zinc"]
    assert usage[0].total_dispensed == 10
    assert usage[0].current_stock == 90
    assert [(p.date, p.quantity) for p in usage[0].usage_breakdown] == [(today.isoformat(), 10)]

    only_zinc = report_service.medicine_usage_report(db, start_date=today, end_date=today, medicine_id=pricey.id)
    assert [entry.medicine_id for entry in only_zinc] == [pricey.id]


def test_top_selling_by_quantity_and_revenue(db, dispensed):
    by_quantity = report_service.top_selling(db)
    assert [(m.medicine_name, m.total_dispensed) for m in by_quantity] == [("Aspirin", 10), ("Zinc", 2)]

    by_revenue = report_service.top_selling(db, order_by=TopSellingOrder.REVENUE)
    assert [(m.medicine_name, m.revenue) for m in by_revenue] == [
        ("Zinc", Decimal("100.00")),
        ("Aspirin", Decimal("20.00")),
    ]

    assert len(report_service.top_selling(db, limit=1)) == 1
    assert report_service.top_selling(db, end_date=utc_today() - timedelta(days=1)) == []
    with pytest.raises(InvalidArgumentError):
        report_service.top_selling(db, limit=0)


def test_low_stock_ordered_by_shortage(db, make_medicine):
    make_medicine(name="Fine", current_stock=50, minimum_stock_level=10)
    make_medicine(name="Slightly low", current_stock=8, minimum_stock_level=10)
    make_medicine(name="Very low", current_stock=1, minimum_stock_level=30)

    report = report_service.low_stock_report(db)

    assert [(item.medicine_name, item.shortage) for item in report] == [("Very low", 29), ("Slightly low", 2)]


def test_inventory_valuation(db, make_medicine):
    today = utc_today()
    make_medicine(unit_price=Decimal("2.50"), current_stock=10, minimum_stock_level=5)
    make_medicine(unit_price=Decimal("1.00"), current_stock=3, minimum_stock_level=5, expiry_date=today - timedelta(days=1))
    make_medicine(unit_price=Decimal("4.00"), current_stock=0, minimum_stock_level=0, expiry_date=today)

    valuation = report_service.inventory_valuation(db)

    assert valuation.total_medicines == 3
    assert valuation.total_stock_value == Decimal("28.00")
    assert valuation.low_stock_items == 1
    assert valuation.expired_items == 1


def test_dashboard_stats(db, patient, doctor, pharmacist, dispensed, make_medicine, make_prescription):
    today = utc_today()
    make_medicine(current_stock=2, minimum_stock_level=5)
    expired = make_medicine(current_stock=40, expiry_date=today - timedelta(days=3))
    make_prescription(patient, doctor, [(expired, 1)])
    _pay(db, patient, pharmacist, "12.00", dispensed[0])
    _pay(db, patient, pharmacist, "3.50", method=PaymentMethod.CARD)

    stats = report_service.dashboard_stats(db)

    assert stats.date == today
    assert stats.today_sales == Decimal("15.50")
    assert stats.today_transactions == 2
    # the partly dispensed prescription is no longer pending
    assert stats.pending_prescriptions == 1
    assert stats.low_stock_items == 1
    assert stats.expired_items == 1


def test_export_csv_and_pdf(db, patient, pharmacist, make_medicine):
    _pay(db, patient, pharmacist, "9.99")
    make_medicine(name="Low one", current_stock=1, minimum_stock_level=5)
    today = utc_today()

    csv_report = report_export_service.export_report(
        db,
        report_type=ReportType.SALES,
        export_format=ExportFormat.CSV,
        start_date=today,
        end_date=today,
    )
    lines = csv_report.content.decode("utf-8").splitlines()
    assert csv_report.media_type == "text/csv"
    assert csv_report.filename == f"sales_report_{today.isoformat()}_{today.isoformat()}.csv"
    assert lines[0] == "Date,Sales,Transactions"
    assert lines[1] == f"{today.isoformat()},9.99,1"

    pdf_report = report_export_service.export_report(
        db, report_type=ReportType.LOW_STOCK, export_format=ExportFormat.PDF
    )
    assert pdf_report.media_type == "application/pdf"
    assert pdf_report.filename == "low_stock_report.pdf"
    assert pdf_report.content.startswith(b"%PDF")


def test_export_requires_range_for_dated_reports(db):
    with pytest.raises(InvalidArgumentError):
        report_export_service.export_report(
            db, report_type=ReportType.MEDICINE_USAGE, export_format=ExportFormat.CSV
        )
