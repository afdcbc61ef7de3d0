# app/schemas/report.py
from datetime import date
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel


class TopSellingOrder(str, Enum):
    QUANTITY = "quantity"
    REVENUE = "revenue"


class ReportType(str, Enum):
    SALES = "sales"
    MEDICINE_USAGE = "medicine_usage"
    LOW_STOCK = "low_stock"


class ExportFormat(str, Enum):
    CSV = "csv"
    PDF = "pdf"


class DailySales(BaseModel):
    date: str
    sales: Decimal
    transactions: int


class SalesReport(BaseModel):
    start_date: date
    end_date: date
    total_sales: Decimal
    total_transactions: int
    daily_breakdown: list[DailySales]


class UsagePoint(BaseModel):
    date: str
    quantity: int


class MedicineUsage(BaseModel):
    medicine_id: int
    medicine_name: str
    total_dispensed: int
    current_stock: int
    usage_breakdown: list[UsagePoint]


class LowStockItem(BaseModel):
    medicine_id: int
    medicine_name: str
    current_stock: int
    minimum_stock_level: int
    shortage: int
    supplier_name: str | None = None


class TopSellingMedicine(BaseModel):
    medicine_id: int
    medicine_name: str
    total_dispensed: int
    revenue: Decimal


class InventoryValuation(BaseModel):
    total_medicines: int
    total_stock_value: Decimal
    low_stock_items: int
    expired_items: int


class DashboardStats(BaseModel):
    date: date
    today_sales: Decimal
    today_transactions: int
    pending_prescriptions: int
    low_stock_items: int
    expired_items: int
