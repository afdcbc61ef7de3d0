# app/schemas/medicine.py
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)

from app.schemas.common import Money, OptStr100, OptStr255, OptStr500, Str255, blank_to_none


class MedicineBase(BaseModel):
    """
    Shared fields for create/response.

    - Optional strings accept None and are limited in length when present.
    - Empty strings from UI are normalized to None.
    """

    name: Str255
    description: OptStr500 = None
    unit_price: Money
    minimum_stock_level: int = Field(default=0, ge=0)

    supplier_name: OptStr255 = None
    batch_number: OptStr100 = None
    expiry_date: date | None = None
    storage_conditions: OptStr255 = None
    requires_prescription: bool = False


class MedicineCreate(MedicineBase):
    """Used when creating a new medicine; current_stock is the opening balance."""

    current_stock: int = Field(default=0, ge=0)

    model_config = ConfigDict(extra="forbid")

    @field_validator(
        "description",
        "supplier_name",
        "batch_number",
        "storage_conditions",
        mode="before",
    )
    @classmethod
    def empty_str_to_none(cls, v: Any) -> Any:
        return blank_to_none(v)


class MedicineUpdate(BaseModel):
    """
    Used when updating a medicine (PATCH).

    Stock is not editable here; use the stock or inventory endpoints so the
    change is recorded in the ledger.
    """

    name: Str255 | None = None
    description: OptStr500 = None
    unit_price: Money | None = None
    minimum_stock_level: int | None = Field(default=None, ge=0)

    supplier_name: OptStr255 = None
    batch_number: OptStr100 = None
    expiry_date: date | None = None
    storage_conditions: OptStr255 = None
    requires_prescription: bool | None = None

    model_config = ConfigDict(extra="forbid")

    @field_validator(
        "description",
        "supplier_name",
        "batch_number",
        "storage_conditions",
        mode="before",
    )
    @classmethod
    def empty_str_to_none(cls, v: Any) -> Any:
        return blank_to_none(v)


class MedicineStockUpdate(BaseModel):
    new_stock: int = Field(ge=0)
    performed_by: int = Field(gt=0)
    reason: OptStr500 = None

    model_config = ConfigDict(extra="forbid")


class MedicineResponse(MedicineBase):
    id: int
    unit_price: Decimal
    current_stock: int
    shortage: int
    is_low_stock: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
