# app/schemas/prescription.py
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from app.models.prescription import PrescriptionStatus
from app.schemas.common import Str500, blank_to_none


class PrescriptionItemCreate(BaseModel):
    medicine_id: int = Field(gt=0)
    quantity: int = Field(gt=0)
    dosage_instructions: Str500
    duration_days: int | None = Field(default=None, gt=0)

    model_config = ConfigDict(extra="forbid")


class PrescriptionCreate(BaseModel):
    patient_id: int = Field(gt=0)
    doctor_id: int = Field(gt=0)
    visit_id: int | None = Field(default=None, gt=0)
    diagnosis: str | None = None
    notes: str | None = None
    items: list[PrescriptionItemCreate] = Field(min_length=1)

    model_config = ConfigDict(extra="forbid")

    @field_validator("diagnosis", "notes", mode="before")
    @classmethod
    def empty_str_to_none(cls, v: Any) -> Any:
        return blank_to_none(v)

    @model_validator(mode="after")
    def validate_unique_medicines(self) -> "PrescriptionCreate":
        seen: set[int] = set()
        duplicates: list[str] = []
        for item in self.items:
            if item.medicine_id in seen:
                duplicates.append(str(item.medicine_id))
            seen.add(item.medicine_id)
        if duplicates:
            raise ValueError(
                f"Each medicine may appear only once per prescription (duplicated: {', '.join(duplicates)})"
            )
        return self


class PrescriptionStatusUpdate(BaseModel):
    status: PrescriptionStatus

    model_config = ConfigDict(extra="forbid")


class DispenseRequest(BaseModel):
    medicine_id: int = Field(gt=0)
    quantity: int = Field(gt=0)
    performed_by: int = Field(gt=0)

    model_config = ConfigDict(extra="forbid")


class PrescriptionItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    prescription_id: int
    medicine_id: int
    medicine_name: str | None = None
    quantity_prescribed: int
    quantity_dispensed: int
    quantity_remaining: int
    dosage_instructions: str
    duration_days: int | None
    unit_price: Decimal
    total_price: Decimal
    created_at: datetime


class PrescriptionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    patient_id: int
    doctor_id: int
    visit_id: int | None
    status: PrescriptionStatus
    is_filled: bool
    diagnosis: str | None = None
    notes: str | None = None
    total_amount: Decimal
    created_at: datetime
    updated_at: datetime
    items: list[PrescriptionItemResponse]


class DispenseResponse(BaseModel):
    prescription_id: int
    prescription_status: PrescriptionStatus
    item: PrescriptionItemResponse
    remaining_stock: int
    transaction_id: int
