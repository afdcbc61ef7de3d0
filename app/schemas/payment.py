# app/schemas/payment.py
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.payment import PaymentMethod
from app.schemas.common import Money, OptStr255, blank_to_none


class PaymentCreate(BaseModel):
    patient_id: int = Field(gt=0)
    prescription_id: int | None = Field(default=None, gt=0)
    amount: Money
    payment_method: PaymentMethod
    transaction_reference: OptStr255 = None
    notes: str | None = None
    processed_by: int = Field(gt=0)

    model_config = ConfigDict(extra="forbid")

    @field_validator("transaction_reference", "notes", mode="before")
    @classmethod
    def empty_str_to_none(cls, v: Any) -> Any:
        return blank_to_none(v)


class PaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    patient_id: int
    prescription_id: int | None
    amount: Decimal
    payment_method: PaymentMethod
    transaction_reference: str | None
    notes: str | None
    processed_by: int
    created_at: datetime


class PaymentTotalResponse(BaseModel):
    date: date
    total_amount: Decimal
    payment_count: int
