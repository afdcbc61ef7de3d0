# app/schemas/visit.py
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.schemas.common import Str500, blank_to_none


class VisitCreate(BaseModel):
    patient_id: int = Field(gt=0)
    doctor_id: int = Field(gt=0)
    visit_date: datetime | None = None  # defaults to now
    reason_for_visit: Str500
    diagnosis: str | None = None
    treatment_notes: str | None = None
    vital_signs: str | None = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("diagnosis", "treatment_notes", "vital_signs", mode="before")
    @classmethod
    def empty_str_to_none(cls, v: Any) -> Any:
        return blank_to_none(v)


class VisitUpdate(BaseModel):
    visit_date: datetime | None = None
    reason_for_visit: Str500 | None = None
    diagnosis: str | None = None
    treatment_notes: str | None = None
    vital_signs: str | None = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("diagnosis", "treatment_notes", "vital_signs", mode="before")
    @classmethod
    def empty_str_to_none(cls, v: Any) -> Any:
        return blank_to_none(v)


class VisitResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    patient_id: int
    doctor_id: int
    visit_date: datetime
    reason_for_visit: str
    diagnosis: str | None
    treatment_notes: str | None
    vital_signs: str | None
    created_at: datetime
    updated_at: datetime
