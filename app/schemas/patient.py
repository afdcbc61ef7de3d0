# app/schemas/patient.py
import re
from datetime import date, datetime
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    field_validator,
    model_validator,
)

from app.models.patient import Gender
from app.schemas.common import NameStr, OptStr50, OptStr255, OptStr500, blank_to_none


def normalize_phone(phone: str) -> str:
    """Normalize phone number: remove spaces, dashes, parentheses, keep + and digits."""
    if not phone:
        return ""
    return re.sub(r"[\s\-\(\)]", "", phone)


def validate_phone_digits(phone: str) -> bool:
    """Check if phone has 7-15 digits after normalization."""
    normalized = normalize_phone(phone)
    digits = normalized[1:] if normalized.startswith("+") else normalized
    digit_count = sum(c.isdigit() for c in digits)
    return 7 <= digit_count <= 15


class PatientBase(BaseModel):
    first_name: NameStr
    last_name: NameStr
    date_of_birth: date
    gender: Gender
    phone: str

    email: EmailStr | None = None
    address: OptStr500 = None
    emergency_contact_name: OptStr255 = None
    emergency_contact_phone: OptStr50 = None
    allergies: str | None = None
    chronic_conditions: str | None = None
    blood_type: OptStr50 = None


class PatientCreate(PatientBase):
    model_config = ConfigDict(extra="forbid")

    @field_validator(
        "email",
        "address",
        "emergency_contact_name",
        "emergency_contact_phone",
        "allergies",
        "chronic_conditions",
        "blood_type",
        mode="before",
    )
    @classmethod
    def empty_str_to_none(cls, v: Any) -> Any:
        return blank_to_none(v)

    @field_validator("phone", "emergency_contact_phone")
    @classmethod
    def validate_phone(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        if not validate_phone_digits(v):
            raise ValueError("Phone must be 7-15 digits")
        return normalize_phone(v)

    @model_validator(mode="after")
    def validate_create_rules(self) -> "PatientCreate":
        errors: list[str] = []

        if self.date_of_birth > date.today():
            errors.append("Date of birth cannot be in the future")
        if self.emergency_contact_phone and not self.emergency_contact_name:
            errors.append("emergency_contact_name is required when emergency_contact_phone is given")

        if errors:
            raise ValueError("; ".join(errors))
        return self


class PatientUpdate(BaseModel):
    """PATCH payload; only fields that are sent are applied."""

    first_name: NameStr | None = None
    last_name: NameStr | None = None
    date_of_birth: date | None = None
    gender: Gender | None = None
    phone: str | None = None

    email: EmailStr | None = None
    address: OptStr500 = None
    emergency_contact_name: OptStr255 = None
    emergency_contact_phone: OptStr50 = None
    allergies: str | None = None
    chronic_conditions: str | None = None
    blood_type: OptStr50 = None

    model_config = ConfigDict(extra="forbid")

    @field_validator(
        "email",
        "address",
        "emergency_contact_name",
        "emergency_contact_phone",
        "allergies",
        "chronic_conditions",
        "blood_type",
        mode="before",
    )
    @classmethod
    def empty_str_to_none(cls, v: Any) -> Any:
        return blank_to_none(v)

    @field_validator("phone", "emergency_contact_phone")
    @classmethod
    def validate_phone(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        if not validate_phone_digits(v):
            raise ValueError("Phone must be 7-15 digits")
        return normalize_phone(v)

    @field_validator("date_of_birth")
    @classmethod
    def validate_dob(cls, v: date | None) -> date | None:
        if v is not None and v > date.today():
            raise ValueError("Date of birth cannot be in the future")
        return v


class PatientResponse(PatientBase):
    id: int
    full_name: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
