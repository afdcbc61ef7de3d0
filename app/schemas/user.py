# app/schemas/user.py
from datetime import datetime
from typing import Annotated, Any

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    StringConstraints,
    field_validator,
)

from app.models.user import RoleName
from app.schemas.common import NameStr, OptStr50, blank_to_none

UsernameStr = Annotated[
    str,
    StringConstraints(
        strip_whitespace=True,
        min_length=3,
        max_length=100,
        pattern=r"^[A-Za-z0-9_.-]+$",
    ),
]


class UserBase(BaseModel):
    username: UsernameStr
    email: EmailStr
    role: RoleName
    first_name: NameStr
    last_name: NameStr
    phone: OptStr50 = None


class UserCreate(UserBase):
    password: Annotated[str, StringConstraints(min_length=8, max_length=128)]

    model_config = ConfigDict(extra="forbid")

    @field_validator("phone", mode="before")
    @classmethod
    def empty_str_to_none(cls, v: Any) -> Any:
        return blank_to_none(v)


class UserResponse(UserBase):
    id: int
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
