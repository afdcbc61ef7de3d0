# app/schemas/auth.py
from pydantic import BaseModel, ConfigDict

from app.schemas.user import UserResponse


class LoginRequest(BaseModel):
    username: str
    password: str

    model_config = ConfigDict(extra="forbid")


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse
