from datetime import datetime, timedelta, timezone
from typing import Any

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from app.core.config import get_settings

# bcrypt for staff passwords; hashes are never returned by the API
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(
    subject: str | int,
    role: str,
    username: str,
    expires_delta_minutes: int | None = None,
) -> str:
    """
    Sign a bearer token for a staff user.

    Claims: sub (user id as a string), username, role, exp.
    """
    settings = get_settings()
    lifetime = timedelta(minutes=expires_delta_minutes or settings.access_token_expire_minutes)
    claims: dict[str, Any] = {
        "sub": str(subject),
        "username": username,
        "role": role,
        "exp": datetime.now(timezone.utc) + lifetime,
    }
    return jwt.encode(claims, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict[str, Any]:
    """
    Verify signature and expiry and return the claims.
    Raises ValueError with a client-safe message otherwise.
    """
    settings = get_settings()
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError:
        raise ValueError("Token has expired. Please log in again.") from None
    except JWTError as exc:
        raise ValueError("Invalid token") from exc


def user_id_from_token(token: str) -> int:
    """Decode a bearer token and return the numeric user id in `sub`."""
    subject = decode_token(token).get("sub")
    if not subject or not str(subject).isdigit():
        raise ValueError("Invalid token payload")
    return int(subject)
