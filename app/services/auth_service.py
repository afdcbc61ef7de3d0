# app/services/auth_service.py
from sqlalchemy.orm import Session

from app.core.exceptions import AuthenticationError
from app.core.security import create_access_token, verify_password
from app.models.user import User
from app.schemas.auth import LoginRequest
from app.services.user_service import get_user_by_username


def authenticate_user(db: Session, login_data: LoginRequest) -> User:
    """
    Authenticate a user given username and password.
    Inactive accounts are rejected with the same message as bad credentials.
    """
    user = get_user_by_username(db, login_data.username)
    if not user:
        raise AuthenticationError("Invalid username or password")

    if not verify_password(login_data.password, user.hashed_password):
        raise AuthenticationError("Invalid username or password")

    if not user.is_active:
        raise AuthenticationError("Invalid username or password")

    return user


def issue_access_token_for_user(user: User) -> str:
    return create_access_token(
        subject=str(user.id),
        role=user.role.value,
        username=user.username,
    )
