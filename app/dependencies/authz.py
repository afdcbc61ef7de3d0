# app/dependencies/authz.py
from typing import Iterable

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.database import get_db
from app.core.exceptions import AuthenticationError
from app.core.security import user_id_from_token
from app.models.user import RoleName, User

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{get_settings().api_v1_prefix}/auth/login")


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    """
    Dependency to retrieve the current user from a JWT bearer token.
    """
    try:
        user_id = user_id_from_token(token)
    except ValueError as exc:
        raise AuthenticationError(str(exc)) from exc

    user = db.get(User, user_id)
    if not user or not user.is_active:
        raise AuthenticationError("User not found")

    return user


def require_roles(required_roles: Iterable[RoleName]):
    """
    Dependency factory for role-based access.

    Usage:

    @router.get("/admin")
    def admin_only(user = Depends(require_roles([RoleName.ADMIN]))):
        ...

    Returns the current_user if they have at least one required role.
    """
    required = {r.value if isinstance(r, RoleName) else str(r) for r in required_roles}

    def dependency(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role.value not in required:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient role permissions.",
            )
        return current_user

    return dependency
