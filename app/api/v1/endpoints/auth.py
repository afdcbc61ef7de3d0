# app/api/v1/endpoints/auth.py
import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.exceptions import AuthenticationError
from app.dependencies.authz import get_current_user, require_roles
from app.models.user import RoleName, User
from app.schemas.auth import LoginRequest, TokenResponse
from app.schemas.user import UserCreate, UserResponse
from app.services import user_service
from app.services.auth_service import authenticate_user, issue_access_token_for_user

router = APIRouter()
logger = logging.getLogger(__name__)

require_admin = require_roles([RoleName.ADMIN])


@router.post("/login", response_model=TokenResponse)
def login(
    payload: LoginRequest,
    db: Session = Depends(get_db),
) -> TokenResponse:
    """
    Exchange username and password for a bearer token.
    """
    try:
        user = authenticate_user(db, payload)
    except AuthenticationError:
        logger.warning("Failed login for username=%s", payload.username)
        raise
    token = issue_access_token_for_user(user)
    return TokenResponse(access_token=token, user=UserResponse.model_validate(user))


@router.get("/me", response_model=UserResponse)
def read_current_user(
    current_user: User = Depends(get_current_user),
) -> User:
    """
    Return the current authenticated user.
    """
    return current_user


@router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserCreate,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> User:
    """
    Create a staff account (admin only).
    """
    return user_service.create_user(db, payload)


@router.get("/users", response_model=list[UserResponse])
def list_users(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> list[User]:
    return user_service.list_users(db, skip=skip, limit=limit)
