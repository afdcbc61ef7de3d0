# app/services/user_service.py
import logging

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.database import atomic
from app.core.exceptions import ConflictError, NotFoundError
from app.core.security import get_password_hash
from app.models.user import RoleName, User
from app.schemas.user import UserCreate

logger = logging.getLogger(__name__)


def _find_existing(db: Session, user_in: UserCreate) -> User | None:
    return (
        db.query(User)
        .filter(or_(User.username == user_in.username, User.email == user_in.email))
        .first()
    )


def create_user(db: Session, user_in: UserCreate) -> User:
    """
    Create a staff account.

    Username and email are unique; either clash raises ConflictError, also
    when a concurrent insert wins the race to the unique index.
    """
    existing = _find_existing(db, user_in)
    if existing:
        field = "username" if existing.username == user_in.username else "email"
        raise ConflictError(f"A user with this {field} already exists")

    user = User(
        username=user_in.username,
        email=user_in.email,
        hashed_password=get_password_hash(user_in.password),
        role=user_in.role,
        first_name=user_in.first_name,
        last_name=user_in.last_name,
        phone=user_in.phone,
        is_active=True,
    )
    try:
        with atomic(db):
            db.add(user)
    except IntegrityError as exc:
        raise ConflictError("A user with this username or email already exists") from exc
    db.refresh(user)

    logger.info("Created user id=%s username=%s role=%s", user.id, user.username, user.role.value)
    return user


def list_users(db: Session, *, skip: int = 0, limit: int = 100) -> list[User]:
    return db.query(User).order_by(User.id.asc()).offset(skip).limit(limit).all()


def get_user_by_username(db: Session, username: str) -> User | None:
    return db.query(User).filter(User.username == username).first()


def get_user(db: Session, *, user_id: int) -> User:
    user = db.get(User, user_id)
    if not user:
        raise NotFoundError.for_entity("User", user_id)
    return user


def get_doctor(db: Session, *, doctor_id: int) -> User:
    """Return the user if it exists and is a doctor; NotFoundError otherwise."""
    user = db.get(User, doctor_id)
    if not user or user.role != RoleName.DOCTOR:
        raise NotFoundError(f"Doctor with id {doctor_id} not found")
    return user
