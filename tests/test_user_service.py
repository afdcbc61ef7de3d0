# tests/test_user_service.py
import pytest

from app.core.exceptions import ConflictError
from app.models.user import RoleName, User
from app.schemas.user import UserCreate
from app.services import user_service
from tests.conftest import TEST_PASSWORD


def _user_create(**overrides):
    data = {
        "username": "cashier.kim",
        "email": "kim@example.com",
        "role": RoleName.CASHIER,
        "first_name": "Kim",
        "last_name": "Park",
        "password": TEST_PASSWORD,
    }
    data.update(overrides)
    return UserCreate(**data)


def test_duplicate_username_or_email_conflicts(db, pharmacist):
    with pytest.raises(ConflictError, match="username"):
        user_service.create_user(db, _user_create(username=pharmacist.username))
    with pytest.raises(ConflictError, match="email"):
        user_service.create_user(db, _user_create(email=pharmacist.email))


def test_unique_index_clash_after_check_is_a_conflict(db, pharmacist, monkeypatch):
    # Another request inserts the same username between the lookup and the commit
    username = pharmacist.username
    monkeypatch.setattr(user_service, "_find_existing", lambda db, user_in: None)

    with pytest.raises(ConflictError, match="username or email already exists"):
        user_service.create_user(db, _user_create(username=username))

    assert db.query(User).filter(User.username == username).count() == 1
    assert user_service.create_user(db, _user_create()).username == "cashier.kim"
