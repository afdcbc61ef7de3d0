# tests/test_security.py
import pytest

from app.core.security import (
    create_access_token,
    decode_token,
    get_password_hash,
    user_id_from_token,
    verify_password,
)


def test_password_hash_round_trip():
    hashed = get_password_hash("correct horse")

    assert hashed != "correct horse"
    assert verify_password("correct horse", hashed)
    assert not verify_password("wrong horse", hashed)


def test_token_carries_user_claims():
    token = create_access_token(subject=42, role="pharmacist", username="pharma.lee")

    claims = decode_token(token)
    assert claims["sub"] == "42"
    assert claims["role"] == "pharmacist"
    assert claims["username"] == "pharma.lee"
    assert user_id_from_token(token) == 42


def test_expired_token_is_rejected():
    token = create_access_token(subject=1, role="admin", username="admin", expires_delta_minutes=-1)

    with pytest.raises(ValueError, match="expired"):
        decode_token(token)


def test_tampered_token_is_rejected():
    header, _, signature = create_access_token(subject=1, role="cashier", username="c").split(".")
    _, admin_claims, _ = create_access_token(subject=2, role="admin", username="a").split(".")

    with pytest.raises(ValueError, match="Invalid token"):
        decode_token(f"{header}.{admin_claims}.{signature}")
