"""Unit tests for password hashing, tokens and code generation"""

import uuid
from unittest.mock import patch

import pytest
from jose import jwt

from digital_wallet.config import settings
from digital_wallet.domain.exceptions import UnauthorizedError
from digital_wallet.domain.models import Role
from digital_wallet.utils.security import (
    create_access_token,
    decode_access_token,
    generate_account_number,
    generate_otp_code,
    hash_password,
    verify_password,
)


def test_password_round_trip():
    password_hash, salt = hash_password("Secret123")

    assert password_hash != "Secret123"
    assert verify_password("Secret123", salt, password_hash)
    assert not verify_password("Secret124", salt, password_hash)


def test_password_hashes_are_salted():
    """Test the same password hashes differently for two users"""
    first, _ = hash_password("Secret123")
    second, _ = hash_password("Secret123")
    assert first != second


def test_otp_code_is_six_digits():
    for _ in range(50):
        code = generate_otp_code()
        assert len(code) == 6
        assert code.isdigit()


def test_otp_code_keeps_leading_zeros():
    with patch("digital_wallet.utils.security.secrets.randbelow", return_value=42):
        assert generate_otp_code() == "000042"


def test_account_number_is_sixteen_digits():
    number = generate_account_number()
    assert len(number) == 16
    assert number.isdigit()


def test_access_token_round_trip():
    user_id = uuid.uuid4()
    token, expires_at = create_access_token(user_id, Role.ADMIN)

    caller = decode_access_token(token)

    assert caller.user_id == user_id
    assert caller.role == Role.ADMIN
    assert expires_at.tzinfo is None


def test_tampered_token_rejected():
    token, _ = create_access_token(uuid.uuid4(), Role.USER)
    forged = jwt.encode(jwt.get_unverified_claims(token) | {"role": "admin"}, "wrong-secret", algorithm="HS256")

    with pytest.raises(UnauthorizedError):
        decode_access_token(forged)


def test_token_without_subject_rejected():
    token = jwt.encode({"role": "user"}, settings.jwt_secret, algorithm=settings.jwt_algorithm)

    with pytest.raises(UnauthorizedError):
        decode_access_token(token)


def test_garbage_token_rejected():
    with pytest.raises(UnauthorizedError):
        decode_access_token("not-a-token")
