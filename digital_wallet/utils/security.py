"""Credential hashing, access tokens and random code generation"""

import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Tuple

import bcrypt
from jose import JWTError, jwt

from digital_wallet.config import settings
from digital_wallet.domain.exceptions import UnauthorizedError
from digital_wallet.domain.models import Caller, Role

OTP_LENGTH = 6


def hash_password(password: str) -> Tuple[str, str]:
    """Return (password_hash, salt); the salt is stored alongside the hash"""
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    password_hash = bcrypt.hashpw(password.encode("utf-8"), salt)
    return password_hash.decode("utf-8"), salt.decode("utf-8")


def verify_password(password: str, salt: str, password_hash: str) -> bool:
    candidate = bcrypt.hashpw(password.encode("utf-8"), salt.encode("utf-8"))
    return secrets.compare_digest(candidate, password_hash.encode("utf-8"))


def generate_otp_code() -> str:
    """Uniformly random 6-digit numeric code from the OS CSPRNG"""
    return f"{secrets.randbelow(10 ** OTP_LENGTH):0{OTP_LENGTH}d}"


def generate_account_number() -> str:
    """16-digit simulated bank account number"""
    return "".join(str(secrets.randbelow(10)) for _ in range(16))


def create_access_token(user_id: uuid.UUID, role: Role) -> Tuple[str, datetime]:
    """Signed JWT carrying the caller identity; returns (token, naive UTC expiry)"""
    expires_at = datetime.now(timezone.utc) + timedelta(minutes=settings.access_token_ttl_minutes)
    payload: Dict[str, Any] = {
        "sub": str(user_id),
        "role": role.value,
        "exp": expires_at,
    }
    token = jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)
    return token, expires_at.replace(tzinfo=None)


def decode_access_token(token: str) -> Caller:
    """
    Verify signature and expiry and return the caller identity.

    Raises:
        UnauthorizedError: On any malformed, expired or tampered token
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
        return Caller(user_id=uuid.UUID(payload["sub"]), role=Role(payload.get("role", Role.USER.value)))
    except (JWTError, KeyError, ValueError) as e:
        raise UnauthorizedError("Invalid or expired access token") from e
