from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from passlib.context import CryptContext

from student_portal.errors import InvalidToken, TokenExpired
from student_portal.models import StudentIdentity


# Fixed work factor; every hash carries its own random salt.
PBKDF2_ROUNDS = 29000

_pwd = CryptContext(
    schemes=["pbkdf2_sha256"],
    deprecated="auto",
    pbkdf2_sha256__default_rounds=PBKDF2_ROUNDS,
)
_JWT_ALG = "HS256"


def hash_password(password: str) -> str:
    if not password:
        raise ValueError("password_blank")
    return _pwd.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Constant-time check of a plaintext password against a stored hash."""
    if not password or not password_hash:
        return False
    try:
        return _pwd.verify(password, password_hash)
    except ValueError:
        # Malformed / unrecognized hash string.
        return False


def dummy_verify() -> None:
    """Burn the same time as a real verification (used when the email is unknown)."""
    _pwd.dummy_verify()


def create_access_token(
    *,
    secret: str,
    student_id: int,
    email: str,
    expires_minutes: int,
    now: Optional[datetime] = None,
) -> str:
    if not secret:
        raise ValueError("jwt_secret_blank")

    issued = now or datetime.now(timezone.utc)
    exp = issued + timedelta(minutes=max(1, int(expires_minutes)))

    payload: Dict[str, Any] = {
        "sub": str(student_id),
        "email": email,
        "iat": int(issued.timestamp()),
        "exp": int(exp.timestamp()),
    }
    return jwt.encode(payload, secret, algorithm=_JWT_ALG)


def decode_access_token(*, token: str, secret: str) -> Dict[str, Any]:
    if not token:
        raise ValueError("token_blank")
    if not secret:
        raise ValueError("jwt_secret_blank")
    return jwt.decode(
        token,
        secret,
        algorithms=[_JWT_ALG],
        options={"require": ["sub", "exp", "iat"]},
    )


class TokenService:
    """Issues and verifies signed, time-limited bearer tokens.

    Stateless: validity is signature + expiry only. The secret is fixed for the
    lifetime of the process; rotating it invalidates all outstanding tokens.
    """

    def __init__(self, secret: str, expires_minutes: int):
        if not secret:
            raise ValueError("jwt_secret_blank")
        self._secret = secret
        self.expires_minutes = max(1, int(expires_minutes))

    def issue(self, identity: StudentIdentity, *, now: Optional[datetime] = None) -> str:
        return create_access_token(
            secret=self._secret,
            student_id=int(identity.id),
            email=identity.email,
            expires_minutes=self.expires_minutes,
            now=now,
        )

    def verify(self, token: Optional[str]) -> StudentIdentity:
        if not token:
            raise InvalidToken("Access token required")

        try:
            payload = decode_access_token(token=token, secret=self._secret)
        except jwt.ExpiredSignatureError:
            raise TokenExpired("Token expired")
        except jwt.InvalidTokenError:
            raise InvalidToken("Invalid token")

        email = payload.get("email")
        if not email or not isinstance(email, str):
            raise InvalidToken("Invalid token")

        try:
            student_id = int(payload["sub"])
        except (TypeError, ValueError):
            raise InvalidToken("Invalid token")

        return StudentIdentity(id=student_id, email=email)
