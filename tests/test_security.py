from datetime import datetime, timedelta, timezone

import jwt
import pytest

from student_portal.auth.security import (
    TokenService,
    dummy_verify,
    hash_password,
    verify_password,
)
from student_portal.errors import InvalidToken, TokenExpired, Unauthorized
from student_portal.models import StudentIdentity


SECRET = "unit-test-secret"
ALICE = StudentIdentity(id=7, email="alice@university.edu")


def test_hash_is_salted_and_verifies():
    h1 = hash_password("hunter22")
    h2 = hash_password("hunter22")

    assert h1 != h2
    assert "hunter22" not in h1
    assert h1.startswith("$pbkdf2-sha256$")
    assert verify_password("hunter22", h1)
    assert verify_password("hunter22", h2)
    assert not verify_password("hunter23", h1)


def test_verify_rejects_blank_and_malformed_hashes():
    h = hash_password("pw")
    assert not verify_password("", h)
    assert not verify_password("pw", "")
    assert not verify_password("pw", "not-a-hash")


def test_blank_password_cannot_be_hashed():
    with pytest.raises(ValueError):
        hash_password("")


def test_dummy_verify_runs():
    dummy_verify()


def test_issue_and_verify_roundtrip():
    svc = TokenService(SECRET, 60)
    token = svc.issue(ALICE)

    assert svc.verify(token) == ALICE

    claims = jwt.decode(token, SECRET, algorithms=["HS256"])
    assert claims["sub"] == "7"
    assert claims["email"] == ALICE.email
    assert claims["exp"] - claims["iat"] == 60 * 60


def test_token_is_valid_just_before_expiry():
    svc = TokenService(SECRET, 60)
    issued = datetime.now(timezone.utc) - timedelta(minutes=59)
    assert svc.verify(svc.issue(ALICE, now=issued)).id == ALICE.id


def test_expired_token_is_rejected():
    svc = TokenService(SECRET, 60)
    issued = datetime.now(timezone.utc) - timedelta(minutes=61)

    with pytest.raises(TokenExpired) as ei:
        svc.verify(svc.issue(ALICE, now=issued))
    assert ei.value.message == "Token expired"
    assert ei.value.status_code == 401


def test_token_signed_with_other_secret_is_rejected():
    token = TokenService("someone-else", 60).issue(ALICE)
    with pytest.raises(InvalidToken) as ei:
        TokenService(SECRET, 60).verify(token)
    assert ei.value.message == "Invalid token"


@pytest.mark.parametrize("token", ["garbage", "a.b.c", "Bearer xyz"])
def test_malformed_token_is_rejected(token):
    with pytest.raises(InvalidToken):
        TokenService(SECRET, 60).verify(token)


@pytest.mark.parametrize("token", [None, ""])
def test_missing_token_is_rejected(token):
    with pytest.raises(InvalidToken) as ei:
        TokenService(SECRET, 60).verify(token)
    assert ei.value.message == "Access token required"


def test_tampered_payload_is_rejected():
    svc = TokenService(SECRET, 60)
    header, _, signature = svc.issue(ALICE).split(".")
    forged_payload = jwt.encode(
        {"sub": "8", "email": "mallory@university.edu", "iat": 0, "exp": 4102444800},
        "whatever",
        algorithm="HS256",
    ).split(".")[1]

    with pytest.raises(InvalidToken):
        svc.verify(f"{header}.{forged_payload}.{signature}")


def test_unsigned_token_is_rejected():
    now = int(datetime.now(timezone.utc).timestamp())
    token = jwt.encode({"sub": "7", "email": ALICE.email, "iat": now, "exp": now + 600}, None, algorithm="none")
    with pytest.raises(InvalidToken):
        TokenService(SECRET, 60).verify(token)


def _signed(claims):
    return jwt.encode(claims, SECRET, algorithm="HS256")


def test_token_without_email_is_rejected():
    now = int(datetime.now(timezone.utc).timestamp())
    with pytest.raises(InvalidToken):
        TokenService(SECRET, 60).verify(_signed({"sub": "7", "iat": now, "exp": now + 600}))


def test_token_with_non_numeric_subject_is_rejected():
    now = int(datetime.now(timezone.utc).timestamp())
    token = _signed({"sub": "alice", "email": ALICE.email, "iat": now, "exp": now + 600})
    with pytest.raises(InvalidToken):
        TokenService(SECRET, 60).verify(token)


def test_token_without_expiry_is_rejected():
    now = int(datetime.now(timezone.utc).timestamp())
    with pytest.raises(InvalidToken):
        TokenService(SECRET, 60).verify(_signed({"sub": "7", "email": ALICE.email, "iat": now}))


def test_token_errors_are_unauthorized():
    assert issubclass(InvalidToken, Unauthorized)
    assert issubclass(TokenExpired, Unauthorized)
    assert InvalidToken().headers == {"WWW-Authenticate": "Bearer"}


def test_service_requires_a_secret():
    with pytest.raises(ValueError):
        TokenService("", 60)
