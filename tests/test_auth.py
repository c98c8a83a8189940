"""Tests for admin credential checks and session tokens."""

from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from curator.auth import AdminAuthenticator, InvalidToken
from curator.auth.tokens import ALGORITHM, ADMIN_ID

SECRET = "test-secret"


def authenticator(password="hunter2"):
    return AdminAuthenticator("ops@example.com", password, SECRET, ttl_hours=24)


def test_check_credentials():
    auth = authenticator()
    identity = auth.check_credentials("ops@example.com", "hunter2")
    assert identity.to_dict() == {"id": ADMIN_ID, "email": "ops@example.com", "role": "admin"}
    assert auth.check_credentials("ops@example.com", "wrong") is None
    assert auth.check_credentials("other@example.com", "hunter2") is None


def test_login_disabled_without_password():
    assert authenticator(password="").check_credentials("ops@example.com", "") is None


def test_issue_and_verify_round_trip():
    auth = authenticator()
    token = auth.issue(auth.check_credentials("ops@example.com", "hunter2"))
    assert auth.verify(token).email == "ops@example.com"

    claims = jwt.decode(token, SECRET, algorithms=[ALGORITHM])
    assert claims["exp"] - claims["iat"] == int(timedelta(hours=24).total_seconds())


def test_expired_token_rejected():
    auth = authenticator()
    identity = auth.check_credentials("ops@example.com", "hunter2")
    token = auth.issue(identity, now=datetime.now(timezone.utc) - timedelta(days=2))
    with pytest.raises(InvalidToken):
        auth.verify(token)


def test_foreign_or_incomplete_tokens_rejected():
    auth = authenticator()
    with pytest.raises(InvalidToken):
        auth.verify("not-a-jwt")
    forged = jwt.encode({"adminId": ADMIN_ID, "email": "ops@example.com"}, "other-secret", algorithm=ALGORITHM)
    with pytest.raises(InvalidToken):
        auth.verify(forged)
    missing = jwt.encode({"email": "ops@example.com"}, SECRET, algorithm=ALGORITHM)
    with pytest.raises(InvalidToken, match="missing admin claims"):
        auth.verify(missing)
