from __future__ import annotations

import pytest
from werkzeug.security import check_password_hash

from squad_attendance.core.enums import Role
from squad_attendance.core.exceptions import AuthenticationError, ConflictError, ValidationError
from squad_attendance.users.security import TokenService
from squad_attendance.users.service import AuthService


@pytest.fixture
def tokens():
    return TokenService("unit-secret", max_age_seconds=60)


@pytest.fixture
def auth(users_repo, tokens):
    return AuthService(users_repo, tokens)


def test_register_hashes_password_and_defaults_to_coach(auth, users_repo):
    result = auth.register(username="boss", password="secret123", name="The Boss")

    stored = users_repo.get_by_username("boss")
    assert stored.role == Role.COACH
    assert stored.password_hash != "secret123"
    assert check_password_hash(stored.password_hash, "secret123")
    assert result.user.user_id == stored.user_id
    assert result.token


def test_register_validation_and_duplicates(auth):
    with pytest.raises(ValidationError):
        auth.register(username="", password="secret123", name="X")
    with pytest.raises(ValidationError):
        auth.register(username="x", password="123", name="X")
    with pytest.raises(ValidationError):
        auth.register(username="x", password="secret123", name="X", role="president")

    auth.register(username="x", password="secret123", name="X")
    with pytest.raises(ConflictError, match="User already exists"):
        auth.register(username="x", password="secret123", name="Other")


def test_authenticate(auth, tokens):
    auth.register(username="helper", password="secret123", name="Helper", role="staff")

    result = auth.authenticate("helper", "secret123")
    identity = tokens.verify(result.token)
    assert identity.username == "helper"
    assert identity.role == Role.STAFF

    with pytest.raises(AuthenticationError, match="Invalid credentials"):
        auth.authenticate("helper", "wrong-password")
    with pytest.raises(AuthenticationError):
        auth.authenticate("nobody", "secret123")
    with pytest.raises(AuthenticationError):
        auth.authenticate(None, None)


def test_token_from_another_secret_is_rejected(auth):
    result = auth.register(username="boss", password="secret123", name="Boss")

    with pytest.raises(AuthenticationError, match="Token is not valid"):
        TokenService("other-secret").verify(result.token)
    with pytest.raises(AuthenticationError, match="Token is not valid"):
        TokenService("unit-secret").verify(result.token + "x")
    with pytest.raises(AuthenticationError, match="No token"):
        TokenService("unit-secret").verify("")


def test_expired_token_is_rejected(auth):
    result = auth.register(username="boss", password="secret123", name="Boss")

    with pytest.raises(AuthenticationError):
        TokenService("unit-secret", max_age_seconds=-1).verify(result.token)
