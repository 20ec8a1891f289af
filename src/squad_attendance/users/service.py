from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.validators import require_enum, require_min_length, require_non_empty
from ..core.constants import MIN_PASSWORD_LENGTH
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, ConflictError
from .model import User
from .repository import UserRepository
from .security import TokenService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthResult:
    token: str
    user: User


class AuthService:
    """Use case: register accounts and authenticate (login)."""

    def __init__(self, users: UserRepository, tokens: TokenService):
        self._users = users
        self._tokens = tokens

    def register(self, *, username: Any, password: Any, name: Any, role: Any = None) -> AuthResult:
        username = require_non_empty(username, "username")
        require_min_length(password, "password", MIN_PASSWORD_LENGTH)
        name = require_non_empty(name, "name")
        role = require_enum(role, Role, "role") if role else Role.COACH

        if self._users.get_by_username(username):
            raise ConflictError("User already exists")

        user = self._users.create_user(
            username=username,
            password_hash=generate_password_hash(password),
            name=name,
            role=role,
        )
        logger.info("Registered user %s (%s)", user.username, user.role.value)
        return AuthResult(token=self._tokens.issue(user), user=user)

    def authenticate(self, username: Any, password: Any) -> AuthResult:
        if not isinstance(username, str) or not isinstance(password, str):
            raise AuthenticationError("Invalid credentials")

        user = self._users.get_by_username(username.strip())
        if not user or not check_password_hash(user.password_hash, password):
            raise AuthenticationError("Invalid credentials")

        return AuthResult(token=self._tokens.issue(user), user=user)
