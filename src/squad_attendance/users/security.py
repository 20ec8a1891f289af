"""Access gate: signed bearer tokens and the decorators guarding API views."""
from __future__ import annotations

from functools import wraps

from flask import g, request
from itsdangerous import BadSignature, URLSafeTimedSerializer

from ..core.constants import DEFAULT_TOKEN_MAX_AGE_SECONDS
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError
from .model import Identity, User


class TokenService:
    """Issues and verifies the bearer tokens handed out at login."""

    def __init__(self, secret_key: str, *, max_age_seconds: int = DEFAULT_TOKEN_MAX_AGE_SECONDS):
        self._serializer = URLSafeTimedSerializer(secret_key, salt="squad-attendance-auth")
        self._max_age = int(max_age_seconds)

    def issue(self, user: User) -> str:
        return self._serializer.dumps(
            {"id": user.user_id, "username": user.username, "name": user.name, "role": user.role.value}
        )

    def verify(self, token: str) -> Identity:
        if not token:
            raise AuthenticationError("No token, authorization denied")
        try:
            payload = self._serializer.loads(token, max_age=self._max_age)
            return Identity(
                user_id=int(payload["id"]),
                username=payload["username"],
                name=payload["name"],
                role=Role(payload["role"]),
            )
        except (BadSignature, KeyError, TypeError, ValueError):
            raise AuthenticationError("Token is not valid")


def bearer_token() -> str:
    header = request.headers.get("Authorization", "")
    if header.startswith("Bearer "):
        return header[len("Bearer "):].strip()
    return ""


def login_required(tokens: TokenService):
    """Verify the bearer token and expose the caller as ``g.current_user``."""

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            g.current_user = tokens.verify(bearer_token())
            return view(*args, **kwargs)

        return wrapper

    return decorator


def coach_required(view):
    """Allow only the Coach role. Must be stacked under login_required."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        user = g.get("current_user")
        if user is None:
            raise AuthenticationError("No token, authorization denied")
        if user.role != Role.COACH:
            raise AuthorizationError("Access denied. Only coach can mark attendance.")
        return view(*args, **kwargs)

    return wrapper
