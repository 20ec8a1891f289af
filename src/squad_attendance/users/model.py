from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: an account that can sign in to the API.

    Note: plain data object, no DB access code.
    """

    user_id: int
    username: str
    password_hash: str
    name: str
    role: Role
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class Identity:
    """What the access gate attaches to the request after verifying a token."""

    user_id: int
    username: str
    name: str
    role: Role
