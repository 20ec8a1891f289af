from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .analytics.service import AnalyticsService
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .core.constants import DEFAULT_TOKEN_MAX_AGE_SECONDS
from .core.exceptions import ValidationError
from .database.connection import DBConfig, DatabaseConnection
from .database.memory import (
    InMemoryAttendanceRepository,
    InMemoryPlayerRepository,
    InMemoryStore,
    InMemoryUserRepository,
)
from .players.mysql_player_repository import MySQLPlayerRepository
from .players.repository import PlayerRepository
from .players.service import PlayerService
from .storage.image_storage import ImageStorage, InMemoryImageStorage, SupabaseImageStorage
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.security import TokenService
from .users.service import AuthService


@dataclass(frozen=True)
class Container:
    """Everything a request handler needs, built once per app."""

    conn: Optional[DatabaseConnection]

    users_repo: UserRepository
    players_repo: PlayerRepository
    attendance_repo: AttendanceRepository
    images: ImageStorage

    tokens: TokenService
    auth_service: AuthService
    player_service: PlayerService
    attendance_service: AttendanceService
    analytics_service: AnalyticsService


def _build_images(settings: Any) -> ImageStorage:
    backend = str(getattr(settings, "IMAGE_BACKEND", "memory")).lower()
    if backend == "supabase":
        return SupabaseImageStorage.from_settings(
            url=getattr(settings, "SUPABASE_URL"),
            key=getattr(settings, "SUPABASE_SERVICE_ROLE_KEY"),
            bucket=getattr(settings, "SUPABASE_BUCKET", "player-images"),
        )
    if backend == "memory":
        return InMemoryImageStorage()
    raise ValidationError(f"Unknown IMAGE_BACKEND: {backend}")


def build_container(
    settings: Any,
    *,
    store: Optional[InMemoryStore] = None,
    images: Optional[ImageStorage] = None,
) -> Container:
    """Wire repositories and services from a settings module (or any object with its attributes).

    ``store`` and ``images`` override the configured backends; tests pass them in.
    """
    backend = str(getattr(settings, "STORE_BACKEND", "mysql")).lower()
    conn: Optional[DatabaseConnection] = None

    if store is not None or backend == "memory":
        store = store or InMemoryStore()
        users_repo: UserRepository = InMemoryUserRepository(store)
        players_repo: PlayerRepository = InMemoryPlayerRepository(store)
        attendance_repo: AttendanceRepository = InMemoryAttendanceRepository(store)
    elif backend == "mysql":
        conn = DatabaseConnection(DBConfig.from_dict(getattr(settings, "DB_CONFIG")))
        users_repo = MySQLUserRepository(conn)
        players_repo = MySQLPlayerRepository(conn)
        attendance_repo = MySQLAttendanceRepository(conn)
    else:
        raise ValidationError(f"Unknown STORE_BACKEND: {backend}")

    images = images or _build_images(settings)

    tokens = TokenService(
        getattr(settings, "SECRET_KEY"),
        max_age_seconds=int(getattr(settings, "TOKEN_MAX_AGE_SECONDS", DEFAULT_TOKEN_MAX_AGE_SECONDS)),
    )

    return Container(
        conn=conn,
        users_repo=users_repo,
        players_repo=players_repo,
        attendance_repo=attendance_repo,
        images=images,
        tokens=tokens,
        auth_service=AuthService(users_repo, tokens),
        player_service=PlayerService(players_repo, attendance_repo, images),
        attendance_service=AttendanceService(attendance_repo, players_repo),
        analytics_service=AnalyticsService(players_repo, attendance_repo),
    )
