from __future__ import annotations

from datetime import datetime
from types import SimpleNamespace

import pytest

from squad_attendance.analytics.service import AnalyticsService
from squad_attendance.attendance.service import AttendanceService
from squad_attendance.container import build_container
from squad_attendance.core.enums import Position
from squad_attendance.database.memory import (
    InMemoryAttendanceRepository,
    InMemoryPlayerRepository,
    InMemoryStore,
    InMemoryUserRepository,
)
from squad_attendance.main import create_app
from squad_attendance.players.service import PlayerService
from squad_attendance.storage.image_storage import InMemoryImageStorage

TEST_SETTINGS = "squad_attendance.config.testing"


@pytest.fixture
def fixed_now():
    return datetime(2024, 3, 1, 9, 30, 0)


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def players_repo(store):
    return InMemoryPlayerRepository(store)


@pytest.fixture
def attendance_repo(store):
    return InMemoryAttendanceRepository(store)


@pytest.fixture
def users_repo(store):
    return InMemoryUserRepository(store)


@pytest.fixture
def images():
    return InMemoryImageStorage()


@pytest.fixture
def player_service(players_repo, attendance_repo, images):
    return PlayerService(players_repo, attendance_repo, images)


@pytest.fixture
def attendance_service(attendance_repo, players_repo):
    return AttendanceService(attendance_repo, players_repo)


@pytest.fixture
def analytics_service(players_repo, attendance_repo):
    return AnalyticsService(players_repo, attendance_repo)


@pytest.fixture
def make_player(player_service):
    numbers = iter(range(1, 100))

    def _make(name: str, position: Position = Position.MIDFIELDER, **kwargs):
        kwargs.setdefault("jersey_number", next(numbers))
        return player_service.create_player(name=name, position=position.value, **kwargs)

    return _make


@pytest.fixture
def container(store, images):
    settings = SimpleNamespace(SECRET_KEY="test-secret", TOKEN_MAX_AGE_SECONDS=3600)
    return build_container(settings, store=store, images=images)


@pytest.fixture
def app(container):
    app = create_app(TEST_SETTINGS, container=container)
    app.config.update(TESTING=True)
    return app


@pytest.fixture
def client(app):
    return app.test_client()


def _register(client, username: str, role: str) -> str:
    resp = client.post(
        "/api/auth/register",
        json={"username": username, "password": "secret123", "name": username.title(), "role": role},
    )
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()["token"]


@pytest.fixture
def coach_headers(client):
    return {"Authorization": f"Bearer {_register(client, 'coach', 'coach')}"}


@pytest.fixture
def staff_headers(client):
    return {"Authorization": f"Bearer {_register(client, 'staff', 'staff')}"}
