from __future__ import annotations

from typing import Any, Optional, Sequence

from ..core.enums import Position
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Player, PlayerChanges
from .repository import PlayerRepository

_COLUMNS = """
    player_id, name, position, jersey_number, always_available, image,
    attendance_count, total_sessions, created_at, updated_at
"""

_JERSEY_TAKEN = "Jersey number already taken"


def _to_player(r: dict[str, Any]) -> Player:
    return Player(
        player_id=int(r["player_id"]),
        name=r["name"],
        position=Position(r["position"]),
        jersey_number=int(r["jersey_number"]),
        always_available=bool(r["always_available"]),
        image=r.get("image"),
        attendance_count=int(r["attendance_count"]),
        total_sessions=int(r["total_sessions"]),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


class MySQLPlayerRepository(PlayerRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, player_id: int) -> Optional[Player]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM players WHERE player_id=%s", (int(player_id),))
            r = fetchone(cur)
            return _to_player(r) if r else None

    def get_by_jersey_number(self, jersey_number: int) -> Optional[Player]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM players WHERE jersey_number=%s", (int(jersey_number),))
            r = fetchone(cur)
            return _to_player(r) if r else None

    def list_all(self) -> Sequence[Player]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM players ORDER BY name ASC, player_id ASC")
            return [_to_player(r) for r in fetchall(cur)]

    def create(
        self,
        *,
        name: str,
        position: Position,
        jersey_number: int,
        always_available: bool = False,
        image: Optional[str] = None,
    ) -> Player:
        with db_cursor(self._conn_factory, conflict_message=_JERSEY_TAKEN) as (_, cur):
            cur.execute(
                """
                INSERT INTO players(name, position, jersey_number, always_available, image)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (name, position.value, int(jersey_number), int(bool(always_available)), image),
            )
            player_id = int(cur.lastrowid)
            cur.execute(f"SELECT {_COLUMNS} FROM players WHERE player_id=%s", (player_id,))
            return _to_player(fetchone(cur))

    def update(self, player_id: int, changes: PlayerChanges) -> Optional[Player]:
        assignments: list[str] = []
        params: list[object] = []

        if changes.name is not None:
            assignments.append("name=%s")
            params.append(changes.name)
        if changes.position is not None:
            assignments.append("position=%s")
            params.append(changes.position.value)
        if changes.jersey_number is not None:
            assignments.append("jersey_number=%s")
            params.append(int(changes.jersey_number))
        if changes.always_available is not None:
            assignments.append("always_available=%s")
            params.append(int(changes.always_available))
        if changes.clear_image:
            assignments.append("image=NULL")
        elif changes.image is not None:
            assignments.append("image=%s")
            params.append(changes.image)

        # Always touch updated_at, even when nothing else changed.
        assignments.append("updated_at=CURRENT_TIMESTAMP")

        with db_cursor(self._conn_factory, conflict_message=_JERSEY_TAKEN) as (_, cur):
            cur.execute(
                f"UPDATE players SET {', '.join(assignments)} WHERE player_id=%s",
                (*params, int(player_id)),
            )
            cur.execute(f"SELECT {_COLUMNS} FROM players WHERE player_id=%s", (int(player_id),))
            r = fetchone(cur)
            return _to_player(r) if r else None

    def set_counters(self, player_id: int, *, attendance_count: int, total_sessions: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE players SET attendance_count=%s, total_sessions=%s WHERE player_id=%s",
                (int(attendance_count), int(total_sessions), int(player_id)),
            )
            return cur.rowcount > 0

    def delete(self, player_id: int) -> bool:
        # attendance rows go with it (ON DELETE CASCADE)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM players WHERE player_id=%s", (int(player_id),))
            return cur.rowcount > 0
