"""In-memory store used by the test suite and by STORE_BACKEND=memory.

Mirrors the MySQL schema rules: unique jersey number, unique attendance key,
unique username, cascade of attendance rows when a player is deleted.
"""
from __future__ import annotations

import itertools
import threading
from dataclasses import replace
from datetime import date, datetime
from typing import Collection, Mapping, Optional, Sequence

from ..attendance.model import AttendanceRecord
from ..core.enums import AttendanceStatus, Position, Role, TrainingSession
from ..core.exceptions import ConflictError, NotFoundError
from ..players.model import Player, PlayerChanges
from ..users.model import User


class InMemoryStore:
    """Shared state behind the in-memory repositories; one lock guards all tables."""

    def __init__(self):
        self.lock = threading.RLock()
        self.players: dict[int, Player] = {}
        self.attendance: dict[int, AttendanceRecord] = {}
        self.users: dict[int, User] = {}
        self._player_ids = itertools.count(1)
        self._attendance_ids = itertools.count(1)
        self._user_ids = itertools.count(1)

    def next_player_id(self) -> int:
        return next(self._player_ids)

    def next_attendance_id(self) -> int:
        return next(self._attendance_ids)

    def next_user_id(self) -> int:
        return next(self._user_ids)


class InMemoryPlayerRepository:
    def __init__(self, store: InMemoryStore):
        self._store = store

    def get_by_id(self, player_id: int) -> Optional[Player]:
        with self._store.lock:
            return self._store.players.get(int(player_id))

    def get_by_jersey_number(self, jersey_number: int) -> Optional[Player]:
        with self._store.lock:
            for p in self._store.players.values():
                if p.jersey_number == jersey_number:
                    return p
            return None

    def list_all(self) -> Sequence[Player]:
        with self._store.lock:
            players = list(self._store.players.values())
        return sorted(players, key=lambda p: (p.name.lower(), p.player_id))

    def _check_jersey(self, jersey_number: int, *, exclude_id: Optional[int] = None) -> None:
        holder = self.get_by_jersey_number(jersey_number)
        if holder and holder.player_id != exclude_id:
            raise ConflictError("Jersey number already taken")

    def create(
        self,
        *,
        name: str,
        position: Position,
        jersey_number: int,
        always_available: bool = False,
        image: Optional[str] = None,
    ) -> Player:
        with self._store.lock:
            self._check_jersey(jersey_number)
            now = datetime.now()
            player = Player(
                player_id=self._store.next_player_id(),
                name=name,
                position=position,
                jersey_number=jersey_number,
                always_available=always_available,
                image=image,
                created_at=now,
                updated_at=now,
            )
            self._store.players[player.player_id] = player
            return player

    def update(self, player_id: int, changes: PlayerChanges) -> Optional[Player]:
        with self._store.lock:
            current = self._store.players.get(int(player_id))
            if not current:
                return None

            fields: dict = {}
            if changes.name is not None:
                fields["name"] = changes.name
            if changes.position is not None:
                fields["position"] = changes.position
            if changes.jersey_number is not None:
                self._check_jersey(changes.jersey_number, exclude_id=current.player_id)
                fields["jersey_number"] = changes.jersey_number
            if changes.always_available is not None:
                fields["always_available"] = changes.always_available
            if changes.clear_image:
                fields["image"] = None
            elif changes.image is not None:
                fields["image"] = changes.image

            updated = replace(current, updated_at=datetime.now(), **fields)
            self._store.players[current.player_id] = updated
            return updated

    def set_counters(self, player_id: int, *, attendance_count: int, total_sessions: int) -> bool:
        with self._store.lock:
            current = self._store.players.get(int(player_id))
            if not current:
                return False
            self._store.players[current.player_id] = replace(
                current, attendance_count=attendance_count, total_sessions=total_sessions
            )
            return True

    def delete(self, player_id: int) -> bool:
        with self._store.lock:
            if self._store.players.pop(int(player_id), None) is None:
                return False
            # ON DELETE CASCADE
            for att_id in [a.attendance_id for a in self._store.attendance.values() if a.player_id == int(player_id)]:
                del self._store.attendance[att_id]
            return True


class InMemoryAttendanceRepository:
    def __init__(self, store: InMemoryStore):
        self._store = store

    def get_by_key(self, player_id: int, att_date: date, session: TrainingSession) -> Optional[AttendanceRecord]:
        with self._store.lock:
            for rec in self._store.attendance.values():
                if rec.player_id == player_id and rec.att_date == att_date and rec.session == session:
                    return rec
            return None

    def _bump_player(self, player_id: int, *, attended_delta: int, sessions_delta: int) -> None:
        # Caller holds the lock.
        player = self._store.players[player_id]
        self._store.players[player_id] = replace(
            player,
            attendance_count=player.attendance_count + attended_delta,
            total_sessions=player.total_sessions + sessions_delta,
        )

    def create(
        self,
        *,
        player_id: int,
        att_date: date,
        session: TrainingSession,
        status: AttendanceStatus,
        recorded_by: Optional[int],
        recorded_at: datetime,
    ) -> AttendanceRecord:
        with self._store.lock:
            if player_id not in self._store.players:
                raise NotFoundError("Player not found")
            if self.get_by_key(player_id, att_date, session):
                raise ConflictError("Attendance already recorded for this player and session")

            rec = AttendanceRecord(
                attendance_id=self._store.next_attendance_id(),
                player_id=player_id,
                att_date=att_date,
                session=session,
                status=status,
                recorded_by=recorded_by,
                recorded_at=recorded_at,
            )
            self._store.attendance[rec.attendance_id] = rec
            self._bump_player(player_id, attended_delta=int(status.attended), sessions_delta=1)
            return rec

    def update_status(
        self,
        *,
        attendance_id: int,
        status: AttendanceStatus,
        recorded_by: Optional[int],
        recorded_at: datetime,
    ) -> Optional[AttendanceRecord]:
        with self._store.lock:
            current = self._store.attendance.get(int(attendance_id))
            if not current:
                return None
            updated = replace(current, status=status, recorded_by=recorded_by, recorded_at=recorded_at)
            self._store.attendance[current.attendance_id] = updated

            delta = int(status.attended) - int(current.status.attended)
            if delta and current.player_id in self._store.players:
                self._bump_player(current.player_id, attended_delta=delta, sessions_delta=0)
            return updated

    def list_records(
        self,
        *,
        att_date: Optional[date] = None,
        session: Optional[TrainingSession] = None,
        player_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        statuses: Optional[Collection[AttendanceStatus]] = None,
    ) -> Sequence[AttendanceRecord]:
        with self._store.lock:
            records = list(self._store.attendance.values())

        rows = [
            r
            for r in records
            if (att_date is None or r.att_date == att_date)
            and (session is None or r.session == session)
            and (player_id is None or r.player_id == player_id)
            and (start_date is None or r.att_date >= start_date)
            and (end_date is None or r.att_date <= end_date)
            and (statuses is None or r.status in statuses)
        ]
        # date DESC, then session order, then insertion order
        rows.sort(key=lambda r: (r.session.order, r.attendance_id))
        rows.sort(key=lambda r: r.att_date, reverse=True)
        return rows

    def delete_by_player(self, player_id: int) -> int:
        with self._store.lock:
            doomed = [a.attendance_id for a in self._store.attendance.values() if a.player_id == int(player_id)]
            for att_id in doomed:
                del self._store.attendance[att_id]
            return len(doomed)

    def count_by_player(self) -> Mapping[int, tuple[int, int]]:
        with self._store.lock:
            records = list(self._store.attendance.values())

        counts: dict[int, tuple[int, int]] = {}
        for r in records:
            attended, total = counts.get(r.player_id, (0, 0))
            counts[r.player_id] = (attended + int(r.status.attended), total + 1)
        return counts


class InMemoryUserRepository:
    def __init__(self, store: InMemoryStore):
        self._store = store

    def get_by_id(self, user_id: int) -> Optional[User]:
        with self._store.lock:
            return self._store.users.get(int(user_id))

    def get_by_username(self, username: str) -> Optional[User]:
        with self._store.lock:
            for u in self._store.users.values():
                if u.username == username:
                    return u
            return None

    def create_user(self, *, username: str, password_hash: str, name: str, role: Role) -> User:
        with self._store.lock:
            if self.get_by_username(username):
                raise ConflictError("User already exists")
            user = User(
                user_id=self._store.next_user_id(),
                username=username,
                password_hash=password_hash,
                name=name,
                role=role,
                created_at=datetime.now(),
            )
            self._store.users[user.user_id] = user
            return user
