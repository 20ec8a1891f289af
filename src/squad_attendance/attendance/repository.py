from __future__ import annotations

from datetime import date, datetime
from typing import Collection, Mapping, Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus, TrainingSession
from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    """Repository interface for attendance records.

    (player_id, att_date, session) is the natural key: create() raises
    ConflictError when a record for the key already exists.

    Writes keep the owning player's counters in step within the same
    transaction: create() adds one session (and one attendance when the
    status is present or late); update_status() moves attendance_count by
    the net change against the status currently stored.
    """

    def get_by_key(self, player_id: int, att_date: date, session: TrainingSession) -> Optional[AttendanceRecord]:
        raise NotImplementedError

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
        raise NotImplementedError

    def update_status(
        self,
        *,
        attendance_id: int,
        status: AttendanceStatus,
        recorded_by: Optional[int],
        recorded_at: datetime,
    ) -> Optional[AttendanceRecord]:
        raise NotImplementedError

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
        """Filtered records, newest date first then session order."""
        raise NotImplementedError

    def delete_by_player(self, player_id: int) -> int:
        raise NotImplementedError

    def count_by_player(self) -> Mapping[int, tuple[int, int]]:
        """player_id -> (attended, total) computed from the records themselves."""
        raise NotImplementedError
