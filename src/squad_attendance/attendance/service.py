from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Iterable, Optional, Sequence

from ..common.datetime_utils import now_local, parse_iso_date
from ..common.numbers import round_half_up
from ..common.validators import require_enum, require_int
from ..core.enums import AttendanceStatus, TrainingSession
from ..core.exceptions import DomainError, NotFoundError, ValidationError
from ..players.repository import PlayerRepository
from .model import AttendanceItem, AttendanceRecord, RecordingFailure, RecordingResult
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlayerHistory:
    records: Sequence[AttendanceRecord]
    present_count: int
    late_count: int
    absent_count: int

    @property
    def total_records(self) -> int:
        return len(self.records)

    @property
    def attendance_rate(self) -> int:
        if not self.records:
            return 0
        return round_half_up((self.present_count + self.late_count) / self.total_records * 100)


def _status_counts() -> dict[str, int]:
    return {s.value: 0 for s in AttendanceStatus}


class AttendanceService:
    """Records attendance batches and answers attendance lookups.

    Player counters move with the record writes, inside the same store
    transaction:
    - a new record adds 1 to total_sessions, and 1 to attendance_count when
      the status is present or late;
    - a correction of an existing record never touches total_sessions and
      moves attendance_count by the net change of the attended flag.
    """

    def __init__(self, attendance: AttendanceRepository, players: PlayerRepository):
        self._attendance = attendance
        self._players = players

    def record_attendance(
        self,
        *,
        att_date: Any,
        session: Any,
        items: Iterable[AttendanceItem],
        actor_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> RecordingResult:
        att_date = parse_iso_date(att_date)
        session = require_enum(session, TrainingSession, "session")
        now = now or now_local()

        result = RecordingResult()
        for item in items:
            try:
                result.recorded.append(self._record_one(item, att_date, session, actor_id, now))
            except DomainError as e:
                logger.warning("Attendance for player %r on %s/%s failed: %s", item.player_id, att_date, session.value, e)
                result.failures.append(RecordingFailure(player_id=item.player_id, reason=str(e)))

        logger.info(
            "Attendance %s/%s: %s recorded, %s failed",
            att_date.isoformat(),
            session.value,
            len(result.recorded),
            len(result.failures),
        )
        return result

    def _record_one(
        self,
        item: AttendanceItem,
        att_date: date,
        session: TrainingSession,
        actor_id: Optional[int],
        now: datetime,
    ) -> AttendanceRecord:
        player_id = require_int(item.player_id, "playerId", min_value=1)
        status = require_enum(item.status, AttendanceStatus, "status")

        if not self._players.get_by_id(player_id):
            raise NotFoundError("Player not found")

        existing = self._attendance.get_by_key(player_id, att_date, session)
        if existing:
            updated = self._attendance.update_status(
                attendance_id=existing.attendance_id,
                status=status,
                recorded_by=actor_id,
                recorded_at=now,
            )
            if not updated:
                raise NotFoundError("Attendance record disappeared during update")
            return updated

        # A concurrent submission for the same key makes this raise ConflictError.
        return self._attendance.create(
            player_id=player_id,
            att_date=att_date,
            session=session,
            status=status,
            recorded_by=actor_id,
            recorded_at=now,
        )

    def list_attendance(
        self,
        *,
        att_date: Any = None,
        session: Any = None,
        player_id: Any = None,
    ) -> Sequence[AttendanceRecord]:
        return self._attendance.list_records(
            att_date=parse_iso_date(att_date) if att_date else None,
            session=require_enum(session, TrainingSession, "session") if session else None,
            player_id=require_int(player_id, "playerId", min_value=1) if player_id else None,
        )

    def daily_summary(self, att_date: Any) -> dict:
        """Totals per status for one day, overall and per session."""
        att_date = parse_iso_date(att_date)

        summary: dict = _status_counts()
        for s in TrainingSession:
            summary[s.value] = _status_counts()

        for r in self._attendance.list_records(att_date=att_date):
            summary[r.status.value] += 1
            summary[r.session.value][r.status.value] += 1
        return summary

    def player_history(self, player_id: Any, *, start: Any = None, end: Any = None) -> PlayerHistory:
        player_id = require_int(player_id, "playerId", min_value=1)
        if not self._players.get_by_id(player_id):
            raise NotFoundError("Player not found")

        # Both bounds or neither.
        start_date = end_date = None
        if start and end:
            start_date = parse_iso_date(start, "startDate")
            end_date = parse_iso_date(end, "endDate")
            if start_date > end_date:
                raise ValidationError("startDate must not be after endDate")

        records = self._attendance.list_records(player_id=player_id, start_date=start_date, end_date=end_date)
        return PlayerHistory(
            records=records,
            present_count=sum(1 for r in records if r.status == AttendanceStatus.PRESENT),
            late_count=sum(1 for r in records if r.status == AttendanceStatus.LATE),
            absent_count=sum(1 for r in records if r.status == AttendanceStatus.ABSENT),
        )
