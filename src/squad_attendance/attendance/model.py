from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus, TrainingSession


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one (player, date, session) status."""

    attendance_id: int
    player_id: int
    att_date: date
    session: TrainingSession
    status: AttendanceStatus
    recorded_by: Optional[int] = None
    recorded_at: Optional[datetime] = None


@dataclass(frozen=True)
class AttendanceItem:
    """One entry of a batch submission, as received from the client."""

    player_id: object
    status: object


@dataclass(frozen=True)
class RecordingFailure:
    player_id: object
    reason: str


@dataclass
class RecordingResult:
    recorded: list[AttendanceRecord] = field(default_factory=list)
    failures: list[RecordingFailure] = field(default_factory=list)

    @property
    def submitted(self) -> int:
        return len(self.recorded) + len(self.failures)
