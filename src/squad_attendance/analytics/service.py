from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Optional

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import month_bounds, now_local
from ..common.numbers import round_half_up
from ..common.validators import require_int
from ..core.constants import (
    DEFAULT_TOP_PERFORMERS,
    SESSIONS_PER_WEEK,
    WEEKLY_TREND_DAYS,
    WEEKLY_TREND_MAX_WEEKS,
)
from ..core.enums import AttendanceStatus, Position, TrainingSession
from ..players.model import Player
from ..players.repository import PlayerRepository


def _rate(numerator: int, denominator: int) -> float:
    """Percentage; a zero denominator yields 0."""
    if denominator == 0:
        return 0.0
    return numerator / denominator * 100


@dataclass(frozen=True)
class DashboardStats:
    total_players: int
    available_players: int
    attendance_rate: int
    sessions_this_month: int

    def to_dict(self) -> dict:
        return {
            "totalPlayers": self.total_players,
            "availablePlayers": self.available_players,
            "attendanceRate": f"{self.attendance_rate}%",
            "sessionsThisMonth": self.sessions_this_month,
        }


@dataclass(frozen=True)
class PositionStats:
    position: Position
    total_players: int
    attendance_rate: float

    def to_dict(self) -> dict:
        return {
            "position": self.position.value,
            "totalPlayers": self.total_players,
            "attendanceRate": self.attendance_rate,
        }


@dataclass(frozen=True)
class WeeklyTrendPoint:
    year: int
    week: int
    present_count: int
    total_sessions: int
    attendance_rate: float

    def to_dict(self) -> dict:
        return {
            "year": self.year,
            "week": self.week,
            "presentCount": self.present_count,
            "totalSessions": self.total_sessions,
            "attendanceRate": self.attendance_rate,
        }


@dataclass(frozen=True)
class TopPerformer:
    player: Player
    attendance_rate: float

    def to_dict(self) -> dict:
        p = self.player
        return {
            "id": p.player_id,
            "name": p.name,
            "position": p.position.value,
            "jerseyNumber": p.jersey_number,
            "image": p.image,
            "attendanceCount": p.attendance_count,
            "totalSessions": p.total_sessions,
            "attendanceRate": self.attendance_rate,
        }


@dataclass(frozen=True)
class SessionBreakdown:
    session: TrainingSession
    present: int = 0
    absent: int = 0
    late: int = 0

    def to_dict(self) -> dict:
        return {"session": self.session.value, "present": self.present, "absent": self.absent, "late": self.late}


@dataclass(frozen=True)
class MonthlyReportDay:
    day: date
    sessions: list[SessionBreakdown] = field(default_factory=list)

    @property
    def total_present(self) -> int:
        return sum(s.present for s in self.sessions)

    @property
    def total_absent(self) -> int:
        return sum(s.absent for s in self.sessions)

    @property
    def total_late(self) -> int:
        return sum(s.late for s in self.sessions)

    def to_dict(self) -> dict:
        return {
            "date": self.day.isoformat(),
            "sessions": [s.to_dict() for s in self.sessions],
            "totalPresent": self.total_present,
            "totalAbsent": self.total_absent,
            "totalLate": self.total_late,
        }


class AnalyticsService:
    """Read-only statistics derived from players and their attendance records.

    Every method is a pure function of the store at call time; pass ``today``
    to pin the calendar for reproducible results.
    """

    def __init__(self, players: PlayerRepository, attendance: AttendanceRepository):
        self._players = players
        self._attendance = attendance

    def dashboard(self, *, today: Optional[date] = None) -> DashboardStats:
        today = today or now_local().date()
        players = self._players.list_all()

        attended = sum(p.attendance_count for p in players)
        sessions = sum(p.total_sessions for p in players)

        start, end = month_bounds(today.year, today.month)
        held = {(r.att_date, r.session) for r in self._attendance.list_records(start_date=start, end_date=end)}

        return DashboardStats(
            total_players=len(players),
            available_players=sum(1 for p in players if p.always_available),
            attendance_rate=round_half_up(_rate(attended, sessions)),
            sessions_this_month=len(held),
        )

    def by_position(self) -> list[PositionStats]:
        groups: dict[Position, list[Player]] = defaultdict(list)
        for p in self._players.list_all():
            groups[p.position].append(p)

        stats = [
            PositionStats(
                position=position,
                total_players=len(members),
                attendance_rate=_rate(
                    sum(p.attendance_count for p in members),
                    sum(p.total_sessions for p in members),
                ),
            )
            for position, members in groups.items()
        ]
        stats.sort(key=lambda s: (-s.attendance_rate, list(Position).index(s.position)))
        return stats

    def weekly_trend(self, *, today: Optional[date] = None) -> list[WeeklyTrendPoint]:
        today = today or now_local().date()
        records = self._attendance.list_records(
            start_date=today - timedelta(days=WEEKLY_TREND_DAYS),
            end_date=today,
            statuses=(AttendanceStatus.PRESENT, AttendanceStatus.LATE),
        )

        per_week = Counter(tuple(r.att_date.isocalendar())[:2] for r in records)
        expected = len(self._players.list_all()) * SESSIONS_PER_WEEK

        # The window spans six ISO weeks; keep the latest five (not the
        # earliest five), listed oldest first.
        weeks = sorted(per_week)[-WEEKLY_TREND_MAX_WEEKS:]
        return [
            WeeklyTrendPoint(
                year=year,
                week=week,
                present_count=per_week[(year, week)],
                total_sessions=expected,
                attendance_rate=_rate(per_week[(year, week)], expected),
            )
            for year, week in weeks
        ]

    def top_performers(self, limit: Any = DEFAULT_TOP_PERFORMERS) -> list[TopPerformer]:
        limit = require_int(limit, "limit", min_value=1)
        ranked = [
            (p.attendance_rate, p)
            for p in self._players.list_all()
            if p.total_sessions > 0
        ]
        ranked.sort(key=lambda pair: (-pair[0], pair[1].name.lower(), pair[1].player_id))
        return [TopPerformer(player=p, attendance_rate=round(rate, 2)) for rate, p in ranked[:limit]]

    def monthly_report(self, year: Any, month: Any) -> list[MonthlyReportDay]:
        year = require_int(year, "year", min_value=1, max_value=9999)
        month = require_int(month, "month", min_value=1, max_value=12)
        start, end = month_bounds(year, month)

        counts: dict[tuple[date, TrainingSession], Counter] = defaultdict(Counter)
        for r in self._attendance.list_records(start_date=start, end_date=end):
            counts[(r.att_date, r.session)][r.status] += 1

        days: dict[date, list[SessionBreakdown]] = defaultdict(list)
        for (day, session), c in counts.items():
            days[day].append(
                SessionBreakdown(
                    session=session,
                    present=c[AttendanceStatus.PRESENT],
                    absent=c[AttendanceStatus.ABSENT],
                    late=c[AttendanceStatus.LATE],
                )
            )

        return [
            MonthlyReportDay(day=day, sessions=sorted(days[day], key=lambda s: s.session.order))
            for day in sorted(days)
        ]
