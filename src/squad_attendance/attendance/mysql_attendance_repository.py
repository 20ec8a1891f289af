from __future__ import annotations

from datetime import date, datetime
from typing import Any, Collection, Mapping, Optional, Sequence

from ..core.enums import AttendanceStatus, TrainingSession
from ..core.exceptions import NotFoundError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AttendanceRecord
from .repository import AttendanceRepository

_COLUMNS = "attendance_id, player_id, att_date, session_name, status, recorded_by, recorded_at"

_SESSION_ORDER_SQL = "FIELD(session_name, {})".format(", ".join(f"'{s.value}'" for s in TrainingSession))


def _to_record(r: dict[str, Any]) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        player_id=int(r["player_id"]),
        att_date=r["att_date"],
        session=TrainingSession(r["session_name"]),
        status=AttendanceStatus(r["status"]),
        recorded_by=int(r["recorded_by"]) if r.get("recorded_by") is not None else None,
        recorded_at=r.get("recorded_at"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_key(self, player_id: int, att_date: date, session: TrainingSession) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance
                WHERE player_id=%s AND att_date=%s AND session_name=%s
                """,
                (int(player_id), att_date, session.value),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

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
        with db_cursor(
            self._conn_factory,
            conflict_message="Attendance already recorded for this player and session",
        ) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance(player_id, att_date, session_name, status, recorded_by, recorded_at)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (int(player_id), att_date, session.value, status.value, recorded_by, recorded_at),
            )
            attendance_id = int(cur.lastrowid)

            # Same transaction as the insert: both commit or neither does.
            cur.execute(
                """
                UPDATE players
                SET attendance_count = attendance_count + %s,
                    total_sessions = total_sessions + 1
                WHERE player_id=%s
                """,
                (int(status.attended), int(player_id)),
            )
            if cur.rowcount == 0:
                raise NotFoundError("Player not found")

            return AttendanceRecord(
                attendance_id=attendance_id,
                player_id=int(player_id),
                att_date=att_date,
                session=session,
                status=status,
                recorded_by=recorded_by,
                recorded_at=recorded_at,
            )

    def update_status(
        self,
        *,
        attendance_id: int,
        status: AttendanceStatus,
        recorded_by: Optional[int],
        recorded_at: datetime,
    ) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            # Row lock: concurrent corrections see each other's status.
            cur.execute(
                "SELECT player_id, status FROM attendance WHERE attendance_id=%s FOR UPDATE",
                (int(attendance_id),),
            )
            current = fetchone(cur)
            if not current:
                return None

            cur.execute(
                """
                UPDATE attendance
                SET status=%s, recorded_by=%s, recorded_at=%s
                WHERE attendance_id=%s
                """,
                (status.value, recorded_by, recorded_at, int(attendance_id)),
            )

            delta = int(status.attended) - int(AttendanceStatus(current["status"]).attended)
            if delta:
                cur.execute(
                    "UPDATE players SET attendance_count = attendance_count + %s WHERE player_id=%s",
                    (delta, int(current["player_id"])),
                )

            cur.execute(f"SELECT {_COLUMNS} FROM attendance WHERE attendance_id=%s", (int(attendance_id),))
            r = fetchone(cur)
            return _to_record(r) if r else None

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
        clauses: list[str] = []
        params: list[object] = []

        if att_date is not None:
            clauses.append("att_date=%s")
            params.append(att_date)
        if session is not None:
            clauses.append("session_name=%s")
            params.append(session.value)
        if player_id is not None:
            clauses.append("player_id=%s")
            params.append(int(player_id))
        if start_date is not None:
            clauses.append("att_date>=%s")
            params.append(start_date)
        if end_date is not None:
            clauses.append("att_date<=%s")
            params.append(end_date)
        if statuses is not None:
            if not statuses:
                return []
            clauses.append("status IN ({})".format(", ".join(["%s"] * len(statuses))))
            params.extend(s.value for s in statuses)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance
                {where}
                ORDER BY att_date DESC, {_SESSION_ORDER_SQL} ASC, attendance_id ASC
                """,
                tuple(params),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def delete_by_player(self, player_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM attendance WHERE player_id=%s", (int(player_id),))
            return int(cur.rowcount)

    def count_by_player(self) -> Mapping[int, tuple[int, int]]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT player_id,
                       SUM(CASE WHEN status IN ('present', 'late') THEN 1 ELSE 0 END) AS attended,
                       COUNT(*) AS total
                FROM attendance
                GROUP BY player_id
                """
            )
            return {int(r["player_id"]): (int(r["attended"]), int(r["total"])) for r in fetchall(cur)}
