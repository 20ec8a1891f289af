from __future__ import annotations

from typing import Mapping, Optional

from flask import Flask, g, jsonify, request

from ..container import Container
from ..core.constants import API_PREFIX
from ..core.exceptions import ValidationError
from ..players.model import Player
from ..users.security import coach_required, login_required
from .model import AttendanceItem, AttendanceRecord


def record_json(record: AttendanceRecord, players: Optional[Mapping[int, Player]] = None) -> dict:
    data = {
        "id": record.attendance_id,
        "playerId": record.player_id,
        "date": record.att_date.isoformat(),
        "session": record.session.value,
        "status": record.status.value,
        "recordedBy": record.recorded_by,
        "recordedAt": record.recorded_at.isoformat() if record.recorded_at else None,
    }
    if players is not None:
        p = players.get(record.player_id)
        data["player"] = (
            {"name": p.name, "position": p.position.value, "jerseyNumber": p.jersey_number} if p else None
        )
    return data


def _batch_status(recorded: int, failed: int) -> int:
    if failed == 0:
        return 201
    if recorded == 0:
        return 400
    return 207


def register(app: Flask, container: Container) -> None:
    auth = login_required(container.tokens)
    attendance = container.attendance_service

    def players_by_id() -> dict[int, Player]:
        return {p.player_id: p for p in container.player_service.list_players()}

    @app.route(f"{API_PREFIX}/attendance", methods=["GET"], endpoint="attendance_list")
    @auth
    def attendance_list():
        records = attendance.list_attendance(
            att_date=request.args.get("date"),
            session=request.args.get("session"),
            player_id=request.args.get("playerId"),
        )
        lookup = players_by_id()
        return jsonify([record_json(r, lookup) for r in records])

    @app.route(f"{API_PREFIX}/attendance", methods=["POST"], endpoint="attendance_record")
    @auth
    @coach_required
    def attendance_record():
        data = request.get_json(silent=True) or {}
        raw_items = data.get("attendanceData")
        if not isinstance(raw_items, list):
            raise ValidationError("attendanceData must be a list")

        items = [
            AttendanceItem(
                player_id=item.get("playerId") if isinstance(item, dict) else None,
                status=item.get("status") if isinstance(item, dict) else None,
            )
            for item in raw_items
        ]
        result = attendance.record_attendance(
            att_date=data.get("date"),
            session=data.get("session"),
            items=items,
            actor_id=g.current_user.user_id,
        )

        body = {
            "message": f"Attendance recorded for {len(result.recorded)} players",
            "results": [record_json(r) for r in result.recorded],
        }
        if result.failures:
            body["errors"] = [{"playerId": f.player_id, "error": f.reason} for f in result.failures]
        return jsonify(body), _batch_status(len(result.recorded), len(result.failures))

    @app.route(f"{API_PREFIX}/attendance/summary/<att_date>", methods=["GET"], endpoint="attendance_summary")
    @auth
    def attendance_summary(att_date):
        return jsonify(attendance.daily_summary(att_date))

    @app.route(f"{API_PREFIX}/attendance/player/<player_id>", methods=["GET"], endpoint="attendance_player")
    @auth
    def attendance_player(player_id):
        history = attendance.player_history(
            player_id,
            start=request.args.get("startDate"),
            end=request.args.get("endDate"),
        )
        return jsonify(
            {
                "attendance": [record_json(r) for r in history.records],
                "statistics": {
                    "totalRecords": history.total_records,
                    "presentCount": history.present_count,
                    "lateCount": history.late_count,
                    "absentCount": history.absent_count,
                    "attendanceRate": history.attendance_rate,
                },
            }
        )
