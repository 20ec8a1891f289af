from __future__ import annotations

from typing import Optional

from flask import Flask, jsonify, request

from ..common.validators import parse_bool
from ..container import Container
from ..core.constants import API_PREFIX
from ..storage.image_storage import ImageUpload
from ..users.security import login_required
from .model import Player


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


def player_json(player: Player) -> dict:
    return {
        "id": player.player_id,
        "name": player.name,
        "position": player.position.value,
        "jerseyNumber": player.jersey_number,
        "alwaysAvailable": player.always_available,
        "image": player.image,
        "attendanceCount": player.attendance_count,
        "totalSessions": player.total_sessions,
        "createdAt": _iso(player.created_at),
        "updatedAt": _iso(player.updated_at),
    }


def _payload() -> dict:
    # JSON body, or form fields when the client sends multipart with an image.
    if request.is_json:
        return request.get_json(silent=True) or {}
    return request.form.to_dict()


def _image_upload() -> Optional[ImageUpload]:
    file = request.files.get("image")
    if not file or not file.filename:
        return None
    return ImageUpload(filename=file.filename, content_type=file.mimetype or "", data=file.read())


def register(app: Flask, container: Container) -> None:
    auth = login_required(container.tokens)
    players = container.player_service

    @app.route(f"{API_PREFIX}/players", methods=["GET"], endpoint="players_list")
    @auth
    def players_list():
        return jsonify([player_json(p) for p in players.list_players()])

    @app.route(f"{API_PREFIX}/players/<player_id>", methods=["GET"], endpoint="players_get")
    @auth
    def players_get(player_id):
        return jsonify(player_json(players.get_player(player_id)))

    @app.route(f"{API_PREFIX}/players", methods=["POST"], endpoint="players_create")
    @auth
    def players_create():
        data = _payload()
        player = players.create_player(
            name=data.get("name"),
            position=data.get("position"),
            jersey_number=data.get("jerseyNumber"),
            always_available=data.get("alwaysAvailable", False),
            image=_image_upload(),
        )
        return jsonify(player_json(player)), 201

    @app.route(f"{API_PREFIX}/players/<player_id>", methods=["PUT"], endpoint="players_update")
    @auth
    def players_update(player_id):
        data = _payload()
        player = players.update_player(
            player_id,
            name=data.get("name"),
            position=data.get("position"),
            jersey_number=data.get("jerseyNumber"),
            always_available=data.get("alwaysAvailable"),
            image=_image_upload(),
            remove_image=parse_bool(data.get("removeImage", False), "removeImage"),
        )
        return jsonify(player_json(player))

    @app.route(f"{API_PREFIX}/players/<player_id>/availability", methods=["PATCH"], endpoint="players_availability")
    @auth
    def players_availability(player_id):
        data = request.get_json(silent=True) or {}
        player = players.set_availability(player_id, data.get("alwaysAvailable"))
        return jsonify(player_json(player))

    @app.route(f"{API_PREFIX}/players/<player_id>", methods=["DELETE"], endpoint="players_delete")
    @auth
    def players_delete(player_id):
        removed = players.delete_player(player_id)
        return jsonify({"message": "Player deleted successfully", "attendanceRemoved": removed})
