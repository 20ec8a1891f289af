from __future__ import annotations

from flask import Flask, g, jsonify, request

from ..container import Container
from ..core.constants import API_PREFIX
from .model import User
from .security import login_required


def user_json(user: User) -> dict:
    return {"id": user.user_id, "username": user.username, "name": user.name, "role": user.role.value}


def register(app: Flask, container: Container) -> None:
    @app.route(f"{API_PREFIX}/auth/register", methods=["POST"], endpoint="auth_register")
    def auth_register():
        data = request.get_json(silent=True) or {}
        result = container.auth_service.register(
            username=data.get("username"),
            password=data.get("password"),
            name=data.get("name"),
            role=data.get("role"),
        )
        return jsonify({"token": result.token, "user": user_json(result.user)}), 201

    @app.route(f"{API_PREFIX}/auth/login", methods=["POST"], endpoint="auth_login")
    def auth_login():
        data = request.get_json(silent=True) or {}
        result = container.auth_service.authenticate(data.get("username"), data.get("password"))
        return jsonify({"token": result.token, "user": user_json(result.user)})

    @app.route(f"{API_PREFIX}/auth/me", endpoint="auth_me")
    @login_required(container.tokens)
    def auth_me():
        me = g.current_user
        return jsonify({"id": me.user_id, "username": me.username, "name": me.name, "role": me.role.value})
