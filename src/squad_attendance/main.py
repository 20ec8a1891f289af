from __future__ import annotations

import importlib
import logging
from typing import Optional

import click
from dotenv import load_dotenv
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from .analytics.controller import register as register_analytics
from .attendance.controller import register as register_attendance
from .config import get_settings_module
from .container import Container, build_container
from .core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DomainError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from .core.logging_config import setup_logging
from .database.bootstrap import apply_schema, list_tables
from .players.controller import register as register_players
from .users.controller import register as register_users

logger = logging.getLogger(__name__)

ERROR_STATUS = (
    (ValidationError, 400),
    (ConflictError, 400),
    (NotFoundError, 404),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (StoreError, 500),
)


def status_for(error: DomainError) -> int:
    for cls, status in ERROR_STATUS:
        if isinstance(error, cls):
            return status
    return 400


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        status = status_for(e)
        if status >= 500:
            logger.error("Store failure: %s", e)
        return jsonify({"message": str(e)}), status

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return jsonify({"message": e.description or e.name}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        logger.exception("Unhandled error")
        return jsonify({"message": "Server error"}), 500


def register_cli(app: Flask, container: Container) -> None:
    @app.cli.command("init-db")
    def init_db():
        """Create the database and apply schema.sql."""
        if container.conn is None:
            click.echo("STORE_BACKEND is not mysql; nothing to initialise.")
            return
        apply_schema(container.conn.config)
        click.echo(f"Schema ready (tables={len(list_tables(container.conn.config))})")

    @app.cli.command("rebuild-counters")
    def rebuild_counters():
        """Recompute every player's attendance counters from the records."""
        changed = container.player_service.rebuild_counters()
        click.echo(f"Counters rebuilt; {changed} player(s) corrected.")


def create_app(settings_module: Optional[str] = None, *, container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = settings_module or get_settings_module()
    settings = importlib.import_module(settings_module)

    setup_logging(getattr(settings, "LOG_LEVEL", "INFO"), getattr(settings, "LOG_FILE", None))

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["MAX_CONTENT_LENGTH"] = int(getattr(settings, "MAX_CONTENT_LENGTH", 20 * 1024 * 1024))

    container = container or build_container(settings)

    if container.conn is not None:
        db = container.conn.config
        logger.info("settings=%s db=%s@%s:%s/%s", settings_module, db.user, db.host, db.port, db.database)
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db)
            logger.info("Schema ready (tables=%s)", len(list_tables(db)))
    else:
        logger.info("settings=%s store=memory", settings_module)

    app.extensions["container"] = container

    register_error_handlers(app)

    @app.route("/health", endpoint="health")
    def health():
        return jsonify({"status": "OK", "message": "Server is running"})

    register_users(app, container)
    register_players(app, container)
    register_attendance(app, container)
    register_analytics(app, container)

    register_cli(app, container)

    return app
