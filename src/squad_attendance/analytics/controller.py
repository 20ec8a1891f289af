from __future__ import annotations

from flask import Flask, jsonify, request

from ..container import Container
from ..core.constants import API_PREFIX, DEFAULT_TOP_PERFORMERS
from ..users.security import login_required


def register(app: Flask, container: Container) -> None:
    auth = login_required(container.tokens)
    analytics = container.analytics_service

    @app.route(f"{API_PREFIX}/analytics/dashboard", endpoint="analytics_dashboard")
    @auth
    def analytics_dashboard():
        return jsonify(analytics.dashboard().to_dict())

    @app.route(f"{API_PREFIX}/analytics/position", endpoint="analytics_position")
    @auth
    def analytics_position():
        return jsonify([s.to_dict() for s in analytics.by_position()])

    @app.route(f"{API_PREFIX}/analytics/weekly-trend", endpoint="analytics_weekly_trend")
    @auth
    def analytics_weekly_trend():
        return jsonify([w.to_dict() for w in analytics.weekly_trend()])

    @app.route(f"{API_PREFIX}/analytics/top-performers", endpoint="analytics_top_performers")
    @auth
    def analytics_top_performers():
        limit = request.args.get("limit", DEFAULT_TOP_PERFORMERS)
        return jsonify([t.to_dict() for t in analytics.top_performers(limit)])

    @app.route(f"{API_PREFIX}/analytics/monthly-report/<year>/<month>", endpoint="analytics_monthly_report")
    @auth
    def analytics_monthly_report(year, month):
        return jsonify([d.to_dict() for d in analytics.monthly_report(year, month)])
