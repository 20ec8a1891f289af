from __future__ import annotations

import io

from squad_attendance.core.exceptions import StoreError


def _create_player(client, headers, name, jersey, position="Midfielder", **extra):
    resp = client.post(
        "/api/players",
        json={"name": name, "position": position, "jerseyNumber": jersey, **extra},
        headers=headers,
    )
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()


def test_health_is_public(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.get_json()["status"] == "OK"


def test_routes_require_a_token(client):
    resp = client.get("/api/players")
    assert resp.status_code == 401
    assert resp.get_json() == {"message": "No token, authorization denied"}

    resp = client.get("/api/players", headers={"Authorization": "Bearer nonsense"})
    assert resp.status_code == 401
    assert resp.get_json() == {"message": "Token is not valid"}


def test_login_round_trip(client, coach_headers):
    resp = client.post("/api/auth/login", json={"username": "coach", "password": "secret123"})
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["user"]["role"] == "coach"

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['token']}"})
    assert me.get_json()["username"] == "coach"

    bad = client.post("/api/auth/login", json={"username": "coach", "password": "nope"})
    assert bad.status_code == 401
    assert bad.get_json() == {"message": "Invalid credentials"}


def test_player_crud(client, coach_headers):
    created = _create_player(client, coach_headers, "Alice", 10, alwaysAvailable=True)
    assert created["jerseyNumber"] == 10
    assert created["alwaysAvailable"] is True
    assert created["attendanceCount"] == 0

    dup = client.post(
        "/api/players",
        json={"name": "Bruno", "position": "Forward", "jerseyNumber": 10},
        headers=coach_headers,
    )
    assert dup.status_code == 400
    assert dup.get_json() == {"message": "Jersey number already taken"}

    pid = created["id"]
    resp = client.put(f"/api/players/{pid}", json={"name": "Alicia"}, headers=coach_headers)
    assert resp.status_code == 200
    assert resp.get_json()["name"] == "Alicia"
    assert resp.get_json()["jerseyNumber"] == 10

    resp = client.patch(f"/api/players/{pid}/availability", json={"alwaysAvailable": False}, headers=coach_headers)
    assert resp.get_json()["alwaysAvailable"] is False

    assert client.get(f"/api/players/{pid}", headers=coach_headers).status_code == 200
    resp = client.delete(f"/api/players/{pid}", headers=coach_headers)
    assert resp.get_json()["message"] == "Player deleted successfully"

    missing = client.get(f"/api/players/{pid}", headers=coach_headers)
    assert missing.status_code == 404
    assert missing.get_json() == {"message": "Player not found"}


def test_multipart_create_with_image(client, coach_headers, images):
    resp = client.post(
        "/api/players",
        data={
            "name": "Alice",
            "position": "Forward",
            "jerseyNumber": "9",
            "alwaysAvailable": "true",
            "image": (io.BytesIO(b"\x89PNG"), "alice.png", "image/png"),
        },
        content_type="multipart/form-data",
        headers=coach_headers,
    )
    assert resp.status_code == 201, resp.get_json()
    body = resp.get_json()
    assert body["alwaysAvailable"] is True
    assert body["image"] in images.objects

    bad = client.post(
        "/api/players",
        data={
            "name": "Bruno",
            "position": "Forward",
            "jerseyNumber": "11",
            "image": (io.BytesIO(b"text"), "bruno.txt", "text/plain"),
        },
        content_type="multipart/form-data",
        headers=coach_headers,
    )
    assert bad.status_code == 400
    assert bad.get_json() == {"message": "Only image files are allowed!"}


def test_recording_requires_coach(client, coach_headers, staff_headers):
    p = _create_player(client, coach_headers, "Alice", 10)
    payload = {"date": "2024-03-01", "session": "morning", "attendanceData": [{"playerId": p["id"], "status": "present"}]}

    resp = client.post("/api/attendance", json=payload, headers=staff_headers)
    assert resp.status_code == 403
    assert resp.get_json() == {"message": "Access denied. Only coach can mark attendance."}

    # staff can still read
    assert client.get("/api/attendance", headers=staff_headers).status_code == 200


def test_recording_status_codes(client, coach_headers):
    a = _create_player(client, coach_headers, "Alice", 10)
    b = _create_player(client, coach_headers, "Bruno", 11)

    ok = client.post(
        "/api/attendance",
        json={
            "date": "2024-03-01",
            "session": "morning",
            "attendanceData": [
                {"playerId": a["id"], "status": "present"},
                {"playerId": b["id"], "status": "absent"},
            ],
        },
        headers=coach_headers,
    )
    assert ok.status_code == 201
    body = ok.get_json()
    assert body["message"] == "Attendance recorded for 2 players"
    assert "errors" not in body

    partial = client.post(
        "/api/attendance",
        json={
            "date": "2024-03-01",
            "session": "evening",
            "attendanceData": [{"playerId": a["id"], "status": "late"}, {"playerId": 999, "status": "present"}],
        },
        headers=coach_headers,
    )
    assert partial.status_code == 207
    assert partial.get_json()["errors"] == [{"playerId": 999, "error": "Player not found"}]

    failed = client.post(
        "/api/attendance",
        json={"date": "2024-03-01", "session": "evening", "attendanceData": [{"playerId": 999, "status": "present"}]},
        headers=coach_headers,
    )
    assert failed.status_code == 400
    assert failed.get_json()["message"] == "Attendance recorded for 0 players"

    empty = client.post(
        "/api/attendance",
        json={"date": "2024-03-01", "session": "evening", "attendanceData": []},
        headers=coach_headers,
    )
    assert empty.status_code == 201

    malformed = client.post(
        "/api/attendance",
        json={"date": "2024-03-01", "session": "evening", "attendanceData": "all"},
        headers=coach_headers,
    )
    assert malformed.status_code == 400

    players = {p["name"]: p for p in client.get("/api/players", headers=coach_headers).get_json()}
    assert (players["Alice"]["attendanceCount"], players["Alice"]["totalSessions"]) == (2, 2)
    assert (players["Bruno"]["attendanceCount"], players["Bruno"]["totalSessions"]) == (0, 1)


def test_attendance_queries(client, coach_headers):
    a = _create_player(client, coach_headers, "Alice", 10, position="Defender")
    for day, status in [("2024-03-01", "present"), ("2024-03-02", "late"), ("2024-03-03", "absent")]:
        client.post(
            "/api/attendance",
            json={"date": day, "session": "morning", "attendanceData": [{"playerId": a["id"], "status": status}]},
            headers=coach_headers,
        )

    listing = client.get("/api/attendance?date=2024-03-02", headers=coach_headers).get_json()
    assert len(listing) == 1
    assert listing[0]["status"] == "late"
    assert listing[0]["player"] == {"name": "Alice", "position": "Defender", "jerseyNumber": 10}

    summary = client.get("/api/attendance/summary/2024-03-01", headers=coach_headers).get_json()
    assert summary["present"] == 1
    assert summary["morning"]["present"] == 1

    history = client.get(f"/api/attendance/player/{a['id']}", headers=coach_headers).get_json()
    assert history["statistics"] == {
        "totalRecords": 3,
        "presentCount": 1,
        "lateCount": 1,
        "absentCount": 1,
        "attendanceRate": 67,
    }
    assert [r["date"] for r in history["attendance"]] == ["2024-03-03", "2024-03-02", "2024-03-01"]

    assert client.get("/api/attendance/player/999", headers=coach_headers).status_code == 404
    assert client.get("/api/attendance?date=yesterday", headers=coach_headers).status_code == 400


def test_analytics_endpoints(client, coach_headers):
    a = _create_player(client, coach_headers, "Alice", 10)
    _create_player(client, coach_headers, "Bruno", 11)
    client.post(
        "/api/attendance",
        json={"date": "2024-03-01", "session": "morning", "attendanceData": [{"playerId": a["id"], "status": "present"}]},
        headers=coach_headers,
    )

    dashboard = client.get("/api/analytics/dashboard", headers=coach_headers).get_json()
    assert dashboard["totalPlayers"] == 2
    assert dashboard["attendanceRate"] == "100%"

    positions = client.get("/api/analytics/position", headers=coach_headers).get_json()
    assert positions == [{"position": "Midfielder", "totalPlayers": 2, "attendanceRate": 100.0}]

    assert isinstance(client.get("/api/analytics/weekly-trend", headers=coach_headers).get_json(), list)

    top = client.get("/api/analytics/top-performers?limit=5", headers=coach_headers).get_json()
    assert [t["name"] for t in top] == ["Alice"]
    assert client.get("/api/analytics/top-performers?limit=x", headers=coach_headers).status_code == 400

    report = client.get("/api/analytics/monthly-report/2024/3", headers=coach_headers).get_json()
    assert report[0]["date"] == "2024-03-01"
    assert report[0]["totalPresent"] == 1


def test_unknown_route_and_unexpected_errors_are_json(app, client, coach_headers, container, monkeypatch):
    resp = client.get("/api/nope")
    assert resp.status_code == 404
    assert "message" in resp.get_json()

    def boom():
        raise RuntimeError("secret internals")

    monkeypatch.setattr(container.player_service, "list_players", boom)
    resp = client.get("/api/players", headers=coach_headers)
    assert resp.status_code == 500
    assert resp.get_json() == {"message": "Server error"}


def test_store_errors_map_to_500(client, coach_headers, container, monkeypatch):
    def unavailable():
        raise StoreError("Database unavailable")

    monkeypatch.setattr(container.analytics_service, "by_position", unavailable)
    resp = client.get("/api/analytics/position", headers=coach_headers)
    assert resp.status_code == 500
    assert resp.get_json() == {"message": "Database unavailable"}


def test_rebuild_counters_cli(app, coach_headers, client):
    runner = app.test_cli_runner()
    result = runner.invoke(args=["rebuild-counters"])
    assert result.exit_code == 0
    assert "0 player(s) corrected" in result.output
