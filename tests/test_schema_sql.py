from __future__ import annotations

from squad_attendance.database.bootstrap import (
    DEFAULT_SCHEMA_PATH,
    _strip_comments,
    _strip_create_db_and_use,
    iter_sql_statements,
)


def test_packaged_schema_creates_all_tables():
    sql = _strip_comments(_strip_create_db_and_use(DEFAULT_SCHEMA_PATH.read_text(encoding="utf-8")))
    statements = list(iter_sql_statements(sql))

    created = [s.split("(")[0].split()[-1].strip("`") for s in statements if s.upper().startswith("CREATE TABLE")]
    assert created == ["users", "players", "attendance"]

    attendance = next(s for s in statements if "CREATE TABLE IF NOT EXISTS attendance" in s)
    assert "UNIQUE KEY" in attendance
    assert "ON DELETE CASCADE" in attendance


def test_splitter_keeps_semicolons_inside_quotes():
    sql = "INSERT INTO t VALUES('a;b');\nSELECT 1;"
    assert list(iter_sql_statements(sql)) == ["INSERT INTO t VALUES('a;b')", "SELECT 1"]
