from __future__ import annotations

from typing import Optional

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import User
from .repository import UserRepository


def _to_user(row: dict) -> User:
    return User(
        user_id=int(row["user_id"]),
        username=row["username"],
        password_hash=row["password_hash"],
        name=row["name"],
        role=Role(row["role"]),
        created_at=row.get("created_at"),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT user_id, username, password_hash, name, role, created_at
                FROM users
                WHERE user_id=%s
                """,
                (int(user_id),),
            )
            row = fetchone(cur)
            return _to_user(row) if row else None

    def get_by_username(self, username: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT user_id, username, password_hash, name, role, created_at
                FROM users
                WHERE username=%s
                """,
                (username,),
            )
            row = fetchone(cur)
            return _to_user(row) if row else None

    def create_user(self, *, username: str, password_hash: str, name: str, role: Role) -> User:
        with db_cursor(self._conn_factory, conflict_message="User already exists") as (_, cur):
            cur.execute(
                """
                INSERT INTO users(username, password_hash, name, role)
                VALUES(%s,%s,%s,%s)
                """,
                (username, password_hash, name, role.value),
            )
            user_id = int(cur.lastrowid)
            cur.execute(
                "SELECT user_id, username, password_hash, name, role, created_at FROM users WHERE user_id=%s",
                (user_id,),
            )
            return _to_user(fetchone(cur))
