"""Persistence for user records."""
from __future__ import annotations

from contextlib import contextmanager
from typing import Callable, Dict, Iterable, Optional, Protocol, Sequence

import psycopg2.extras
from psycopg2.extensions import connection as PgConnection
from psycopg2.extensions import cursor as PgCursor

from ...app_context import get_conn
from .models import UserRecord


class UserRepository(Protocol):
    """Abstract store for user records; the engine never assumes a storage technology."""

    def get_user(self, user_id: str) -> Optional[UserRecord]:
        ...

    def save_user(self, user: UserRecord) -> UserRecord:
        ...

    def list_users(self) -> Sequence[UserRecord]:
        ...


class InMemoryUserRepository:
    """Dictionary-backed repository suitable for tests and local development."""

    def __init__(self, users: Iterable[UserRecord] = ()) -> None:
        self._users: Dict[str, UserRecord] = {user.id: user for user in users}

    def get_user(self, user_id: str) -> Optional[UserRecord]:
        return self._users.get(user_id)

    def save_user(self, user: UserRecord) -> UserRecord:
        self._users[user.id] = user
        return user

    def list_users(self) -> Sequence[UserRecord]:
        return tuple(self._users.values())


@contextmanager
def managed_connection(
    conn: Optional[PgConnection] = None,
    *,
    connect: Optional[Callable[[], PgConnection]] = None,
):
    """Context manager that manages transaction boundaries for optional connections."""

    if conn is not None:
        yield conn, False
        return

    connection = (connect or get_conn)()
    try:
        yield connection, True
        connection.commit()
    except Exception:
        connection.rollback()
        raise
    finally:
        connection.close()


def _row_to_user(row: dict) -> UserRecord:
    return UserRecord.model_validate(row["document"])


class PostgresUserRepository:
    """Stores each user record as a JSONB document keyed by user id."""

    def __init__(
        self,
        *,
        conn: Optional[PgConnection] = None,
        connect: Optional[Callable[[], PgConnection]] = None,
    ) -> None:
        self._conn = conn
        self._connect = connect

    @contextmanager
    def _cursor(self) -> Iterable[PgCursor]:
        with managed_connection(self._conn, connect=self._connect) as (connection, _):
            cursor = connection.cursor(cursor_factory=psycopg2.extras.RealDictCursor)
            try:
                yield cursor
            finally:
                cursor.close()

    def get_user(self, user_id: str) -> Optional[UserRecord]:
        with self._cursor() as cursor:
            cursor.execute(
                """
                SELECT user_id, document
                FROM onesub_user_records
                WHERE user_id = %s
                LIMIT 1
                """,
                (user_id,),
            )
            row = cursor.fetchone()
            return _row_to_user(row) if row else None

    def save_user(self, user: UserRecord) -> UserRecord:
        with self._cursor() as cursor:
            cursor.execute(
                """
                INSERT INTO onesub_user_records (user_id, document)
                VALUES (%(user_id)s, %(document)s)
                ON CONFLICT (user_id) DO UPDATE SET
                    document = EXCLUDED.document,
                    updated_at = NOW()
                RETURNING user_id, document
                """,
                {
                    "user_id": user.id,
                    "document": psycopg2.extras.Json(user.model_dump(mode="json")),
                },
            )
            row = cursor.fetchone()
            if not row:
                raise RuntimeError("Failed to persist user record")
            return _row_to_user(row)

    def list_users(self) -> Sequence[UserRecord]:
        with self._cursor() as cursor:
            cursor.execute(
                """
                SELECT user_id, document
                FROM onesub_user_records
                ORDER BY user_id
                """
            )
            rows = cursor.fetchall() or []
            return [_row_to_user(row) for row in rows]


__all__ = ["InMemoryUserRepository", "PostgresUserRepository", "UserRepository", "managed_connection"]
