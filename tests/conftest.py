"""
Pytest configuration for rowmapper.

Provides fixtures for:
- An in-memory fake connection recording every statement (unit tests)
- Database connection management (integration tests)
- Schema setup and table cleanup for the `users` table
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Generator, List, Optional, Sequence, Tuple

import psycopg
import pytest

from rowmapper.config import Settings
from rowmapper.infrastructure.connection import PsycopgConnection
from rowmapper.infrastructure.db_factory import build_dsn


class FakeConnection:
    """
    Stand-in for the connection collaborator.

    Queries return the canned ``rows`` (only the first one when the SQL asks
    for ``LIMIT 1``); INSERT statements return a freshly generated id.
    """

    def __init__(
        self,
        rows: Optional[Sequence[Dict[str, Any]]] = None,
        rowcount: int = 1,
        next_id: int = 1,
        error: Optional[Exception] = None,
        returning: bool = True,
    ) -> None:
        self.rows = [dict(row) for row in rows or []]
        self.rowcount = rowcount
        self.next_id = next_id
        self.error = error
        self.returning = returning
        self.calls: List[Tuple[str, Optional[Sequence[Any]]]] = []
        self.closed = False

    @property
    def statements(self) -> List[str]:
        return [sql for sql, _ in self.calls]

    def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> int:
        self.calls.append((sql, params))
        if self.error is not None:
            raise self.error
        return self.rowcount

    def query(self, sql: str, params: Optional[Sequence[Any]] = None) -> List[Dict[str, Any]]:
        self.calls.append((sql, params))
        if self.error is not None:
            raise self.error
        if sql.startswith("INSERT"):
            if not self.returning:
                return []
            new_id = self.next_id
            self.next_id += 1
            return [{"id": new_id}]
        rows = self.rows[:1] if "LIMIT 1" in sql else self.rows
        return [dict(row) for row in rows]

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_connection() -> FakeConnection:
    return FakeConnection()


@pytest.fixture
def make_connection():
    """Factory for fake connections preloaded with rows or failures."""
    return FakeConnection


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "rowmapper"),
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    """
    Database connection string for tests.
    """
    return build_dsn(test_settings)


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if database is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    try:
        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        return True
    except psycopg.Error:
        return False


@pytest.fixture(scope="session")
def db_connection(
    test_dsn: str, db_connection_available: bool
) -> Generator[PsycopgConnection, None, None]:
    """
    Provide a session-scoped connection adapter for integration tests.

    Skips tests if database is not available.
    """
    if not db_connection_available:
        pytest.skip("Database not available for integration tests")

    conn = PsycopgConnection(psycopg.connect(test_dsn))
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="session")
def db_schema_initialized(db_connection: PsycopgConnection) -> bool:
    """
    Ensure the `users` table exists by running db/init.sql.
    """
    init_sql_path = Path(__file__).parent.parent / "db" / "init.sql"
    db_connection.execute(init_sql_path.read_text(encoding="utf-8"))
    return True


@pytest.fixture(scope="function")
def clean_users_table(db_connection: PsycopgConnection, db_schema_initialized: bool):
    """
    Empty the users table around each test function so ids restart at 1.
    """
    db_connection.execute("TRUNCATE TABLE public.users RESTART IDENTITY;")
    yield db_connection
    db_connection.execute("TRUNCATE TABLE public.users RESTART IDENTITY;")
