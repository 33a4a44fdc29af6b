"""
Database connection factory for rowmapper.

Opens dedicated psycopg connections from settings and wraps them in the
``Connection`` adapter the mapping engine consumes. There is no pooling:
every caller owns the handle it opened.

Opening a connection is retried on transient failures using tenacity; the
statements run over it afterwards are never retried.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Generator, Optional

import psycopg
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from rowmapper.config import Settings, get_settings
from rowmapper.infrastructure.connection import PsycopgConnection
from rowmapper.utils.logging import get_logger

log = get_logger(__name__)


def build_dsn(settings: Optional[Settings] = None) -> str:
    """Compose a DSN string from settings."""
    settings = settings or get_settings()
    return (
        f"postgresql://{settings.db_user}:{settings.db_password}"
        f"@{settings.db_host}:{settings.db_port}/{settings.db_name}"
    )


def connect(
    dsn: Optional[str] = None, settings: Optional[Settings] = None
) -> PsycopgConnection:
    """
    Open a dedicated connection with automatic retry.

    Retries ``settings.db_connect_retries`` times with exponential backoff for
    transient connection errors.

    Parameters
    ----------
    dsn : str, optional
        Explicit connection string; defaults to one built from settings.
    settings : Settings, optional
        Settings to read from; defaults to the cached environment settings.

    Returns
    -------
    PsycopgConnection
        A connection adapter ready for ``EntityManager``.

    Raises
    ------
    psycopg.OperationalError
        If the connection fails after all retry attempts.
    """
    settings = settings or get_settings()
    conninfo = dsn or build_dsn(settings)
    retrying = Retrying(
        stop=stop_after_attempt(max(1, settings.db_connect_retries)),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type((psycopg.OperationalError, psycopg.InterfaceError)),
        reraise=True,
    )
    conn = retrying(psycopg.connect, conninfo)
    log.info(
        "Connected to database",
        extra={"db_host": settings.db_host, "db_name": settings.db_name},
    )
    return PsycopgConnection(conn)


@contextmanager
def open_connection(
    dsn: Optional[str] = None, settings: Optional[Settings] = None
) -> Generator[PsycopgConnection, None, None]:
    """
    Context manager yielding a connection that is closed on exit.

    Example
    -------
        with open_connection() as conn:
            em = EntityManager(conn)
            em.persist(user)
    """
    conn = connect(dsn=dsn, settings=settings)
    try:
        yield conn
    finally:
        conn.close()


__all__ = ["build_dsn", "connect", "open_connection"]
