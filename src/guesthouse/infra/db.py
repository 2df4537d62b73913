"""Database access layer using psycopg2.

Provides:
- get_conn(): Get a standalone connection from DATABASE_URL
- Database: Injected persistence handle backed by a connection pool
- txn(): Context manager for short, safe transactions on a standalone connection
- for_update(): SELECT ... FOR UPDATE helper
"""

from __future__ import annotations

import os
import re
from contextlib import contextmanager
from typing import Any, Iterator, Sequence

import psycopg2
from psycopg2.extensions import connection as PgConnection, cursor as PgCursor
from psycopg2.pool import ThreadedConnectionPool

from guesthouse.observability.logging import get_logger

logger = get_logger(__name__)

_DSN_PASSWORD = re.compile(r"(^|\s)password=")


def _get_dsn() -> str:
    dsn = os.environ.get("DATABASE_URL")
    if not dsn:
        raise RuntimeError("DATABASE_URL environment variable not set")
    return dsn


def _connect_kwargs(dsn: str) -> dict[str, str]:
    """Return DB_PASSWORD as a connect kwarg when the DSN carries no password."""
    db_password = os.environ.get("DB_PASSWORD", "")
    if not db_password:
        return {}
    if "://" in dsn:
        netloc = dsn.split("://", 1)[1].split("/", 1)[0]
        userinfo = netloc.rsplit("@", 1)[0] if "@" in netloc else ""
        if ":" in userinfo:
            return {}
    elif _DSN_PASSWORD.search(dsn):
        return {}
    return {"password": db_password}


def get_conn() -> PgConnection:
    """Get a new database connection from DATABASE_URL.

    Falls back to DB_PASSWORD when the DSN itself has no password.

    Raises:
        RuntimeError: If DATABASE_URL is not set.
        psycopg2.Error: On connection failure.
    """
    dsn = _get_dsn()
    return psycopg2.connect(dsn, **_connect_kwargs(dsn))


class Database:
    """Process-wide persistence handle.

    Opened once at process start and closed at shutdown. Every transaction
    borrows a pooled connection for its duration only.

    Usage:
        db = Database()
        db.open()
        with db.txn() as cur:
            cur.execute("SELECT 1")
        db.close()
    """

    def __init__(
        self,
        dsn: str | None = None,
        *,
        minconn: int | None = None,
        maxconn: int | None = None,
    ) -> None:
        self._dsn = dsn
        self._minconn = minconn or int(os.environ.get("DB_POOL_MIN", "1"))
        self._maxconn = maxconn or int(os.environ.get("DB_POOL_MAX", "10"))
        self._pool: ThreadedConnectionPool | None = None

    @property
    def is_open(self) -> bool:
        return self._pool is not None

    def open(self) -> None:
        if self._pool is not None:
            return
        dsn = self._dsn or _get_dsn()
        self._pool = ThreadedConnectionPool(
            self._minconn, self._maxconn, dsn, **_connect_kwargs(dsn)
        )
        logger.info(
            "database pool opened",
            extra={"extra_fields": {"minconn": self._minconn, "maxconn": self._maxconn}},
        )

    def close(self) -> None:
        if self._pool is None:
            return
        self._pool.closeall()
        self._pool = None
        logger.info("database pool closed")

    @contextmanager
    def txn(self) -> Iterator[PgCursor]:
        """Run one transaction on a pooled connection.

        Commits on successful exit, rolls back on any exception.

        Raises:
            RuntimeError: If the handle has not been opened.
        """
        if self._pool is None:
            raise RuntimeError("Database is not open")

        conn = self._pool.getconn()
        try:
            with conn.cursor() as cur:
                yield cur
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            self._pool.putconn(conn)


@contextmanager
def txn(conn: PgConnection | None = None) -> Iterator[PgCursor]:
    """Context manager for a short, safe transaction.

    If conn is None, creates a new connection that is closed on exit.
    Commits on successful exit, rolls back on exception.

    Example:
        with txn() as cur:
            cur.execute("INSERT INTO t (x) VALUES (%s)", (1,))
    """
    owns_conn = conn is None
    if owns_conn:
        conn = get_conn()

    try:
        with conn.cursor() as cur:
            yield cur
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        if owns_conn:
            conn.close()


def for_update(
    cur: PgCursor,
    query: str,
    params: Sequence[Any] | None = None,
) -> tuple[Any, ...] | None:
    """Execute SELECT ... FOR UPDATE and fetch one row.

    Appends FOR UPDATE clause to the query. Use within a transaction
    to lock the selected row until commit/rollback.

    Args:
        cur: Database cursor.
        query: SELECT query (without FOR UPDATE).
        params: Query parameters.

    Returns:
        Single row tuple or None if no results.
    """
    full_query = query.rstrip().rstrip(";") + " FOR UPDATE"
    cur.execute(full_query, params)
    return cur.fetchone()
