"""Database URL helpers for Alembic migrations.

Kept apart from env.py so they can be tested without alembic.context.
The application connects with psycopg2 using DATABASE_URL as-is (URL or
libpq key=value DSN); Alembic needs a SQLAlchemy URL, built here.
"""

from __future__ import annotations

import os

from psycopg2.extensions import parse_dsn
from sqlalchemy.engine import URL, make_url

DRIVERNAME = "postgresql+psycopg2"


def _db_password() -> str | None:
    return os.environ.get("DB_PASSWORD") or None


def dsn_to_url(dsn: str) -> URL:
    """Convert a libpq key=value DSN to a SQLAlchemy URL.

    A host starting with "/" is a unix socket directory and is passed
    through as the ``host`` query parameter.
    """
    tokens = parse_dsn(dsn)
    host = tokens.get("host", "localhost")
    password = tokens.get("password") or _db_password()

    if host.startswith("/"):
        return URL.create(
            DRIVERNAME,
            username=tokens.get("user"),
            password=password,
            database=tokens.get("dbname"),
            query={"host": host},
        )

    return URL.create(
        DRIVERNAME,
        username=tokens.get("user"),
        password=password,
        host=host,
        port=int(tokens.get("port", "5432")),
        database=tokens.get("dbname"),
    )


def normalize_url(url: str) -> URL:
    """Force the psycopg2 driver and fill a missing password from DB_PASSWORD."""
    parsed = make_url(url.replace("postgres://", "postgresql://", 1))
    parsed = parsed.set(drivername=DRIVERNAME)
    if not parsed.password and _db_password():
        parsed = parsed.set(password=_db_password())
    return parsed


def get_database_url() -> str:
    """SQLAlchemy URL string for DATABASE_URL.

    Raises:
        RuntimeError: If DATABASE_URL is not set.
    """
    raw = os.environ.get("DATABASE_URL")
    if not raw:
        raise RuntimeError("DATABASE_URL is required to run migrations")
    url = normalize_url(raw) if "://" in raw else dsn_to_url(raw)
    return url.render_as_string(hide_password=False)
