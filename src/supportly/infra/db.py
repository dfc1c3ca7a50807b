"""Postgres access for the workers (psycopg2, raw SQL).

Workers follow a read / call / write shape: read records in one txn(),
call the external service with no transaction open, then write the result
in a second txn(). Connections are opened per transaction.
"""

import os
from contextlib import contextmanager
from typing import Any, Iterator, Sequence

import psycopg2
from psycopg2.extensions import connection as PgConnection, cursor as PgCursor
from psycopg2.extensions import parse_dsn


def _connect_kwargs(dsn: str) -> dict[str, Any]:
    # DB_PASSWORD is mounted as a secret apart from DATABASE_URL
    db_password = os.environ.get("DB_PASSWORD", "")
    if db_password and not parse_dsn(dsn).get("password"):
        return {"password": db_password}
    return {}


def get_conn() -> PgConnection:
    """Open a connection to DATABASE_URL (libpq DSN or postgres:// URL).

    Raises:
        RuntimeError: If DATABASE_URL is not set.
        psycopg2.Error: On connection failure.
    """
    dsn = os.environ.get("DATABASE_URL")
    if not dsn:
        raise RuntimeError("DATABASE_URL environment variable not set")
    return psycopg2.connect(dsn, **_connect_kwargs(dsn))


@contextmanager
def txn(conn: PgConnection | None = None) -> Iterator[PgCursor]:
    """Yield a cursor inside one transaction.

    Commits when the block exits normally and rolls back when it raises.
    A connection opened here is also closed here; a passed-in conn is left
    open for the caller.

    Example:
        with txn() as cur:
            row = fetchone(cur, "SELECT status FROM conversations WHERE id = %s", (1,))
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


def fetchone(
    cur: PgCursor,
    query: str,
    params: Sequence[Any] | None = None,
) -> tuple[Any, ...] | None:
    """Execute query and return its first row, or None."""
    cur.execute(query, params)
    return cur.fetchone()
