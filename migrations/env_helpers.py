"""Database URL helpers for Alembic migrations.

Kept apart from env.py so they can be tested without triggering
alembic.context at import time.
"""

from __future__ import annotations

import os
from urllib.parse import quote_plus

from psycopg2.extensions import parse_dsn


def _libpq_dsn_to_url(dsn: str) -> str:
    """Convert a libpq key=value DSN to a SQLAlchemy URL.

    A host starting with "/" is a unix socket directory and goes into the
    query string.
    """
    tokens = parse_dsn(dsn)
    password = tokens.get("password") or os.environ.get("DB_PASSWORD", "")

    user = quote_plus(tokens.get("user", ""))
    password = quote_plus(password)
    dbname = quote_plus(tokens.get("dbname", ""))
    host = tokens.get("host", "localhost")
    port = tokens.get("port", "5432")

    if host.startswith("/"):
        return f"postgresql+psycopg2://{user}:{password}@/{dbname}?host={quote_plus(host)}"
    return f"postgresql+psycopg2://{user}:{password}@{host}:{port}/{dbname}"


def _get_database_url() -> str:
    url = os.environ.get("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URL is required to run migrations")
    if "://" not in url:
        return _libpq_dsn_to_url(url)

    for scheme in ("postgres://", "postgresql://"):
        if url.startswith(scheme):
            url = "postgresql+psycopg2://" + url[len(scheme):]
            break

    # Inject DB_PASSWORD when the URL has a user but no password
    db_password = os.environ.get("DB_PASSWORD", "")
    scheme, rest = url.split("://", 1)
    userinfo, sep, hostpart = rest.partition("@")
    if db_password and sep:
        user, _, password = userinfo.partition(":")
        if not password:
            url = f"{scheme}://{user}:{quote_plus(db_password)}@{hostpart}"
    return url
