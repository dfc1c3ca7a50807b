"""Alembic environment for the supportly schema.

Migrations are plain SQL (op.get_bind().exec_driver_sql); there is no
SQLAlchemy metadata, so autogenerate is unavailable.
"""

from __future__ import annotations

from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

from migrations.env_helpers import _get_database_url

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def _configure_and_run(**options) -> None:
    context.configure(target_metadata=None, transaction_per_migration=True, **options)
    with context.begin_transaction():
        context.run_migrations()


def run_offline() -> None:
    """Emit SQL to stdout (alembic upgrade --sql)."""
    _configure_and_run(
        url=_get_database_url(),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )


def run_online() -> None:
    """Apply migrations over a single unpooled connection."""
    engine = create_engine(_get_database_url(), poolclass=pool.NullPool)
    try:
        with engine.connect() as connection:
            _configure_and_run(connection=connection)
    finally:
        engine.dispose()


if context.is_offline_mode():
    run_offline()
else:
    run_online()
