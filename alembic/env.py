"""
alembic.env

Alembic migration environment configuration.

Responsibilities:
- Provide metadata discovery for autogeneration.
- Configure offline/online migration execution.

Notes:
- This module is executed by Alembic, not imported by the FastAPI runtime.
- Migrations run on a synchronous driver; an async URL is mapped to its sync
  counterpart (`sqlite+aiosqlite` -> `sqlite`, `postgresql+asyncpg` -> `postgresql`).
"""

from __future__ import annotations

import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool
from sqlalchemy.engine import make_url

from studio_authz.db import models  # noqa: F401  # ensure models are registered on Base.metadata
from studio_authz.db.base import Base
from studio_authz.settings import Settings

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

_SYNC_DRIVERS = {"aiosqlite": None, "asyncpg": "psycopg"}


def _get_database_url() -> str:
    # Prefer explicit env var for migrations
    raw = os.environ.get("STUDIO_DATABASE_URL") or Settings().database_url
    url = make_url(raw)
    if url.drivername.partition("+")[2] in _SYNC_DRIVERS:
        backend = url.get_backend_name()
        sync_driver = _SYNC_DRIVERS[url.drivername.partition("+")[2]]
        url = url.set(drivername=f"{backend}+{sync_driver}" if sync_driver else backend)
    return url.render_as_string(hide_password=False)


def run_migrations_offline() -> None:
    # Offline: emit SQL scripts without a DB connection.
    context.configure(
        url=_get_database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    configuration = config.get_section(config.config_ini_section) or {}
    configuration["sqlalchemy.url"] = _get_database_url()
    connectable = engine_from_config(configuration, prefix="sqlalchemy.", poolclass=pool.NullPool)

    with connectable.connect() as connection:
        # SQLite needs batch mode for ALTER TABLE support.
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=connection.dialect.name == "sqlite",
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
