"""
tests.test_migrations

The Alembic history must produce the same tables and columns as the ORM
models that `init_db` creates in dev/test.
"""

from __future__ import annotations

from pathlib import Path

import sqlalchemy as sa
from alembic import command
from alembic.config import Config

from studio_authz.db import models  # noqa: F401
from studio_authz.db.base import Base

ROOT = Path(__file__).resolve().parents[1]


def test_upgrade_matches_models_and_downgrade_cleans_up(tmp_path, monkeypatch) -> None:
    db = tmp_path / "migrated.db"
    monkeypatch.setenv("STUDIO_DATABASE_URL", f"sqlite+aiosqlite:///{db}")
    cfg = Config(str(ROOT / "alembic.ini"))

    command.upgrade(cfg, "head")

    engine = sa.create_engine(f"sqlite:///{db}")
    try:
        insp = sa.inspect(engine)
        assert {"users", "sessions", "subscriptions", "payments"} <= set(insp.get_table_names())
        for table in Base.metadata.sorted_tables:
            columns = {c["name"] for c in insp.get_columns(table.name)}
            assert columns == set(table.columns.keys()), table.name
    finally:
        engine.dispose()

    command.downgrade(cfg, "base")

    engine = sa.create_engine(f"sqlite:///{db}")
    try:
        assert set(sa.inspect(engine).get_table_names()) == {"alembic_version"}
    finally:
        engine.dispose()
