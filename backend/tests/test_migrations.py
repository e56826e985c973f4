"""
Alembic migration tests.

Runs the real migration scripts against a throwaway SQLite file and checks
that the resulting schema covers every ORM table.
"""

from __future__ import annotations

from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

from worklog.db.models import Base

ALEMBIC_INI = Path(__file__).resolve().parents[1] / "alembic.ini"


def _config(db_file: Path) -> Config:
    cfg = Config(str(ALEMBIC_INI))
    cfg.set_main_option("sqlalchemy.url", f"sqlite+aiosqlite:///{db_file}")
    return cfg


def _tables(db_file: Path) -> set[str]:
    engine = create_engine(f"sqlite:///{db_file}")
    try:
        return set(inspect(engine).get_table_names())
    finally:
        engine.dispose()


def test_upgrade_creates_every_mapped_table(tmp_path):
    db_file = tmp_path / "migrated.db"
    command.upgrade(_config(db_file), "head")

    tables = _tables(db_file)
    assert set(Base.metadata.tables) <= tables
    assert "alembic_version" in tables


def test_downgrade_to_base_removes_tables(tmp_path):
    db_file = tmp_path / "migrated.db"
    cfg = _config(db_file)
    command.upgrade(cfg, "head")
    command.downgrade(cfg, "base")

    assert _tables(db_file) == {"alembic_version"}
