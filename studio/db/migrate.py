"""Small, idempotent SQLite migrations.

``Base.metadata.create_all`` builds a fresh schema; the helpers below only
ADD columns and indexes that older databases are missing. Nothing is dropped.
"""

from __future__ import annotations

import logging
from typing import Iterable

from sqlalchemy import text
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)


# Columns added after the first release, per table.
ADDITIVE_COLUMNS: dict[str, dict[str, str]] = {
    "time_entries": {
        "activity_name": "TEXT",
        "categoria": "TEXT",
        "energia": "INTEGER",
        "satisfacao": "INTEGER",
        "start_time": "TEXT",
        "end_time": "TEXT",
        "duration_minutes": "INTEGER",
        "checkout_id": "TEXT",
    },
    "projects": {
        "nicho_mercado": "TEXT",
        "briefing_inicial": "TEXT",
        "cover_image": "TEXT",
    },
    "clients": {
        "documents": "TEXT",
    },
    "brand_guidelines": {
        "notes": "TEXT",
        "version": "INTEGER DEFAULT 1 NOT NULL",
    },
}


def _table_columns(engine: Engine, table: str) -> list[dict[str, object]]:
    with engine.connect() as conn:
        return conn.execute(text(f"PRAGMA table_info({table})")).mappings().all()


def _column_names(engine: Engine, table: str) -> set[str]:
    return {record["name"] for record in _table_columns(engine, table)}


def _add_column_sqlite(engine: Engine, table: str, col_def: str) -> None:
    with engine.begin() as conn:
        conn.execute(text(f"ALTER TABLE {table} ADD COLUMN {col_def}"))


def _create_index_if_not_exists(engine: Engine, table: str, name: str, cols: Iterable[str], unique: bool = False) -> None:
    cols_sql = ", ".join(cols)
    unique_sql = "UNIQUE " if unique else ""
    with engine.begin() as conn:
        conn.execute(text(f"CREATE {unique_sql}INDEX IF NOT EXISTS {name} ON {table} ({cols_sql})"))


def run_migrations(engine: Engine) -> None:
    """Bring an existing SQLite database up to date with the models."""

    if engine.dialect.name != "sqlite":
        return

    for table, needed in ADDITIVE_COLUMNS.items():
        existing = _column_names(engine, table)
        if not existing:
            # Table absent; create_all owns it.
            continue
        for name, dtype in needed.items():
            if name not in existing:
                logger.info("migrate.add_column", extra={"extra_data": {"table": table, "column": name}})
                _add_column_sqlite(engine, table, f"{name} {dtype}")

    if _column_names(engine, "time_entries"):
        # A checkout may only ever produce one row. NULLs (manual entries) do not collide.
        _create_index_if_not_exists(
            engine, "time_entries", "ix_time_entries_checkout_id_unique", ["checkout_id"], unique=True
        )
        _create_index_if_not_exists(engine, "time_entries", "ix_time_entries_user_date", ["user_id", "date"])
