"""Small idempotent schema upgrades for SQLite databases."""

from __future__ import annotations

import logging
from typing import Iterable

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from ..core.ticket_types import FALLBACK_TOPIC_NAME
from ..models import account as _account  # noqa: F401
from ..models import ticket as _ticket  # noqa: F401
from ..models import topic as _topic  # noqa: F401
from .session import Base, engine as default_engine

logger = logging.getLogger("ticketdesk.migrate")

# Additive only: columns are added, never dropped or retyped.


def _table_columns(engine: Engine, table: str) -> list[dict[str, object]]:
    with engine.connect() as conn:
        return [dict(row) for row in conn.execute(text(f"PRAGMA table_info({table})")).mappings().all()]


def _column_names(engine: Engine, table: str) -> set[str]:
    return {str(record["name"]) for record in _table_columns(engine, table)}


def _add_column_sqlite(engine: Engine, table: str, col_def: str) -> None:
    with engine.begin() as conn:
        conn.execute(text(f"ALTER TABLE {table} ADD COLUMN {col_def}"))
    logger.info("added column %s.%s", table, col_def.split()[0])


def _create_index_if_not_exists(engine: Engine, table: str, name: str, cols: Iterable[str], unique: bool = False) -> None:
    cols_sql = ", ".join(cols)
    unique_sql = "UNIQUE " if unique else ""
    with engine.begin() as conn:
        conn.execute(text(f"CREATE {unique_sql}INDEX IF NOT EXISTS {name} ON {table} ({cols_sql})"))


def run_migrations(engine: Engine) -> None:
    """Bring an older SQLite schema up to what the models expect."""

    if engine.dialect.name != "sqlite":
        return

    ticket_needed: dict[str, str] = {
        "requester_name": "VARCHAR(255)",
        "topic_name_snapshot": "VARCHAR(100)",
        "version_id": "INTEGER NOT NULL DEFAULT 1",
    }
    topic_needed: dict[str, str] = {
        "version_id": "INTEGER NOT NULL DEFAULT 1",
    }

    tcols = _column_names(engine, "tickets")
    if tcols:
        for name, dtype in ticket_needed.items():
            if name not in tcols:
                _add_column_sqlite(engine, "tickets", f"{name} {dtype}")

    pcols = _column_names(engine, "topics")
    if pcols:
        for name, dtype in topic_needed.items():
            if name not in pcols:
                _add_column_sqlite(engine, "topics", f"{name} {dtype}")
        # Databases created before names were unique get the constraint as an index.
        duplicates = _duplicate_topic_names(engine)
        if duplicates:
            logger.error(
                "topics.name holds duplicates, unique index not created until they are renamed: %s",
                ", ".join(duplicates),
            )
        else:
            _create_index_if_not_exists(engine, "topics", "ix_topics_name_unique", ["name"], unique=True)


def _duplicate_topic_names(engine: Engine) -> list[str]:
    with engine.connect() as conn:
        rows = conn.execute(
            text("SELECT name FROM topics GROUP BY name HAVING COUNT(*) > 1 ORDER BY name")
        ).scalars().all()
    return [str(name) for name in rows]


def init_db(engine: Engine | None = None) -> None:
    """Create missing tables, then apply the additive upgrades."""

    target = engine or default_engine
    Base.metadata.create_all(bind=target)
    run_migrations(target)


def backfill_topic_snapshots(db: Session) -> int:
    """Fill ``topic_name_snapshot`` on tickets that predate the column.

    Uses the live topic name where the topic still exists, ``Topic <id>`` when
    only a dangling id is left, and the general fallback topic otherwise.
    Returns the number of tickets updated.
    """

    rows = db.execute(
        text(
            """
            SELECT t.id AS ticket_id, t.topic_id AS topic_id, top.name AS topic_name
            FROM tickets t
            LEFT JOIN topics top ON t.topic_id = top.id
            WHERE t.topic_name_snapshot IS NULL
            """
        )
    ).mappings().all()

    for row in rows:
        if row["topic_name"]:
            snapshot = row["topic_name"]
        elif row["topic_id"] is not None:
            snapshot = f"Topic {row['topic_id']}"
        else:
            snapshot = FALLBACK_TOPIC_NAME
        db.execute(
            text("UPDATE tickets SET topic_name_snapshot = :snapshot WHERE id = :ticket_id"),
            {"snapshot": snapshot, "ticket_id": row["ticket_id"]},
        )
    db.commit()
    if rows:
        logger.info("backfilled topic_name_snapshot on %d ticket(s)", len(rows))
    return len(rows)
