"""CRUD helpers for topics, the categories tickets are filed under."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable

from sqlalchemy import asc, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ..core.errors import Conflict, NotFound
from ..core.ticket_types import DEFAULT_TOPIC_NAMES
from ..models.ticket import Ticket
from ..models.topic import Topic

logger = logging.getLogger("ticketdesk.topics")


def _utcnow() -> str:
    return datetime.now(timezone.utc).replace(tzinfo=None).isoformat(timespec="seconds") + "Z"


def _duplicate(name: str) -> Conflict:
    return Conflict(f'Topic with name "{name}" already exists', details={"name": name})


def _commit(db: Session, *, name: str | None = None) -> None:
    """Commit, translating constraint and version races into ``Conflict``."""

    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        if name is not None:
            raise _duplicate(name) from exc
        raise Conflict("Topic write violated a database constraint") from exc
    except StaleDataError as exc:
        db.rollback()
        raise Conflict("Topic was modified concurrently; retry the request") from exc


def list_active_topics(db: Session) -> list[Topic]:
    stmt = select(Topic).where(Topic.is_active.is_(True)).order_by(asc(Topic.name))
    return list(db.execute(stmt).scalars().all())


def list_topics(db: Session) -> list[Topic]:
    return list(db.execute(select(Topic).order_by(asc(Topic.name))).scalars().all())


def get_topic(db: Session, topic_id: int) -> Topic | None:
    return db.get(Topic, topic_id)


def get_active_topic(db: Session, topic_id: int) -> Topic | None:
    stmt = select(Topic).where(Topic.id == topic_id, Topic.is_active.is_(True))
    return db.execute(stmt).scalars().first()


def get_topic_by_name(db: Session, name: str) -> Topic | None:
    return db.execute(select(Topic).where(Topic.name == name)).scalars().first()


def _lock_topic(db: Session, topic_id: int) -> Topic:
    topic = db.execute(select(Topic).where(Topic.id == topic_id).with_for_update()).scalars().first()
    if topic is None:
        raise NotFound(f"Topic with ID {topic_id} not found")
    return topic


def create_topic(db: Session, name: str) -> Topic:
    if get_topic_by_name(db, name) is not None:
        raise _duplicate(name)
    now = _utcnow()
    topic = Topic(name=name, is_active=True, created_at=now, updated_at=now)
    db.add(topic)
    _commit(db, name=name)
    db.refresh(topic)
    logger.info("created topic %s (%s)", topic.id, topic.name)
    return topic


def update_topic(db: Session, topic_id: int, payload: dict) -> Topic:
    """Rename and/or (de)activate a topic.

    ``payload`` may carry ``name`` and ``is_active``; missing or ``None``
    values leave the field alone. Renaming never touches tickets: their
    snapshot keeps the name they were filed under.
    """

    topic = _lock_topic(db, topic_id)
    name = payload.get("name")
    if name is not None and name != topic.name:
        if get_topic_by_name(db, name) is not None:
            raise _duplicate(name)
        topic.name = name
    is_active = payload.get("is_active")
    if is_active is not None:
        topic.is_active = bool(is_active)
    topic.updated_at = _utcnow()
    _commit(db, name=name)
    db.refresh(topic)
    return topic


def delete_topic(db: Session, topic_id: int) -> None:
    """Physically remove a topic, detaching the tickets filed under it."""

    topic = _lock_topic(db, topic_id)
    referencing = db.execute(select(Ticket).where(Ticket.topic_id == topic.id)).scalars().all()
    now = _utcnow()
    for ticket in referencing:
        ticket.topic = None
        ticket.updated_at = now
    db.delete(topic)
    _commit(db)
    logger.info("deleted topic %s, detached %d ticket(s)", topic_id, len(referencing))


def ensure_default_topics(db: Session, names: Iterable[str] = DEFAULT_TOPIC_NAMES) -> dict[str, Topic]:
    """Create any missing default topics and return every default by name."""

    result: dict[str, Topic] = {}
    for name in names:
        topic = get_topic_by_name(db, name)
        if topic is None:
            topic = create_topic(db, name)
        result[name] = topic
    return result


__all__ = [
    "create_topic",
    "delete_topic",
    "ensure_default_topics",
    "get_active_topic",
    "get_topic",
    "get_topic_by_name",
    "list_active_topics",
    "list_topics",
    "update_topic",
]
