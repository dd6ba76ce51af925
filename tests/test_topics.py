"""Tests for the topic registry."""

import os
import sys
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATA_DIR", str(ROOT / "data"))

from ticketdesk.core.errors import Conflict, NotFound
from ticketdesk.core.ticket_types import DEFAULT_TOPIC_NAMES
from ticketdesk.crud.tickets import create_ticket, get_ticket
from ticketdesk.crud.topics import (
    create_topic,
    delete_topic,
    ensure_default_topics,
    get_active_topic,
    get_topic,
    list_active_topics,
    list_topics,
    update_topic,
)
from ticketdesk.db.session import Base, enable_sqlite_foreign_keys

# Ensure models are registered so metadata tables are created
from ticketdesk.models import account as account_model  # noqa: F401
from ticketdesk.models import ticket as ticket_model  # noqa: F401
from ticketdesk.models import topic as topic_model  # noqa: F401


@pytest.fixture()
def db_session():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False})
    enable_sqlite_foreign_keys(engine)
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


def _ticket(db, topic_id, **overrides):
    payload = {"requester_id": 1, "topic_id": topic_id, "priority": "medium", "description": "Printer jam"}
    payload.update(overrides)
    return create_ticket(db, payload)


def test_active_topics_sorted_by_name(db_session):
    create_topic(db_session, "Networking")
    create_topic(db_session, "Billing")
    hidden = create_topic(db_session, "Archive")
    update_topic(db_session, hidden.id, {"is_active": False})

    assert [t.name for t in list_active_topics(db_session)] == ["Billing", "Networking"]
    assert [t.name for t in list_topics(db_session)] == ["Archive", "Billing", "Networking"]
    assert get_active_topic(db_session, hidden.id) is None
    assert get_topic(db_session, hidden.id) is not None


def test_duplicate_name_conflicts_even_when_inactive(db_session):
    topic = create_topic(db_session, "Billing")
    update_topic(db_session, topic.id, {"is_active": False})

    with pytest.raises(Conflict) as excinfo:
        create_topic(db_session, "Billing")
    assert excinfo.value.message == 'Topic with name "Billing" already exists'


def test_rename_to_existing_name_conflicts(db_session):
    create_topic(db_session, "Billing")
    other = create_topic(db_session, "Sales")

    with pytest.raises(Conflict):
        update_topic(db_session, other.id, {"name": "Billing"})

    assert get_topic(db_session, other.id).name == "Sales"


def test_update_applies_fields_independently(db_session):
    topic = create_topic(db_session, "Billing")

    renamed = update_topic(db_session, topic.id, {"name": "Payments", "is_active": None})
    assert renamed.name == "Payments"
    assert renamed.is_active is True

    # Keeping the same name is not a conflict with itself
    deactivated = update_topic(db_session, topic.id, {"name": "Payments", "is_active": False})
    assert deactivated.is_active is False


def test_missing_topic_operations_raise_not_found(db_session):
    with pytest.raises(NotFound):
        update_topic(db_session, 404, {"name": "Anything"})
    with pytest.raises(NotFound):
        delete_topic(db_session, 404)


def test_rename_keeps_ticket_snapshot(db_session):
    topic = create_topic(db_session, "Billing")
    ticket = _ticket(db_session, topic.id)

    update_topic(db_session, topic.id, {"name": "Payments"})

    refreshed = get_ticket(db_session, ticket.id)
    assert refreshed.topic_name_snapshot == "Billing"
    # The live name wins while the topic still exists
    assert refreshed.topic_name == "Payments"


def test_delete_detaches_every_referencing_ticket(db_session):
    topic_id = create_topic(db_session, "Billing").id
    keep = create_topic(db_session, "Sales")
    ids = [_ticket(db_session, topic_id).id for _ in range(3)]
    unrelated = _ticket(db_session, keep.id)

    delete_topic(db_session, topic_id)

    assert get_topic(db_session, topic_id) is None
    for ticket_id in ids:
        ticket = get_ticket(db_session, ticket_id)
        assert ticket.topic_id is None
        assert ticket.topic is None
        assert ticket.topic_name_snapshot == "Billing"
        assert ticket.topic_name == "Billing"
    assert get_ticket(db_session, unrelated.id).topic_id == keep.id


def test_ensure_default_topics_is_idempotent(db_session):
    create_topic(db_session, "Billing")

    first = ensure_default_topics(db_session)
    second = ensure_default_topics(db_session)

    assert sorted(first) == sorted(DEFAULT_TOPIC_NAMES)
    assert {name: t.id for name, t in first.items()} == {name: t.id for name, t in second.items()}
    assert len(list_topics(db_session)) == len(DEFAULT_TOPIC_NAMES)
