"""Tests for the operational command line scripts."""

import json
import os
import sys
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATA_DIR", str(ROOT / "data"))
os.environ.setdefault("BCRYPT_ROUNDS", "4")

from ticketdesk.crud.accounts import authenticate
from ticketdesk.crud.topics import list_active_topics
from ticketdesk.db.migrate import init_db
from ticketdesk.scripts import check_accounts, migrate, seed_account


@pytest.fixture()
def session_factory(monkeypatch):
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    for module in (check_accounts, migrate, seed_account):
        monkeypatch.setattr(module, "SessionLocal", TestingSessionLocal)
        monkeypatch.setattr(module, "init_db", lambda: init_db(engine))
    yield TestingSessionLocal
    engine.dispose()


def test_check_accounts_fails_when_empty(session_factory, capsys):
    assert check_accounts.main([]) == 1
    assert "No accounts found" in capsys.readouterr().out


def test_seed_then_check(session_factory, capsys):
    assert seed_account.main(["--sid", "AC42", "--name", "Support", "--api-key", "plain-key"]) == 0
    seeded = json.loads(capsys.readouterr().out)
    assert seeded["account_sid"] == "AC42"
    assert seeded["headers"] == {"x-account-sid": "AC42", "x-api-key": "plain-key"}

    db = session_factory()
    try:
        assert authenticate(db, "AC42", "plain-key").name == "Support"
    finally:
        db.close()

    assert check_accounts.main(["--json"]) == 0
    report = json.loads(capsys.readouterr().out)
    assert report["count"] == 1
    assert report["accounts"][0]["active_keys"] == 1


def test_seed_generates_a_key_when_none_given(session_factory, capsys):
    assert seed_account.main(["--sid", "AC7", "--name", "Ops"]) == 0
    assert json.loads(capsys.readouterr().out)["api_key"].startswith("sk_live_")


def test_seed_rejects_blank_sid(session_factory, capsys):
    assert seed_account.main(["--sid", " ", "--api-key", "k"]) == 1
    assert "sid is required" in capsys.readouterr().err


def test_migrate_creates_default_topics(session_factory, capsys):
    assert migrate.main([]) == 0
    summary = json.loads(capsys.readouterr().out)
    assert summary["backfilled_tickets"] == 0

    db = session_factory()
    try:
        names = [t.name for t in list_active_topics(db)]
    finally:
        db.close()
    assert names == sorted(summary["default_topics"])
    assert migrate.main([]) == 0
