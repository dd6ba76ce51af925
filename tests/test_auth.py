"""Tests for API key hashing, account provisioning and authentication."""

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
os.environ.setdefault("BCRYPT_ROUNDS", "4")

from ticketdesk.core.errors import NotFound, Unauthenticated
from ticketdesk.core.security import API_KEY_PREFIX, generate_api_key, hash_api_key, verify_api_key
from ticketdesk.crud.accounts import (
    authenticate,
    create_account_with_api_key,
    deactivate_api_key,
    list_accounts,
)
from ticketdesk.db.session import Base
from ticketdesk.models.account import Account, ApiKey

# Ensure models are registered so metadata tables are created
from ticketdesk.models import ticket as ticket_model  # noqa: F401
from ticketdesk.models import topic as topic_model  # noqa: F401


@pytest.fixture()
def db_session():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False})
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


def test_generated_keys_are_prefixed_and_unique():
    first, second = generate_api_key(), generate_api_key()
    assert first.startswith(API_KEY_PREFIX)
    assert first != second


def test_hash_round_trip_and_malformed_hash():
    key_hash = hash_api_key("secret", rounds=4)
    assert key_hash != "secret"
    assert verify_api_key("secret", key_hash)
    assert not verify_api_key("other", key_hash)
    assert not verify_api_key("secret", "not-a-bcrypt-hash")


def test_authenticate_with_valid_key(db_session):
    account, _ = create_account_with_api_key(db_session, "AC1", "Acme", "secret-1")

    assert authenticate(db_session, "AC1", "secret-1").id == account.id


def test_unknown_account(db_session):
    with pytest.raises(Unauthenticated) as excinfo:
        authenticate(db_session, "AC404", "whatever")
    assert excinfo.value.reason == "unknown_account"
    assert excinfo.value.details == {"reason": "unknown_account"}


def test_wrong_key(db_session):
    create_account_with_api_key(db_session, "AC1", "Acme", "secret-1")

    with pytest.raises(Unauthenticated) as excinfo:
        authenticate(db_session, "AC1", "secret-2")
    assert excinfo.value.reason == "no_match"
    assert excinfo.value.message == "Invalid API key"


def test_any_active_key_authenticates(db_session):
    create_account_with_api_key(db_session, "AC1", "Acme", "old-key")
    account, _ = create_account_with_api_key(db_session, "AC1", "Ignored Name", "new-key")

    assert account.name == "Acme"
    assert len(account.api_keys) == 2
    assert authenticate(db_session, "AC1", "old-key").sid == "AC1"
    assert authenticate(db_session, "AC1", "new-key").sid == "AC1"


def test_inactive_keys_never_authenticate(db_session):
    _, old = create_account_with_api_key(db_session, "AC1", "Acme", "old-key")
    create_account_with_api_key(db_session, "AC1", "Acme", "new-key")

    deactivate_api_key(db_session, old.id)

    with pytest.raises(Unauthenticated) as excinfo:
        authenticate(db_session, "AC1", "old-key")
    assert excinfo.value.reason == "no_match"
    assert authenticate(db_session, "AC1", "new-key").sid == "AC1"


def test_account_without_active_keys(db_session):
    _, key = create_account_with_api_key(db_session, "AC1", "Acme", "only-key")
    deactivate_api_key(db_session, key.id)

    with pytest.raises(Unauthenticated) as excinfo:
        authenticate(db_session, "AC1", "only-key")
    assert excinfo.value.reason == "no_active_keys"


def test_key_of_another_account_is_rejected(db_session):
    create_account_with_api_key(db_session, "AC1", "Acme", "acme-key")
    create_account_with_api_key(db_session, "AC2", "Globex", "globex-key")

    with pytest.raises(Unauthenticated):
        authenticate(db_session, "AC1", "globex-key")


def test_malformed_stored_hash_does_not_block_other_keys(db_session):
    account, _ = create_account_with_api_key(db_session, "AC1", "Acme", "good-key")
    db_session.add(ApiKey(account_id=account.id, key_hash="garbage", is_active=True, created_at="2024-01-01T00:00:00Z"))
    db_session.commit()

    assert authenticate(db_session, "AC1", "good-key").sid == "AC1"


def test_plain_key_is_not_stored(db_session):
    _, key = create_account_with_api_key(db_session, "AC1", "Acme", "plain-secret")
    assert "plain-secret" not in key.key_hash
    assert key.key_hash.startswith("$2")


def test_provisioning_validation(db_session):
    with pytest.raises(ValueError):
        create_account_with_api_key(db_session, "  ", "Acme", "key")
    with pytest.raises(ValueError):
        create_account_with_api_key(db_session, "AC1", "Acme", "")
    with pytest.raises(ValueError):
        create_account_with_api_key(db_session, "AC1", "", "key")
    assert db_session.query(Account).count() == 0


def test_deactivate_missing_key(db_session):
    with pytest.raises(NotFound):
        deactivate_api_key(db_session, 99)


def test_list_accounts_reports_keys(db_session):
    _, key = create_account_with_api_key(db_session, "AC1", "Acme", "k1")
    create_account_with_api_key(db_session, "AC2", "Globex", "k2")
    deactivate_api_key(db_session, key.id)

    accounts = list_accounts(db_session)
    assert [a.sid for a in accounts] == ["AC1", "AC2"]
    assert [len(a.active_keys) for a in accounts] == [0, 1]
