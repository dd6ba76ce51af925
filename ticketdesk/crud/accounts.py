"""Credential store helpers: account provisioning and API key checks."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from ..core.errors import NotFound, Unauthenticated
from ..core.security import hash_api_key, verify_api_key
from ..models.account import Account, ApiKey

logger = logging.getLogger("ticketdesk.auth")


def _utcnow() -> str:
    return datetime.now(timezone.utc).replace(tzinfo=None).isoformat(timespec="seconds") + "Z"


def get_account_by_sid(db: Session, sid: str) -> Account | None:
    return db.execute(select(Account).where(Account.sid == sid)).scalars().first()


def list_accounts(db: Session) -> list[Account]:
    stmt = select(Account).options(selectinload(Account.api_keys)).order_by(Account.id)
    return list(db.execute(stmt).scalars().all())


def authenticate(db: Session, sid: str, api_key: str) -> Account:
    """Return the account owning ``sid`` if ``api_key`` matches one of its active keys."""

    account = get_account_by_sid(db, sid)
    if account is None:
        raise Unauthenticated("Invalid account SID", reason="unknown_account")

    active_keys = db.execute(
        select(ApiKey).where(ApiKey.account_id == account.id, ApiKey.is_active.is_(True))
    ).scalars().all()
    if not active_keys:
        raise Unauthenticated("No active API key found for this account", reason="no_active_keys")

    # All active keys are verified, not just up to the first match.
    matches = [verify_api_key(api_key, stored.key_hash) for stored in active_keys]
    if not any(matches):
        raise Unauthenticated("Invalid API key", reason="no_match")

    logger.debug("authenticated account %s", account.sid)
    return account


def create_account_with_api_key(db: Session, sid: str, name: str, plain_key: str) -> tuple[Account, ApiKey]:
    """Create ``sid`` if needed and attach a new active key hashed from ``plain_key``.

    An existing account keeps its name; only a key is added. The plain key is
    not persisted anywhere, so callers must hand it to the user themselves.
    """

    sid = (sid or "").strip()
    if not sid:
        raise ValueError("sid is required")
    if not plain_key:
        raise ValueError("api key is required")

    account = get_account_by_sid(db, sid)
    if account is None:
        name = (name or "").strip()
        if not name:
            raise ValueError("name is required")
        account = Account(sid=sid, name=name, created_at=_utcnow())
        db.add(account)
        db.flush()
        logger.info("created account %s", sid)

    key = ApiKey(
        account_id=account.id,
        key_hash=hash_api_key(plain_key),
        is_active=True,
        created_at=_utcnow(),
    )
    db.add(key)
    db.commit()
    db.refresh(account)
    db.refresh(key)
    return account, key


def deactivate_api_key(db: Session, key_id: int) -> ApiKey:
    key = db.get(ApiKey, key_id)
    if key is None:
        raise NotFound(f"API key with ID {key_id} not found")
    key.is_active = False
    db.commit()
    db.refresh(key)
    logger.info("deactivated api key %s for account %s", key.id, key.account_id)
    return key


__all__ = [
    "authenticate",
    "create_account_with_api_key",
    "deactivate_api_key",
    "get_account_by_sid",
    "list_accounts",
]
