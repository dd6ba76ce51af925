"""API key generation and bcrypt hashing."""

from __future__ import annotations

import secrets

import bcrypt

from .config import settings

API_KEY_PREFIX = "sk_live_"


def generate_api_key() -> str:
    """Return a fresh random secret suitable for the ``x-api-key`` header."""

    return f"{API_KEY_PREFIX}{secrets.token_urlsafe(24)}"


def hash_api_key(plain: str, rounds: int | None = None) -> str:
    salt = bcrypt.gensalt(rounds=rounds or settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(plain.encode("utf-8"), salt).decode("utf-8")


def verify_api_key(plain: str, key_hash: str) -> bool:
    """Check ``plain`` against a stored bcrypt hash.

    A malformed stored hash never authenticates; bcrypt raises ``ValueError``
    for those, which is treated as a mismatch for that key only.
    """

    try:
        return bcrypt.checkpw(plain.encode("utf-8"), key_hash.encode("utf-8"))
    except ValueError:
        return False
