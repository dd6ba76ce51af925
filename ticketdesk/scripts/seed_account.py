#!/usr/bin/env python3
"""
seed_account.py

Create an account (or reuse an existing one with the same SID) and attach a
new active API key. The plain key is printed once and never stored.

Precedence for each value:
  1) CLI flag
  2) env SEED_ACCOUNT_SID / SEED_ACCOUNT_NAME / SEED_API_KEY
  3) built-in default (a random key when none is configured)

Examples:
  python -m ticketdesk.scripts.seed_account
  python -m ticketdesk.scripts.seed_account --sid AC987 --name "Support Team"

Exit codes:
  0 = success
  1 = invalid input
"""

from __future__ import annotations

import argparse
import json
import sys

from ..core.config import settings
from ..core.security import generate_api_key
from ..crud.accounts import create_account_with_api_key
from ..db.session import SessionLocal
from ..db.migrate import init_db


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Create an account and issue it an API key.")
    p.add_argument("--sid", default=settings.SEED_ACCOUNT_SID, help="Account SID (x-account-sid header value).")
    p.add_argument("--name", default=settings.SEED_ACCOUNT_NAME, help="Display name for a new account.")
    p.add_argument("--api-key", default=settings.SEED_API_KEY,
                   help="Plain API key to register. A random key is generated when omitted.")
    return p.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    plain_key = args.api_key or generate_api_key()

    init_db()
    db = SessionLocal()
    try:
        account, key = create_account_with_api_key(db, args.sid, args.name, plain_key)
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    finally:
        db.close()

    print(json.dumps({
        "status": "ok",
        "account_sid": account.sid,
        "account_name": account.name,
        "api_key_id": key.id,
        "api_key": plain_key,
        "headers": {"x-account-sid": account.sid, "x-api-key": plain_key},
    }, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
