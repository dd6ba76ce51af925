#!/usr/bin/env python3
"""
check_accounts.py

List every account with the number of active API keys it holds. Accounts
with no active key cannot authenticate and are flagged.

Examples:
  python -m ticketdesk.scripts.check_accounts
  python -m ticketdesk.scripts.check_accounts --json

Exit codes:
  0 = at least one account exists
  1 = no accounts found
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any, Dict, List

from ..crud.accounts import list_accounts
from ..db.migrate import init_db
from ..db.session import SessionLocal


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Report accounts and their active API keys.")
    p.add_argument("--json", action="store_true", help="Print machine-readable JSON instead of text.")
    return p.parse_args(argv)


def collect() -> List[Dict[str, Any]]:
    db = SessionLocal()
    try:
        return [
            {
                "sid": account.sid,
                "name": account.name,
                "created_at": account.created_at,
                "active_keys": len(account.active_keys),
                "total_keys": len(account.api_keys),
            }
            for account in list_accounts(db)
        ]
    finally:
        db.close()


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    init_db()
    rows = collect()

    if args.json:
        print(json.dumps({"accounts": rows, "count": len(rows)}, indent=2))
    elif not rows:
        print("No accounts found. Run: python -m ticketdesk.scripts.seed_account")
    else:
        for row in rows:
            flag = "" if row["active_keys"] else "  (WARNING: no active API keys)"
            print(f"{row['sid']}  {row['name']}  active_keys={row['active_keys']}/{row['total_keys']}{flag}")

    return 0 if rows else 1


if __name__ == "__main__":
    sys.exit(main())
