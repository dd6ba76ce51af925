#!/usr/bin/env python3
"""
migrate.py

Bring a database up to date: create missing tables, apply the additive
column upgrades, make sure the default topics exist, and backfill the topic
name snapshot on tickets created before that column existed. Safe to run
repeatedly.

Examples:
  python -m ticketdesk.scripts.migrate
  DB_URL=sqlite:////srv/ticketdesk/tickets.db python -m ticketdesk.scripts.migrate
"""

from __future__ import annotations

import argparse
import json
import sys

from ..crud.topics import ensure_default_topics
from ..db.migrate import backfill_topic_snapshots, init_db
from ..db.session import SessionLocal


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Upgrade the TicketDesk database schema and data.")
    p.add_argument("--skip-default-topics", action="store_true",
                   help="Do not create the default topics.")
    return p.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    init_db()

    db = SessionLocal()
    try:
        topics = {} if args.skip_default_topics else ensure_default_topics(db)
        backfilled = backfill_topic_snapshots(db)
    finally:
        db.close()

    print(json.dumps({
        "status": "ok",
        "default_topics": sorted(topics),
        "backfilled_tickets": backfilled,
    }, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
