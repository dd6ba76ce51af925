"""Shared ticket status and priority constants."""

from __future__ import annotations

from enum import Enum


class TicketStatus(str, Enum):
    CREATED = "created"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class TicketPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# Topics seeded by the migration script; the last one is the fallback name
# for legacy tickets that never had a topic.
DEFAULT_TOPIC_NAMES = (
    "Billing",
    "Bug Report",
    "Feature Request",
    "General Inquiry",
)
FALLBACK_TOPIC_NAME = DEFAULT_TOPIC_NAMES[-1]


def normalize_status(value: TicketStatus | str | None) -> TicketStatus | None:
    """Coerce a raw status value into ``TicketStatus``; ``None`` passes through."""

    if value is None or isinstance(value, TicketStatus):
        return value
    return TicketStatus(str(value).strip().lower())


__all__ = [
    "DEFAULT_TOPIC_NAMES",
    "FALLBACK_TOPIC_NAME",
    "TicketPriority",
    "TicketStatus",
    "normalize_status",
]
