"""Ticket engine: creation, filtered listing and status changes."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import desc, select
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session, selectinload
from sqlalchemy.orm.exc import StaleDataError

from ..core.errors import Conflict, InvalidInput, InvalidTransition, NotFound, StorageError
from ..core.ticket_types import TicketPriority, TicketStatus, normalize_status
from ..models.ticket import Ticket
from ..services.status_flow import check_finalize, check_transition
from .topics import get_active_topic

logger = logging.getLogger("ticketdesk.tickets")


def _utcnow() -> str:
    return datetime.now(timezone.utc).replace(tzinfo=None).isoformat(timespec="seconds") + "Z"


def _commit(db: Session) -> None:
    try:
        db.commit()
    except StaleDataError as exc:
        db.rollback()
        raise Conflict("Ticket was modified concurrently; retry the request") from exc
    except OperationalError as exc:
        db.rollback()
        logger.exception("ticket write failed")
        raise StorageError(
            "Database schema mismatch or storage failure while saving the ticket",
        ) from exc
    except IntegrityError as exc:
        db.rollback()
        raise StorageError("Ticket write violated a database constraint") from exc


def _require_int(payload: dict, key: str) -> int:
    value = payload.get(key)
    if value is None or isinstance(value, bool):
        raise InvalidInput(f"{key} is required", details={"field": key})
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise InvalidInput(f"{key} must be an integer", details={"field": key}) from exc


def _coerce_priority(value: object) -> TicketPriority:
    if value is None:
        raise InvalidInput("priority is required", details={"field": "priority"})
    try:
        return TicketPriority(value if isinstance(value, TicketPriority) else str(value).strip().lower())
    except ValueError as exc:
        raise InvalidInput(f"Unknown priority {value!r}", details={"field": "priority"}) from exc


def _coerce_status(value: object) -> TicketStatus | None:
    try:
        return normalize_status(value)  # type: ignore[arg-type]
    except ValueError as exc:
        raise InvalidInput(f"Unknown status {value!r}", details={"field": "status"}) from exc


def create_ticket(db: Session, payload: dict) -> Ticket:
    """Open a ticket against an active topic.

    Any ``status`` in ``payload`` is ignored: new tickets always start as
    ``created``. The topic's current name is copied into
    ``topic_name_snapshot`` and never rewritten afterwards.
    """

    requester_id = _require_int(payload, "requester_id")
    topic_id = _require_int(payload, "topic_id")
    priority = _coerce_priority(payload.get("priority"))
    description = payload.get("description")
    if description is None:
        raise InvalidInput("description is required", details={"field": "description"})

    topic = get_active_topic(db, topic_id)
    if topic is None:
        raise InvalidInput(
            f"Topic with ID {topic_id} not found or inactive",
            details={"field": "topic_id", "topic_id": topic_id},
        )

    assignee_id = payload.get("assignee_id")
    now = _utcnow()
    ticket = Ticket(
        requester_id=requester_id,
        requester_name=payload.get("requester_name") or None,
        assignee_id=int(assignee_id) if assignee_id is not None else None,
        topic=topic,
        topic_name_snapshot=topic.name,
        priority=priority.value,
        status=TicketStatus.CREATED.value,
        description=str(description),
        created_at=now,
        updated_at=now,
    )
    db.add(ticket)
    _commit(db)
    db.refresh(ticket)
    logger.info("created ticket %s under topic %s", ticket.id, topic.id)
    return ticket


def list_tickets(
    db: Session,
    *,
    status: TicketStatus | str | None = None,
    requester_id: int | None = None,
    requester_name: str | None = None,
    assignee_id: int | None = None,
) -> list[Ticket]:
    stmt = select(Ticket).options(selectinload(Ticket.topic))
    status = _coerce_status(status)
    if status is not None:
        stmt = stmt.where(Ticket.status == status.value)
    if requester_id is not None:
        stmt = stmt.where(Ticket.requester_id == requester_id)
    if requester_name is not None:
        stmt = stmt.where(Ticket.requester_name == requester_name)
    if assignee_id is not None:
        stmt = stmt.where(Ticket.assignee_id == assignee_id)
    stmt = stmt.order_by(desc(Ticket.id))
    return list(db.execute(stmt).scalars().all())


def get_ticket(db: Session, ticket_id: int) -> Ticket:
    stmt = select(Ticket).options(selectinload(Ticket.topic)).where(Ticket.id == ticket_id)
    ticket = db.execute(stmt).scalars().first()
    if ticket is None:
        raise NotFound(f"Ticket with ID {ticket_id} not found")
    return ticket


def _lock_ticket(db: Session, ticket_id: int) -> Ticket:
    ticket = db.execute(select(Ticket).where(Ticket.id == ticket_id).with_for_update()).scalars().first()
    if ticket is None:
        raise NotFound(f"Ticket with ID {ticket_id} not found")
    return ticket


def update_ticket(db: Session, ticket_id: int, payload: dict) -> Ticket:
    """Assign and/or move a ticket along its status lifecycle.

    ``assignee_id`` and ``status`` are both optional; a ``None`` value counts
    as not supplied. The transition is checked against the assignee this
    update leaves on the ticket, and nothing is written when it is rejected.
    """

    ticket = _lock_ticket(db, ticket_id)
    assignee_id = payload.get("assignee_id")
    requested = _coerce_status(payload.get("status"))

    if requested is not None:
        effective_assignee = assignee_id if assignee_id is not None else ticket.assignee_id
        try:
            check_transition(ticket.status_enum, requested, effective_assignee)
        except InvalidTransition:
            db.rollback()
            raise

    if assignee_id is not None:
        ticket.assignee_id = int(assignee_id)
    if requested is not None and requested is not ticket.status_enum:
        logger.info("ticket %s: %s -> %s", ticket.id, ticket.status, requested.value)
        ticket.status = requested.value
    ticket.updated_at = _utcnow()
    _commit(db)
    return get_ticket(db, ticket_id)


def finalize_ticket(db: Session, ticket_id: int) -> Ticket:
    ticket = _lock_ticket(db, ticket_id)
    try:
        check_finalize(ticket.status_enum)
    except InvalidTransition:
        db.rollback()
        raise
    ticket.status = TicketStatus.COMPLETED.value
    ticket.updated_at = _utcnow()
    _commit(db)
    logger.info("ticket %s finalized", ticket.id)
    return get_ticket(db, ticket_id)


__all__ = [
    "create_ticket",
    "finalize_ticket",
    "get_ticket",
    "list_tickets",
    "update_ticket",
]
