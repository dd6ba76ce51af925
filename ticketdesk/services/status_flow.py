"""Ticket status lifecycle rules.

Tickets move strictly forward through ``created -> in_progress -> completed``.
Requesting the current status again is accepted as a no-op, except on a
completed ticket, which accepts nothing. Leaving ``created`` requires an
assignee. These helpers only validate; callers apply the change.
"""

from __future__ import annotations

from ..core.errors import InvalidTransition
from ..core.ticket_types import TicketStatus


def _reject(current: TicketStatus, requested: TicketStatus, message: str, **extra: str) -> InvalidTransition:
    details = {"current_status": current.value, "requested_status": requested.value}
    details.update(extra)
    return InvalidTransition(message, details=details)


def check_transition(current: TicketStatus, requested: TicketStatus, assignee_id: int | None) -> None:
    """Raise ``InvalidTransition`` unless ``current -> requested`` is allowed.

    ``assignee_id`` is the effective assignee: the value supplied in the same
    update when there is one, otherwise the ticket's stored value.
    """

    if current is TicketStatus.COMPLETED:
        raise _reject(current, requested, "Cannot change status of a completed ticket")

    if current is TicketStatus.CREATED:
        if requested is TicketStatus.CREATED:
            return
        if requested is TicketStatus.IN_PROGRESS:
            if not assignee_id:
                raise _reject(
                    current,
                    requested,
                    'Assignee ID must be provided to move ticket to "in_progress" status',
                    missing_field="assignee_id",
                )
            return
        raise _reject(
            current,
            requested,
            'Cannot transition from "created" to "completed". Ticket must be "in_progress" first.',
        )

    # in_progress
    if requested in (TicketStatus.IN_PROGRESS, TicketStatus.COMPLETED):
        return
    raise _reject(
        current,
        requested,
        f'Invalid status transition from "{current.value}" to "{requested.value}". Only "completed" is allowed.',
    )


def check_finalize(current: TicketStatus) -> None:
    if current is TicketStatus.COMPLETED:
        raise _reject(current, TicketStatus.COMPLETED, "Ticket is already completed")
    if current is not TicketStatus.IN_PROGRESS:
        raise _reject(
            current,
            TicketStatus.COMPLETED,
            f'Cannot finalize ticket with status "{current.value}". Ticket must be "in_progress" to be finalized.',
        )


def can_transition(current: TicketStatus, requested: TicketStatus, assignee_id: int | None = None) -> bool:
    try:
        check_transition(current, requested, assignee_id)
    except InvalidTransition:
        return False
    return True
