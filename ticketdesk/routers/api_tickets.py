from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.ticket_types import TicketStatus
from ..crud.tickets import create_ticket, finalize_ticket, get_ticket, list_tickets, update_ticket
from ..db.session import get_db
from ..deps.auth import require_account
from ..schemas.ticket import TicketCreate, TicketOut, TicketUpdate

router = APIRouter(prefix="/api/v1/tickets", tags=["tickets"], dependencies=[Depends(require_account)])


def _serialize_ticket(ticket) -> TicketOut:
    return TicketOut.model_validate(ticket, from_attributes=True)


@router.get("", response_model=list[TicketOut])
def api_list(
    status: TicketStatus | None = Query(default=None),
    requester_id: int | None = Query(default=None, ge=1),
    requester_name: str | None = Query(default=None),
    assignee_id: int | None = Query(default=None, ge=1),
    db: Session = Depends(get_db),
):
    records = list_tickets(
        db,
        status=status,
        requester_id=requester_id,
        requester_name=requester_name or None,
        assignee_id=assignee_id,
    )
    return [_serialize_ticket(record) for record in records]


@router.get("/{ticket_id}", response_model=TicketOut)
def api_get(ticket_id: int, db: Session = Depends(get_db)):
    return _serialize_ticket(get_ticket(db, ticket_id))


@router.post("", response_model=TicketOut, status_code=201)
def api_create(payload: TicketCreate, db: Session = Depends(get_db)):
    ticket = create_ticket(db, payload.model_dump(exclude_unset=True))
    return _serialize_ticket(ticket)


@router.patch("/{ticket_id}", response_model=TicketOut)
def api_update(ticket_id: int, payload: TicketUpdate, db: Session = Depends(get_db)):
    data = {k: v for k, v in payload.model_dump().items() if v is not None}
    return _serialize_ticket(update_ticket(db, ticket_id, data))


@router.post("/{ticket_id}/finalize", response_model=TicketOut)
def api_finalize(ticket_id: int, db: Session = Depends(get_db)):
    return _serialize_ticket(finalize_ticket(db, ticket_id))
