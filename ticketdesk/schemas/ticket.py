"""Pydantic schemas describing ticket payloads for the API."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..core.ticket_types import TicketPriority, TicketStatus
from .topic import TopicOut


class TicketCreate(BaseModel):
    requester_id: int = Field(..., ge=1)
    requester_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    assignee_id: Optional[int] = Field(default=None, ge=1)
    topic_id: int = Field(..., ge=1)
    priority: TicketPriority
    description: str

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "requester_id": 1,
                "requester_name": "John Doe",
                "topic_id": 1,
                "priority": "high",
                "description": "User is experiencing a login issue after updating their password",
            }
        }
    )


class TicketUpdate(BaseModel):
    assignee_id: Optional[int] = Field(default=None, ge=1)
    status: Optional[TicketStatus] = None

    model_config = ConfigDict(json_schema_extra={"example": {"assignee_id": 2, "status": "in_progress"}})


class TicketOut(BaseModel):
    id: int
    requester_id: int
    requester_name: Optional[str] = None
    assignee_id: Optional[int] = None
    topic_id: Optional[int] = None
    topic: Optional[TopicOut] = None
    topic_name: str
    topic_name_snapshot: str
    priority: TicketPriority
    status: TicketStatus
    description: str
    created_at: str
    updated_at: str

    model_config = ConfigDict(from_attributes=True)
