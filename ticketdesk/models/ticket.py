"""SQLAlchemy model for support tickets."""

from __future__ import annotations

from sqlalchemy import Column, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from ..core.ticket_types import TicketStatus
from ..db.session import Base


class Ticket(Base):
    __tablename__ = "tickets"
    __allow_unmapped__ = True

    id = Column(Integer, primary_key=True, index=True)
    requester_id = Column(Integer, nullable=False, index=True)
    requester_name = Column(String(255), nullable=True)
    assignee_id = Column(Integer, nullable=True, index=True)

    topic_id = Column(Integer, ForeignKey("topics.id", ondelete="SET NULL"), nullable=True, index=True)
    # Topic name captured at creation; survives renames and deletion of the topic.
    topic_name_snapshot = Column(String(100), nullable=False)

    priority = Column(String(10), nullable=False)
    status = Column(String(20), nullable=False, default=TicketStatus.CREATED.value, index=True)
    description = Column(Text, nullable=False)
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)
    version_id = Column(Integer, nullable=False)

    topic = relationship("Topic", back_populates="tickets")

    __mapper_args__ = {"version_id_col": version_id}

    @property
    def topic_name(self) -> str:
        if self.topic is not None:
            return self.topic.name
        return self.topic_name_snapshot

    @property
    def status_enum(self) -> TicketStatus:
        return TicketStatus(self.status)


__all__ = ["Ticket"]
