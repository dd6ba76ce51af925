"""SQLAlchemy model for ticket categories."""

from __future__ import annotations

from sqlalchemy import Boolean, Column, Integer, String, Text
from sqlalchemy.orm import relationship

from ..db.session import Base


class Topic(Base):
    __tablename__ = "topics"
    __allow_unmapped__ = True

    id = Column(Integer, primary_key=True, index=True)
    # Unique across active and inactive topics alike.
    name = Column(String(100), nullable=False, unique=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)
    version_id = Column(Integer, nullable=False)

    tickets = relationship("Ticket", back_populates="topic")

    __mapper_args__ = {"version_id_col": version_id}


__all__ = ["Topic"]
