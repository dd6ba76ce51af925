"""Pydantic schemas for topic payloads."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class TopicCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)

    model_config = ConfigDict(json_schema_extra={"example": {"name": "Technical Support"}})


class TopicUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    is_active: Optional[bool] = None

    model_config = ConfigDict(
        json_schema_extra={"example": {"name": "Technical Support", "is_active": True}},
    )


class TopicOut(BaseModel):
    id: int
    name: str
    is_active: bool
    created_at: str
    updated_at: str

    model_config = ConfigDict(from_attributes=True)
