from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class AccountOut(BaseModel):
    sid: str
    name: str
    created_at: str
    active_key_count: int = 0

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "sid": "AC123456789",
                "name": "Test Account",
                "created_at": "2024-01-01T00:00:00Z",
                "active_key_count": 1,
            }
        },
    )
