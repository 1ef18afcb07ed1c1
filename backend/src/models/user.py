"""User, packed user and role policy models."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class User(BaseModel):
    """Account row as stored in the ``users`` table."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "9kq2x8b0a1",
                "username": "Alice",
                "username_lower": "alice",
                "host": None,
                "name": "Alice Smith",
                "created_at": "2024-01-15T10:30:00.000Z",
            }
        }
    )

    id: str = Field(..., min_length=1, description="Opaque, time-ordered user ID")
    username: str = Field(..., min_length=1, max_length=128)
    username_lower: str = Field(..., description="Lower-cased username used for lookups")
    host: Optional[str] = Field(None, description="Remote host, None for local users")
    name: Optional[str] = Field(None, description="Display name")
    created_at: datetime


class PackedUser(BaseModel):
    """Client-facing user representation embedded in packed notes."""

    id: str
    username: str
    host: Optional[str] = None
    name: Optional[str] = None


class RolePolicies(BaseModel):
    """Capabilities granted to a caller."""

    can_search_notes: bool = True


__all__ = ["User", "PackedUser", "RolePolicies"]
