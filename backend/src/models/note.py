"""Note-related Pydantic models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .user import PackedUser, User


class Visibility(str, Enum):
    """Exposure level of a note."""

    PUBLIC = "public"
    HOME = "home"
    FOLLOWERS = "followers"
    SPECIFIED = "specified"


# Visibilities that show up on other users' home timelines.
TIMELINE_VISIBILITIES: tuple[Visibility, ...] = (Visibility.HOME, Visibility.PUBLIC)


class NoteRecord(BaseModel):
    """A note row together with the eagerly fetched related rows."""

    id: str
    created_at: datetime
    user_id: str
    text: Optional[str] = None
    visibility: Visibility = Visibility.PUBLIC
    mentions: list[str] = Field(default_factory=list)
    visible_user_ids: list[str] = Field(default_factory=list)
    reply_id: Optional[str] = None
    reply_user_id: Optional[str] = None
    renote_id: Optional[str] = None
    renote_user_id: Optional[str] = None
    channel_id: Optional[str] = None
    score: int = Field(0, ge=0, description="Aggregate reaction count")

    user: Optional[User] = None
    reply: Optional["NoteRecord"] = None
    renote: Optional["NoteRecord"] = None


class PackedNote(BaseModel):
    """Client-facing note representation returned by search."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "9kq2x8b0a1",
                "created_at": "2024-01-15T10:30:00.000Z",
                "user_id": "9kq2w1c0zz",
                "user": {"id": "9kq2w1c0zz", "username": "alice", "host": None, "name": "Alice"},
                "text": "Release notes for 1.2",
                "visibility": "public",
                "mentions": [],
                "reactions_count": 3,
            }
        }
    )

    id: str
    created_at: datetime
    user_id: str
    user: Optional[PackedUser] = None
    text: Optional[str] = None
    visibility: Visibility
    mentions: list[str] = Field(default_factory=list)
    visible_user_ids: Optional[list[str]] = None
    reply_id: Optional[str] = None
    renote_id: Optional[str] = None
    channel_id: Optional[str] = None
    reactions_count: int = 0
    reply: Optional["PackedNote"] = None
    renote: Optional["PackedNote"] = None


NoteRecord.model_rebuild()
PackedNote.model_rebuild()


__all__ = ["Visibility", "TIMELINE_VISIBILITIES", "NoteRecord", "PackedNote"]
