"""Search request models and the parsed search-query value object."""

from __future__ import annotations

import math
from datetime import date
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

MIN_LIMIT = 1
MAX_LIMIT = 100
DEFAULT_LIMIT = 10


class NoteSearchRequest(BaseModel):
    """Body of a note search call."""

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "query": "release notes from:alice start:2024-01-01 reactions:5",
                "untilId": "9kq2x8b0a1",
                "limit": 20,
            }
        },
    )

    query: str = Field(..., description="Search text with optional directives")
    since_id: Optional[str] = Field(None, alias="sinceId")
    until_id: Optional[str] = Field(None, alias="untilId")
    limit: int = Field(DEFAULT_LIMIT, description="Max results, clamped to 1..100")
    offset: int = Field(0, description="Accepted for compatibility; not used")
    host: Optional[str] = Field(
        None, description="The local host is represented with `null`."
    )
    user_id: Optional[str] = Field(None, alias="userId")
    channel_id: Optional[str] = Field(None, alias="channelId")

    @field_validator("limit", mode="before")
    @classmethod
    def _clamp_limit(cls, value: Any) -> int:
        if value is None:
            return DEFAULT_LIMIT
        if isinstance(value, bool):
            raise ValueError("limit must be an integer")
        limit = int(value)
        return max(MIN_LIMIT, min(limit, MAX_LIMIT))


class ParsedQuery(BaseModel):
    """Directives and residual free text extracted from a raw search string.

    Each directive keeps its raw optional value; the ``has_*`` properties are
    the only place that decides whether a value turns into a filter.
    """

    model_config = ConfigDict(frozen=True)

    free_text: str = ""
    author_name: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    min_reactions: Optional[float] = None
    home_target_name: Optional[str] = None

    @property
    def has_author(self) -> bool:
        return bool(self.author_name)

    @property
    def has_start_date(self) -> bool:
        return self.start_date is not None

    @property
    def has_end_date(self) -> bool:
        return self.end_date is not None

    @property
    def has_min_reactions(self) -> bool:
        # Zero and NaN both mean "no threshold".
        if self.min_reactions is None or math.isnan(self.min_reactions):
            return False
        return self.min_reactions != 0

    @property
    def has_home_target(self) -> bool:
        return bool(self.home_target_name)


__all__ = [
    "NoteSearchRequest",
    "ParsedQuery",
    "MIN_LIMIT",
    "MAX_LIMIT",
    "DEFAULT_LIMIT",
]
