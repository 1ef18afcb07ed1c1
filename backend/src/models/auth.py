"""Authentication models."""

from __future__ import annotations

from pydantic import BaseModel, Field


class JWTPayload(BaseModel):
    """Bearer token claims identifying the calling user."""

    sub: str = Field(..., description="Subject (user id of the caller)")
    iat: int = Field(..., description="Issued at timestamp")
    exp: int = Field(..., description="Expiration timestamp")


__all__ = ["JWTPayload"]
