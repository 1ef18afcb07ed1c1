"""Pydantic models for data validation and serialization."""

from .auth import JWTPayload
from .note import NoteRecord, PackedNote, Visibility
from .search import NoteSearchRequest, ParsedQuery
from .user import PackedUser, RolePolicies, User

__all__ = [
    "JWTPayload",
    "NoteRecord",
    "PackedNote",
    "Visibility",
    "NoteSearchRequest",
    "ParsedQuery",
    "PackedUser",
    "RolePolicies",
    "User",
]
