"""HTTP API routes for note search."""

from __future__ import annotations

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, status

from ...models.note import PackedNote
from ...models.search import NoteSearchRequest
from ...models.user import User
from ...services.note_search import NoteSearchService
from ...services.users import UserService
from ..middleware import AuthContext, get_optional_auth_context

router = APIRouter()


def get_user_service() -> UserService:
    return UserService()


def get_note_search_service() -> NoteSearchService:
    return NoteSearchService()


def get_current_user(
    auth: Annotated[Optional[AuthContext], Depends(get_optional_auth_context)],
    users: Annotated[UserService, Depends(get_user_service)],
) -> Optional[User]:
    """Resolve the authenticated caller, or None when anonymous."""
    if auth is None:
        return None
    user = users.get_user(auth.user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "unknown_user", "message": "Token subject does not exist"},
        )
    return user


@router.post("/api/notes/search", response_model=list[PackedNote])
async def search_notes(
    request: NoteSearchRequest,
    me: Annotated[Optional[User], Depends(get_current_user)],
    search_service: Annotated[NoteSearchService, Depends(get_note_search_service)],
) -> list[PackedNote]:
    """Search notes; the query may embed from:/start:/end:/reactions:/home: directives."""
    return search_service.search(request, me)


__all__ = ["router", "get_current_user", "get_note_search_service", "get_user_service"]
