"""SQLite persistence for notes and one-shot execution of note queries."""

from __future__ import annotations

from datetime import datetime
import logging
from typing import Any, List, Mapping, Optional, Sequence

from sqlalchemy import Connection, Table, insert, select

from ..models.note import NoteRecord, Visibility
from ..models.user import User
from .database import (
    DatabaseService,
    from_db_timestamp,
    gen_id,
    notes,
    to_db_timestamp,
    users,
    utcnow,
)
from .predicates import Predicate
from .query_service import ASC, DESC, Pagination

logger = logging.getLogger(__name__)

# Related rows fetched alongside each note for hydration; never used as filters.
author = users.alias("author")
reply = notes.alias("reply")
reply_user = users.alias("reply_user")
renote = notes.alias("renote")
renote_user = users.alias("renote_user")

EAGER_FROM = (
    notes.join(author, author.c.id == notes.c.user_id)
    .outerjoin(reply, reply.c.id == notes.c.reply_id)
    .outerjoin(reply_user, reply_user.c.id == reply.c.user_id)
    .outerjoin(renote, renote.c.id == notes.c.renote_id)
    .outerjoin(renote_user, renote_user.c.id == renote.c.user_id)
)

_SELECTED: tuple[tuple[str, Table], ...] = (
    ("note", notes),
    ("author", author),
    ("reply", reply),
    ("reply_user", reply_user),
    ("renote", renote),
    ("renote_user", renote_user),
)


def _select_list() -> list:
    return [
        column.label(f"{prefix}__{column.name}")
        for prefix, table in _SELECTED
        for column in table.c
    ]


def _prefixed(row: Mapping[str, Any], prefix: str) -> Optional[dict]:
    values = {
        key.split("__", 1)[1]: value
        for key, value in row.items()
        if key.startswith(prefix + "__")
    }
    if values.get("id") is None:
        return None
    return values


def _user_from(values: Optional[dict]) -> Optional[User]:
    return User(**values) if values is not None else None


def _related(row: Mapping[str, Any], prefix: str, user_prefix: str) -> Optional[NoteRecord]:
    values = _prefixed(row, prefix)
    if values is None:
        return None
    return NoteRecord(**values, user=_user_from(_prefixed(row, user_prefix)))


def row_to_note(row: Mapping[str, Any]) -> NoteRecord:
    """Build a NoteRecord (with author, reply and renote) from a joined row."""
    return NoteRecord(
        **_prefixed(row, "note"),
        user=_user_from(_prefixed(row, "author")),
        reply=_related(row, "reply", "reply_user"),
        renote=_related(row, "renote", "renote_user"),
    )


class NoteStore:
    """Insert notes and run note queries."""

    def __init__(self, db_service: DatabaseService | None = None) -> None:
        self.db_service = db_service or DatabaseService()

    def create_note(
        self,
        user_id: str,
        text: Optional[str],
        *,
        visibility: Visibility = Visibility.PUBLIC,
        mentions: Sequence[str] = (),
        visible_user_ids: Sequence[str] = (),
        reply_id: Optional[str] = None,
        renote_id: Optional[str] = None,
        channel_id: Optional[str] = None,
        score: int = 0,
        created_at: Optional[datetime] = None,
        note_id: Optional[str] = None,
    ) -> NoteRecord:
        """Insert a note; reply/renote author ids are copied from the targets."""
        if score < 0:
            raise ValueError("Note score cannot be negative")
        # Stored with millisecond precision.
        created = from_db_timestamp(to_db_timestamp(created_at or utcnow()))

        with self.db_service.begin() as conn:
            record = NoteRecord(
                id=note_id or gen_id(created),
                created_at=created,
                user_id=user_id,
                text=text,
                visibility=Visibility(visibility),
                mentions=list(mentions),
                visible_user_ids=list(visible_user_ids),
                reply_id=reply_id,
                reply_user_id=self._author_of(conn, reply_id),
                renote_id=renote_id,
                renote_user_id=self._author_of(conn, renote_id),
                channel_id=channel_id,
                score=score,
            )
            conn.execute(
                insert(notes).values(record.model_dump(exclude={"user", "reply", "renote"}))
            )

        return record

    def find_many(
        self, where: Predicate, pagination: Pagination, limit: int
    ) -> List[NoteRecord]:
        """Run one SELECT for ``where`` inside the pagination window."""
        if pagination.order not in (ASC, DESC):
            raise ValueError(f"Invalid sort order: {pagination.order!r}")

        order = notes.c.id.asc() if pagination.order == ASC else notes.c.id.desc()
        stmt = (
            select(*_select_list())
            .select_from(EAGER_FROM)
            .where(where, pagination.where)
            .order_by(order)
            .limit(int(limit))
        )
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Executing note query", extra={"sql": str(stmt)})

        with self.db_service.connect() as conn:
            rows = conn.execute(stmt).mappings().all()

        return [row_to_note(row) for row in rows]

    @staticmethod
    def _author_of(conn: Connection, note_id: Optional[str]) -> Optional[str]:
        if note_id is None:
            return None
        author_id = conn.execute(
            select(notes.c.user_id).where(notes.c.id == note_id)
        ).scalar_one_or_none()
        if author_id is None:
            raise ValueError(f"Referenced note does not exist: {note_id}")
        return author_id


__all__ = ["NoteStore", "row_to_note", "EAGER_FROM"]
