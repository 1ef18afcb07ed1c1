"""Serialize note records into their client-facing representation."""

from __future__ import annotations

from typing import Iterable, List, Optional

from ..models.note import NoteRecord, PackedNote, Visibility
from ..models.user import PackedUser, User


def pack_user(user: Optional[User]) -> Optional[PackedUser]:
    if user is None:
        return None
    return PackedUser(id=user.id, username=user.username, host=user.host, name=user.name)


class NoteEntityService:
    """Hydrate notes (with author, reply and renote) for a given viewer."""

    def pack(self, note: NoteRecord, me: Optional[User], *, detail: bool = True) -> PackedNote:
        """Pack one note; nested reply/renote are packed one level deep."""
        visible_user_ids = None
        # Only the author gets to see who a direct note was addressed to.
        if note.visibility == Visibility.SPECIFIED and me is not None and me.id == note.user_id:
            visible_user_ids = list(note.visible_user_ids)

        return PackedNote(
            id=note.id,
            created_at=note.created_at,
            user_id=note.user_id,
            user=pack_user(note.user),
            text=note.text,
            visibility=note.visibility,
            mentions=list(note.mentions),
            visible_user_ids=visible_user_ids,
            reply_id=note.reply_id,
            renote_id=note.renote_id,
            channel_id=note.channel_id,
            reactions_count=note.score,
            reply=self.pack(note.reply, me, detail=False) if detail and note.reply else None,
            renote=self.pack(note.renote, me, detail=False) if detail and note.renote else None,
        )

    def pack_many(self, notes: Iterable[NoteRecord], me: Optional[User]) -> List[PackedNote]:
        return [self.pack(note, me) for note in notes]


__all__ = ["NoteEntityService", "pack_user"]
