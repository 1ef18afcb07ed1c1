"""Reusable note query fragments: cursor pagination and access filters."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from sqlalchemy import Select, and_, or_, select, true

from ..models.note import TIMELINE_VISIBILITIES, Visibility
from ..models.user import User
from .database import blocking, following, muting, notes
from .predicates import Predicate, array_contains, excluding

ASC = "ASC"
DESC = "DESC"


@dataclass(frozen=True)
class Pagination:
    """ID window and sort direction for a paginated note query."""

    where: Predicate
    order: str = DESC


def _following_of(user_id: str) -> Select:
    return select(following.c.followee_id).where(following.c.follower_id == user_id)


def _muted_by(user_id: str) -> Select:
    return select(muting.c.mutee_id).where(muting.c.muter_id == user_id)


def _blocking(user_id: str) -> Select:
    return select(blocking.c.blocker_id).where(blocking.c.blockee_id == user_id)


def _exclude_involved(members: Select) -> Predicate:
    return and_(
        excluding(notes.c.user_id, members, nullable=False),
        excluding(notes.c.reply_user_id, members, nullable=True),
        excluding(notes.c.renote_user_id, members, nullable=True),
    )


class QueryService:
    """Build pagination and visibility/mute/block predicates for notes."""

    def make_pagination(
        self, since_id: Optional[str], until_id: Optional[str]
    ) -> Pagination:
        """Window by opaque, time-ordered ids.

        Only ``since_id`` walks forward (oldest first); every other case is
        newest first.
        """
        if since_id and until_id:
            return Pagination(and_(notes.c.id > since_id, notes.c.id < until_id), DESC)
        if since_id:
            return Pagination(notes.c.id > since_id, ASC)
        if until_id:
            return Pagination(notes.c.id < until_id, DESC)
        return Pagination(true(), DESC)

    def visibility_predicate(self, me: Optional[User]) -> Predicate:
        """Notes the caller is allowed to see."""
        timeline = notes.c.visibility.in_(TIMELINE_VISIBILITIES)
        if me is None:
            return timeline
        return or_(
            timeline,
            notes.c.user_id == me.id,
            array_contains(notes.c.visible_user_ids, me.id),
            array_contains(notes.c.mentions, me.id),
            and_(
                notes.c.visibility == Visibility.FOLLOWERS,
                or_(
                    notes.c.user_id.in_(_following_of(me.id)),
                    notes.c.reply_user_id == me.id,
                ),
            ),
        )

    def muted_user_predicate(self, me: User) -> Predicate:
        """Drop notes written, replied to or renoted from users ``me`` muted."""
        return _exclude_involved(_muted_by(me.id))

    def blocked_user_predicate(self, me: User) -> Predicate:
        """Drop notes involving users that block ``me``."""
        return _exclude_involved(_blocking(me.id))


__all__ = ["QueryService", "Pagination", "ASC", "DESC"]
