"""Translate parsed search directives into note predicates."""

from __future__ import annotations

from datetime import MINYEAR, date, datetime, time, timezone, tzinfo
from typing import List, NamedTuple, Optional

from sqlalchemy import Select, and_, or_, select

from ..models.note import TIMELINE_VISIBILITIES
from ..models.search import ParsedQuery
from ..models.user import User
from .database import following, notes
from .predicates import Predicate, array_contains, contains_text

END_OF_DAY = time(23, 59, 59, 999000)


class SearchCondition(NamedTuple):
    """A top-level AND clause and the filter it came from."""

    name: str
    predicate: Predicate


def _as_utc(moment: datetime) -> datetime:
    try:
        return moment.astimezone(timezone.utc)
    except OverflowError:
        # Shifted past either end of the calendar; clamp to that end.
        edge = datetime.min if moment.year == MINYEAR else datetime.max
        return edge.replace(tzinfo=timezone.utc)


def start_of_day(day: date, tz: tzinfo) -> datetime:
    """First millisecond of ``day`` in ``tz``, as a UTC datetime."""
    return _as_utc(datetime.combine(day, time.min, tzinfo=tz))


def end_of_day(day: date, tz: tzinfo) -> datetime:
    """Last millisecond of ``day`` in ``tz``, as a UTC datetime."""
    return _as_utc(datetime.combine(day, END_OF_DAY, tzinfo=tz))


def followers_of(target_id: str) -> Select:
    """Ids of every user that follows ``target_id``."""
    return select(following.c.follower_id).where(following.c.followee_id == target_id)


def home_timeline_scope(target_id: str) -> Predicate:
    """Notes that would show up around ``target_id`` on a home timeline.

    Matches notes written by the target, notes mentioning the target, and
    home/public notes that are either written by one of the target's
    followers or replies to the target.
    """
    return or_(
        notes.c.user_id == target_id,
        array_contains(notes.c.mentions, target_id),
        and_(
            notes.c.visibility.in_(TIMELINE_VISIBILITIES),
            or_(
                notes.c.user_id.in_(followers_of(target_id)),
                notes.c.reply_user_id == target_id,
            ),
        ),
    )


def build_search_conditions(
    parsed: ParsedQuery,
    *,
    author: Optional[User],
    home_target: Optional[User],
    user_id: Optional[str],
    channel_id: Optional[str],
    tz: tzinfo,
) -> List[SearchCondition]:
    """Return the directive clauses to AND together, in application order."""
    conditions: List[SearchCondition] = []

    if author is not None:
        conditions.append(SearchCondition("from", notes.c.user_id == author.id))

    if parsed.has_start_date:
        conditions.append(
            SearchCondition("start", notes.c.created_at >= start_of_day(parsed.start_date, tz))
        )
    if parsed.has_end_date:
        conditions.append(
            SearchCondition("end", notes.c.created_at <= end_of_day(parsed.end_date, tz))
        )

    if parsed.has_min_reactions:
        conditions.append(
            SearchCondition("reactions", notes.c.score >= parsed.min_reactions)
        )

    if home_target is not None:
        conditions.append(SearchCondition("home", home_timeline_scope(home_target.id)))

    # user_id and from: may both apply; channel_id only without user_id.
    if user_id:
        conditions.append(SearchCondition("user_id", notes.c.user_id == user_id))
    elif channel_id:
        conditions.append(SearchCondition("channel_id", notes.c.channel_id == channel_id))

    conditions.append(SearchCondition("text", contains_text(notes.c.text, parsed.free_text)))
    return conditions


__all__ = [
    "SearchCondition",
    "build_search_conditions",
    "followers_of",
    "home_timeline_scope",
    "start_of_day",
    "end_of_day",
]
