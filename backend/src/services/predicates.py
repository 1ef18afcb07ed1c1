"""Predicate helpers on top of SQLAlchemy Core.

Filters are plain Core boolean expressions (``and_``/``or_`` over column
comparisons and ``IN (SELECT ...)`` sub-queries). They are immutable and only
turned into SQL when the store executes the final statement, so the grouping
of the expression tree is the grouping of the SQL.

Example::

    where = and_(notes.c.user_id == "u1", contains_text(notes.c.text, "50%"))
    # notes.user_id = :user_id_1
    #   AND casefold(notes.text) LIKE '%' || :casefold_1 || '%' ESCAPE '/'
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import ColumnElement, String, func, literal, or_, select

Predicate = ColumnElement[bool]


def contains_text(column: ColumnElement, text: str) -> Predicate:
    """Case-insensitive substring match; ``%`` and ``_`` in ``text`` match literally.

    Both sides go through the ``casefold`` SQL function registered on every
    connection, so non-ASCII letters fold like Python's ``str.casefold``.
    """
    folded = func.casefold(column, type_=String)
    return folded.contains(text.casefold(), autoescape=True)


def array_contains(column: ColumnElement, value: Any) -> Predicate:
    """True when the JSON array stored in ``column`` holds ``value``."""
    items = func.json_each(column).table_valued("value")
    return select(literal(1)).select_from(items).where(items.c.value == value).exists()


def excluding(column: ColumnElement, members: Any, *, nullable: bool) -> Predicate:
    """``column NOT IN members``, keeping rows where a nullable column is NULL."""
    excluded = column.not_in(members)
    if nullable:
        # NULL NOT IN (...) is NULL, which would drop the row.
        return or_(column.is_(None), excluded)
    return excluded


__all__ = ["Predicate", "contains_text", "array_contains", "excluding"]
