"""Tokenizer for the search mini-language.

A raw query such as ``"release from:alice start:2024-01-01 reactions:5"`` is
split on single spaces. Tokens starting with a directive keyword become
structured filters; everything else is free text.
"""

from __future__ import annotations

from datetime import date, datetime
import logging
import math
import re
from typing import Callable, Dict, Optional, Tuple

from ..models.search import ParsedQuery

logger = logging.getLogger(__name__)

START = "start:"
END = "end:"
FROM = "from:"
REACTIONS = "reactions:"
HOME = "home:"

# Checked in this order; the first matching prefix claims the token.
DIRECTIVE_PRIORITY: Tuple[str, ...] = (START, END, FROM, REACTIONS, HOME)

_DECIMAL_NUMBER = re.compile(r"[+-]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)", re.ASCII)
_RADIX_NUMBER = re.compile(r"0(?:[xX][0-9a-fA-F]+|[oO][0-7]+|[bB][01]+)", re.ASCII)


def parse_directive_date(value: str) -> Optional[date]:
    """Parse a ``start:``/``end:`` value into a calendar date.

    Accepts ``YYYY-MM-DD`` and full ISO timestamps (whose date part is used).
    Returns None when the value cannot be parsed.
    """
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def parse_directive_number(value: str) -> float:
    """Parse a ``reactions:`` value; anything non-numeric becomes NaN.

    Accepts the numeric spellings of a JavaScript ``Number()`` conversion:
    decimals with optional exponent, signed ``Infinity``, and unsigned
    ``0x``/``0o``/``0b`` integers. An empty value is zero.
    """
    stripped = value.strip()
    if not stripped:
        return 0.0
    if _RADIX_NUMBER.fullmatch(stripped):
        try:
            return float(int(stripped, 0))
        except OverflowError:
            return math.inf
    if _DECIMAL_NUMBER.fullmatch(stripped):
        return float(stripped.replace("Infinity", "inf"))
    return math.nan


def _date_value(keyword: str) -> Callable[[str], Optional[date]]:
    def convert(value: str) -> Optional[date]:
        parsed = parse_directive_date(value)
        if parsed is None and value:
            logger.debug(
                "Ignoring unparseable date directive",
                extra={"directive": keyword, "value": value},
            )
        return parsed

    return convert


def _number_value(value: str) -> Optional[float]:
    parsed = parse_directive_number(value)
    if math.isnan(parsed):
        logger.debug(
            "Ignoring non-numeric reactions directive",
            extra={"directive": REACTIONS, "value": value},
        )
        return None
    return parsed


_FIELDS: Dict[str, Tuple[str, Callable[[str], object]]] = {
    START: ("start_date", _date_value(START)),
    END: ("end_date", _date_value(END)),
    FROM: ("author_name", str),
    REACTIONS: ("min_reactions", _number_value),
    HOME: ("home_target_name", str),
}


def match_directive(token: str) -> Optional[Tuple[str, str]]:
    """Return ``(keyword, value)`` for a directive token, else None."""
    for keyword in DIRECTIVE_PRIORITY:
        if token.startswith(keyword):
            return keyword, token[len(keyword):]
    return None


def parse_search_query(raw_query: str) -> ParsedQuery:
    """Split ``raw_query`` into directives and residual free text.

    Repeated directives overwrite earlier ones. Plain tokens are rejoined with
    single spaces, so a query without directives comes back trimmed but
    otherwise verbatim.
    """
    values: Dict[str, object] = {}
    words = []

    for token in raw_query.split(" "):
        matched = match_directive(token)
        if matched is None:
            words.append(token)
            continue
        keyword, raw_value = matched
        field_name, convert = _FIELDS[keyword]
        values[field_name] = convert(raw_value)

    free_text = " ".join(words).strip()
    return ParsedQuery(free_text=free_text, **values)


__all__ = [
    "DIRECTIVE_PRIORITY",
    "START",
    "END",
    "FROM",
    "REACTIONS",
    "HOME",
    "match_directive",
    "parse_directive_date",
    "parse_directive_number",
    "parse_search_query",
]
