"""SQLite schema, engine and id/timestamp helpers for notes, users and the social graph."""

from __future__ import annotations

from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
import itertools
import secrets
import time
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    Integer,
    JSON,
    MetaData,
    String,
    Table,
    Text,
    TypeDecorator,
    create_engine,
    event,
    func,
)
from sqlalchemy import Enum as SQLAEnum
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.pool import NullPool

from ..models.note import Visibility
from .config import DEFAULT_DB_PATH, get_config

_ID_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"
# 2000-01-01T00:00:00Z in milliseconds.
_ID_EPOCH_MS = 946684800000
_ID_SUFFIX_SPACE = 36 ** 4
_id_counter = itertools.count(secrets.randbelow(_ID_SUFFIX_SPACE))


def _base36(value: int, width: int) -> str:
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_ID_ALPHABET[rem])
    return "".join(reversed(digits)).rjust(width, "0")


def gen_id(at: datetime | None = None) -> str:
    """Return an opaque id whose lexical order follows creation time."""
    if at is None:
        millis = int(time.time() * 1000)
    else:
        millis = int(at.timestamp() * 1000)
    millis = max(millis - _ID_EPOCH_MS, 0)
    suffix = next(_id_counter) % _ID_SUFFIX_SPACE
    return _base36(millis, 8) + _base36(suffix, 4)


def to_db_timestamp(value: datetime) -> str:
    """Serialize a datetime as a sortable UTC string with millisecond precision.

    The year is always four digits, so text order is time order across the
    whole calendar.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.replace(tzinfo=None).isoformat(timespec="milliseconds") + "Z"


def from_db_timestamp(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UtcTimestamp(TypeDecorator):
    """Aware datetimes stored as ``YYYY-MM-DDTHH:MM:SS.mmmZ`` text."""

    impl = String(24)
    cache_ok = True

    def process_bind_param(self, value: Optional[datetime], dialect) -> Optional[str]:
        return None if value is None else to_db_timestamp(value)

    def process_result_value(self, value: Optional[str], dialect) -> Optional[datetime]:
        return None if value is None else from_db_timestamp(value)


metadata = MetaData()

users = Table(
    "users",
    metadata,
    Column("id", String, primary_key=True),
    Column("username", String, nullable=False),
    Column("username_lower", String, nullable=False),
    Column("host", String),
    Column("name", String),
    Column("created_at", UtcTimestamp, nullable=False),
)
Index("idx_users_username_lower", users.c.username_lower)
Index(
    "idx_users_username_host",
    users.c.username_lower,
    func.coalesce(users.c.host, ""),
    unique=True,
)

notes = Table(
    "notes",
    metadata,
    Column("id", String, primary_key=True),
    Column("created_at", UtcTimestamp, nullable=False),
    Column("user_id", String, ForeignKey("users.id"), nullable=False),
    Column("text", Text),
    Column(
        "visibility",
        SQLAEnum(
            Visibility,
            name="note_visibility",
            native_enum=False,
            create_constraint=True,
            length=16,
            values_callable=lambda members: [member.value for member in members],
        ),
        nullable=False,
        default=Visibility.PUBLIC,
    ),
    Column("mentions", JSON, nullable=False, default=list),
    Column("visible_user_ids", JSON, nullable=False, default=list),
    Column("reply_id", String, ForeignKey("notes.id")),
    Column("reply_user_id", String),
    Column("renote_id", String, ForeignKey("notes.id")),
    Column("renote_user_id", String),
    Column("channel_id", String),
    Column("score", Integer, nullable=False, default=0),
    CheckConstraint("score >= 0", name="ck_notes_score"),
)
Index("idx_notes_user", notes.c.user_id, notes.c.id.desc())
Index("idx_notes_created", notes.c.created_at)
Index("idx_notes_channel", notes.c.channel_id, notes.c.id.desc())
Index("idx_notes_reply_user", notes.c.reply_user_id)


def _edge_table(name: str, source: str, target: str) -> Table:
    return Table(
        name,
        metadata,
        Column(source, String, ForeignKey("users.id"), primary_key=True),
        Column(target, String, ForeignKey("users.id"), primary_key=True),
        Column("created_at", UtcTimestamp, nullable=False),
    )


following = _edge_table("following", "follower_id", "followee_id")
muting = _edge_table("muting", "muter_id", "mutee_id")
blocking = _edge_table("blocking", "blocker_id", "blockee_id")
Index("idx_following_followee", following.c.followee_id)
Index("idx_blocking_blockee", blocking.c.blockee_id)

user_policies = Table(
    "user_policies",
    metadata,
    Column("user_id", String, ForeignKey("users.id"), primary_key=True),
    Column("can_search_notes", Boolean, nullable=False, default=True),
    Column("updated_at", UtcTimestamp, nullable=False),
)


def _casefold(value: Optional[str]) -> Optional[str]:
    return value.casefold() if value is not None else None


@event.listens_for(Engine, "connect")
def register_sqlite_functions(dbapi_connection, connection_record):
    # SQLite's lower() and LIKE only fold ASCII letters.
    dbapi_connection.create_function("casefold", 1, _casefold, deterministic=True)


@lru_cache(maxsize=32)
def get_engine(db_path: Path) -> Engine:
    """Return the (cached) engine for the SQLite file at ``db_path``."""
    return create_engine(
        f"sqlite:///{db_path}",
        connect_args={"check_same_thread": False},  # Needed for SQLite
        poolclass=NullPool,
    )


class DatabaseService:
    """Manage SQLite connections and schema initialization."""

    def __init__(self, db_path: str | Path | None = None):
        self.db_path = Path(db_path) if db_path else get_config().database_path

    def _ensure_directory(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def engine(self) -> Engine:
        self._ensure_directory()
        return get_engine(self.db_path)

    def connect(self) -> Connection:
        """Return a connection for reads; use it as a context manager."""
        return self.engine.connect()

    def begin(self):
        """Return a context manager yielding a connection inside a transaction."""
        return self.engine.begin()

    def initialize(self) -> Path:
        """Create all schema artifacts required for search."""
        metadata.create_all(self.engine)
        return self.db_path


def init_database(db_path: str | Path | None = None) -> Path:
    """Create the schema at ``db_path`` (or the default location)."""
    return DatabaseService(db_path).initialize()


__all__ = [
    "DatabaseService",
    "init_database",
    "get_engine",
    "metadata",
    "users",
    "notes",
    "following",
    "muting",
    "blocking",
    "user_policies",
    "UtcTimestamp",
    "gen_id",
    "to_db_timestamp",
    "from_db_timestamp",
    "utcnow",
    "DEFAULT_DB_PATH",
]
