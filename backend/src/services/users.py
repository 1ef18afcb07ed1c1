"""User accounts and social graph edges (follow, mute, block)."""

from __future__ import annotations

from datetime import datetime
import logging
from typing import Any, Mapping, Optional

from sqlalchemy import Table, insert, select

from ..models.user import User
from .database import DatabaseService, blocking, following, gen_id, muting, users, utcnow

logger = logging.getLogger(__name__)


def _row_to_user(row: Mapping[str, Any]) -> User:
    return User(**row)


class UserService:
    """Read and write ``users`` plus the following/muting/blocking tables."""

    def __init__(self, db_service: DatabaseService | None = None) -> None:
        self.db_service = db_service or DatabaseService()

    def create_user(
        self,
        username: str,
        *,
        host: Optional[str] = None,
        name: Optional[str] = None,
        user_id: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> User:
        """Insert a user and return it."""
        created = created_at or utcnow()
        user = User(
            id=user_id or gen_id(created),
            username=username,
            username_lower=username.lower(),
            host=host,
            name=name,
            created_at=created,
        )
        with self.db_service.begin() as conn:
            conn.execute(insert(users).values(user.model_dump()))

        logger.info("User created", extra={"user_id": user.id, "username": user.username})
        return user

    def get_user(self, user_id: str) -> Optional[User]:
        with self.db_service.connect() as conn:
            row = conn.execute(select(users).where(users.c.id == user_id)).mappings().first()
        return _row_to_user(row) if row else None

    def find_by_username(self, name: str) -> Optional[User]:
        """Look up a user by case-insensitive username.

        Local accounts win over remote ones sharing the same name.
        """
        stmt = (
            select(users)
            .where(users.c.username_lower == name.lower())
            .order_by(users.c.host.is_not(None), users.c.id.asc())
            .limit(1)
        )
        with self.db_service.connect() as conn:
            row = conn.execute(stmt).mappings().first()
        return _row_to_user(row) if row else None

    def follow(self, follower_id: str, followee_id: str) -> None:
        self._insert_edge(following, follower_id, followee_id)

    def mute(self, muter_id: str, mutee_id: str) -> None:
        self._insert_edge(muting, muter_id, mutee_id)

    def block(self, blocker_id: str, blockee_id: str) -> None:
        self._insert_edge(blocking, blocker_id, blockee_id)

    def _insert_edge(self, table: Table, source_id: str, target_id: str) -> None:
        if source_id == target_id:
            raise ValueError(f"Cannot create a {table.name} edge from a user to itself")
        source_col, target_col, _ = (column.name for column in table.c)
        stmt = (
            insert(table)
            .values({source_col: source_id, target_col: target_id, "created_at": utcnow()})
            .prefix_with("OR IGNORE")
        )
        with self.db_service.begin() as conn:
            conn.execute(stmt)


__all__ = ["UserService"]
