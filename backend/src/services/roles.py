"""Role policy lookup (which capabilities a caller has)."""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.dialects.sqlite import insert

from ..models.user import RolePolicies
from .config import AppConfig, get_config
from .database import DatabaseService, user_policies, utcnow

logger = logging.getLogger(__name__)


class RoleService:
    """Resolve policies from configured defaults and per-user overrides."""

    def __init__(
        self,
        db_service: DatabaseService | None = None,
        config: AppConfig | None = None,
    ) -> None:
        self.db_service = db_service or DatabaseService()
        self.config = config or get_config()

    def get_user_policies(self, user_id: Optional[str]) -> RolePolicies:
        """Return the policies for ``user_id``; None means an anonymous caller."""
        if user_id is None:
            return RolePolicies(can_search_notes=self.config.anonymous_can_search_notes)

        stmt = select(user_policies.c.can_search_notes).where(user_policies.c.user_id == user_id)
        with self.db_service.connect() as conn:
            can_search = conn.execute(stmt).scalar_one_or_none()

        if can_search is None:
            return RolePolicies(can_search_notes=self.config.can_search_notes)
        return RolePolicies(can_search_notes=can_search)

    def set_user_policies(self, user_id: str, *, can_search_notes: bool) -> RolePolicies:
        """Store a per-user override."""
        stmt = insert(user_policies).values(
            user_id=user_id, can_search_notes=can_search_notes, updated_at=utcnow()
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[user_policies.c.user_id],
            set_={
                "can_search_notes": stmt.excluded.can_search_notes,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        with self.db_service.begin() as conn:
            conn.execute(stmt)

        logger.info(
            "Updated role policies",
            extra={"user_id": user_id, "can_search_notes": can_search_notes},
        )
        return RolePolicies(can_search_notes=can_search_notes)


__all__ = ["RoleService"]
