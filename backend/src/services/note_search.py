"""Note search: directive parsing, filter assembly and execution."""

from __future__ import annotations

import logging
import time
from datetime import tzinfo
from typing import List, Optional

from sqlalchemy import and_

from ..models.note import PackedNote
from ..models.search import NoteSearchRequest, ParsedQuery
from ..models.user import User
from .config import AppConfig, get_config
from .database import DatabaseService
from .errors import UnavailableError
from .note_entity import NoteEntityService
from .note_store import NoteStore
from .predicates import Predicate
from .query_dsl import parse_search_query
from .query_service import QueryService
from .roles import RoleService
from .search_filters import SearchCondition, build_search_conditions
from .users import UserService

logger = logging.getLogger(__name__)


class NoteSearchService:
    """Run a note search for a (possibly anonymous) caller."""

    def __init__(
        self,
        *,
        roles: RoleService | None = None,
        users: UserService | None = None,
        queries: QueryService | None = None,
        notes: NoteStore | None = None,
        entities: NoteEntityService | None = None,
        config: AppConfig | None = None,
    ) -> None:
        self.config = config or get_config()
        db_service = DatabaseService(self.config.database_path)
        self.roles = roles or RoleService(db_service, self.config)
        self.users = users or UserService(db_service)
        self.queries = queries or QueryService()
        self.notes = notes or NoteStore(db_service)
        self.entities = entities or NoteEntityService()

    @property
    def tz(self) -> tzinfo:
        return self.config.tzinfo

    def _resolve(self, name: Optional[str]) -> Optional[User]:
        """Look up a directive username; unknown names are ignored."""
        if not name:
            return None
        user = self.users.find_by_username(name)
        if user is None:
            logger.debug("Search directive names an unknown user", extra={"username": name})
        return user

    def build_where(
        self, request: NoteSearchRequest, parsed: ParsedQuery, me: Optional[User]
    ) -> tuple[Predicate, List[SearchCondition]]:
        """Assemble the full WHERE tree (directives, then access filters)."""
        conditions = build_search_conditions(
            parsed,
            author=self._resolve(parsed.author_name) if parsed.has_author else None,
            home_target=self._resolve(parsed.home_target_name) if parsed.has_home_target else None,
            user_id=request.user_id,
            channel_id=request.channel_id,
            tz=self.tz,
        )

        conditions.append(SearchCondition("visibility", self.queries.visibility_predicate(me)))
        if me is not None:
            conditions.append(SearchCondition("muted", self.queries.muted_user_predicate(me)))
            conditions.append(SearchCondition("blocked", self.queries.blocked_user_predicate(me)))

        return and_(*(condition.predicate for condition in conditions)), conditions

    def search(self, request: NoteSearchRequest, me: Optional[User]) -> List[PackedNote]:
        """Search notes visible to ``me`` matching ``request.query``.

        Raises:
            UnavailableError: when the caller's policies forbid note search.
        """
        start_time = time.time()

        policies = self.roles.get_user_policies(me.id if me else None)
        if not policies.can_search_notes:
            logger.info(
                "Note search denied by policy",
                extra={"user_id": me.id if me else None},
            )
            raise UnavailableError()

        pagination = self.queries.make_pagination(request.since_id, request.until_id)
        parsed = parse_search_query(request.query)
        where, conditions = self.build_where(request, parsed, me)

        notes = self.notes.find_many(where, pagination, request.limit)
        packed = self.entities.pack_many(notes, me)

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            "Note search completed",
            extra={
                "user_id": me.id if me else None,
                "filters": [condition.name for condition in conditions],
                "result_count": len(packed),
                "duration_ms": f"{duration_ms:.2f}",
            },
        )
        return packed


__all__ = ["NoteSearchService"]
