"""Service layer for search logic and persistence."""

from .auth import AuthError, AuthService
from .config import AppConfig, get_config, reload_config
from .database import DatabaseService, init_database
from .errors import ApiError, UnavailableError
from .note_entity import NoteEntityService
from .note_search import NoteSearchService
from .note_store import NoteStore
from .query_dsl import parse_search_query
from .query_service import Pagination, QueryService
from .roles import RoleService
from .search_filters import build_search_conditions, followers_of, home_timeline_scope
from .users import UserService

__all__ = [
    "AppConfig",
    "get_config",
    "reload_config",
    "DatabaseService",
    "init_database",
    "AuthService",
    "AuthError",
    "ApiError",
    "UnavailableError",
    "NoteEntityService",
    "NoteSearchService",
    "NoteStore",
    "parse_search_query",
    "Pagination",
    "QueryService",
    "RoleService",
    "build_search_conditions",
    "followers_of",
    "home_timeline_scope",
    "UserService",
]
