"""FastAPI middleware for authentication and error handling."""

from .auth_middleware import (
    AuthContext,
    get_auth_service,
    get_optional_auth_context,
    parse_authorization,
)
from .error_handlers import (
    api_error_handler,
    auth_error_handler,
    http_exception_handler,
    internal_exception_handler,
    register_error_handlers,
    validation_exception_handler,
)

__all__ = [
    "AuthContext",
    "get_auth_service",
    "get_optional_auth_context",
    "parse_authorization",
    "register_error_handlers",
    "validation_exception_handler",
    "http_exception_handler",
    "api_error_handler",
    "auth_error_handler",
    "internal_exception_handler",
]
