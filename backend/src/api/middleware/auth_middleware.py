"""Authentication dependency helpers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated, Optional

from fastapi import Header, HTTPException, status

from ...models.auth import JWTPayload
from ...services.auth import AuthError, AuthService


def _unauthorized(message: str, error: str = "unauthorized") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": error, "message": message},
    )


@dataclass
class AuthContext:
    """Context extracted from a bearer token."""

    user_id: str
    token: str
    payload: JWTPayload


def get_auth_service() -> AuthService:
    return AuthService()


def parse_authorization(authorization: str, auth_service: AuthService) -> AuthContext:
    """Validate a ``Bearer <token>`` header value."""
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise _unauthorized("Authorization header must be in format: Bearer <token>")

    try:
        payload = auth_service.validate_jwt(token)
    except AuthError as exc:
        raise HTTPException(
            status_code=exc.status_code,
            detail={"error": exc.error, "message": exc.message, "detail": exc.detail},
        ) from exc

    return AuthContext(user_id=payload.sub, token=token, payload=payload)


def get_optional_auth_context(
    authorization: Annotated[Optional[str], Header(alias="Authorization")] = None,
) -> Optional[AuthContext]:
    """
    Return the caller's auth context, or None for anonymous requests.

    A header that is present but invalid still fails with 401.
    """
    if not authorization:
        return None
    return parse_authorization(authorization, get_auth_service())


__all__ = ["AuthContext", "get_optional_auth_context", "parse_authorization", "get_auth_service"]
