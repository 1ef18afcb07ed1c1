"""API-facing domain errors."""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import status


class ApiError(Exception):
    """Error surfaced to clients with a stable error code and id."""

    def __init__(
        self,
        error: str,
        message: str,
        *,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        detail: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.error = error
        self.message = message
        self.status_code = status_code
        self.detail = detail or {}


class UnavailableError(ApiError):
    """Raised when the caller's policies do not allow note search."""

    ERROR_ID = "0b44998d-77aa-4427-80d0-d2c9b8523011"

    def __init__(self) -> None:
        super().__init__(
            "UNAVAILABLE",
            "Search of notes unavailable.",
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"id": self.ERROR_ID},
        )


__all__ = ["ApiError", "UnavailableError"]
