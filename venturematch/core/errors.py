"""
Service error classification.

Services raise these when the caller needs a specific HTTP status; the
application renders them as {"success": false, "error": message}.
Plain ValueError / PermissionError / LookupError are still used for
validation, ownership and missing-row failures and mapped by the routers.
"""

from typing import Optional, Dict, Any


class ServiceError(Exception):
    """
    Base exception for user-facing service failures.

    Attributes:
        message: Human-readable error description
        status_code: HTTP status the API should answer with
        details: Extra context returned to the client
    """

    status_code = 500

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to the response envelope."""
        body: Dict[str, Any] = {"success": False, "error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ConflictError(ServiceError):
    """Unique-violation surfaced to the user (duplicate email, firm, saved match)."""

    status_code = 409


def is_unique_violation(exc: Exception) -> bool:
    """
    Check whether a database error is a unique-constraint violation.

    Works for PostgreSQL (SQLSTATE 23505) and SQLite messages.
    """
    orig = getattr(exc, "orig", None)
    if getattr(orig, "pgcode", None) == "23505" or getattr(orig, "sqlstate", None) == "23505":
        return True
    text = str(orig if orig is not None else exc).lower()
    return "unique" in text or "duplicate key" in text
