"""ScopeStack API error type and its classification for HTTP responses."""

from typing import Any, Optional, Tuple

AUTHENTICATION = "authentication"
VALIDATION = "validation"
GENERIC = "generic"


class ScopeStackAPIError(Exception):
    """Raised for any failed call to the ScopeStack API.

    Carries the HTTP status (None for network-level failures) and the raw
    response body so callers can classify and report the failure.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Any = None,
        operation: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.body = body
        self.operation = operation

    def to_dict(self) -> dict:
        return {
            "message": self.message,
            "status": self.status_code,
            "body": self.body,
            "operation": self.operation,
        }

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"{self.message} (HTTP {self.status_code})"
        return self.message


def classify_scopestack_error(exc: BaseException) -> Tuple[str, int]:
    """Map a failure to (category, HTTP status to return to our caller)."""
    status = getattr(exc, "status_code", None)
    if status in (401, 403):
        return AUTHENTICATION, 401
    if status in (400, 404, 409, 422):
        return VALIDATION, 400
    return GENERIC, 502
