"""
Error taxonomy shared by adapters, the exchange broker and the API layer.

Every error carries the HTTP status it maps to, so the request boundary
never has to inspect message text.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class ServiceError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = 500
    error: str = "Internal server error"

    def __init__(
        self,
        message: str,
        *,
        error: Optional[str] = None,
        details: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        if error is not None:
            self.error = error
        self.details = details

    def http_status(self) -> int:
        return self.status_code

    def to_body(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.error}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(ServiceError):
    """Missing or invalid request field."""

    status_code = 400

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("error", message)
        super().__init__(message, **kwargs)


class AuthError(ServiceError):
    status_code = 401
    error = "Authentication token required"


class NotFoundError(ServiceError):
    status_code = 404

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("error", message)
        super().__init__(message, **kwargs)


class RateLimitError(ServiceError):
    status_code = 429
    error = "Rate limit exceeded"

    def __init__(self, message: str = "Rate limit exceeded", *, retry_after: int = 60) -> None:
        super().__init__(message)
        self.retry_after = retry_after

    def to_body(self) -> Dict[str, Any]:
        return {"error": self.error, "retry_after": self.retry_after}


class UpstreamError(ServiceError):
    """
    A vendor API answered with a non-2xx status (or could not be reached).

    ``status_code`` here is the *vendor's* status; ``http_status()`` is
    what the caller sees: 401/403 pass through (unless ``auth_passthrough``
    is off), everything else is 500.
    """

    error = "Upstream service error"

    def __init__(
        self,
        message: str,
        *,
        service: str,
        status_code: Optional[int] = None,
        body: str = "",
        error: Optional[str] = None,
        auth_passthrough: bool = True,
    ) -> None:
        super().__init__(message, error=error, details=message)
        self.service = service
        self.vendor_status = status_code
        self.body = body
        self.auth_passthrough = auth_passthrough

    def is_auth_failure(self) -> bool:
        return self.auth_passthrough and self.vendor_status in (401, 403)

    def http_status(self) -> int:
        if self.is_auth_failure():
            return self.vendor_status
        return 500

    def to_body(self) -> Dict[str, Any]:
        if self.is_auth_failure():
            return {"error": "Invalid or expired token"}
        return super().to_body()
