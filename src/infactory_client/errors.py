"""
Error hierarchy for infactory_client.

Every error carries a stable ``status`` and ``code`` so callers can branch
without matching on message text.
"""
from typing import Any, Dict, Optional


class InfactoryAPIError(Exception):
    """Base exception for all Infactory API errors."""

    def __init__(
        self,
        status: int,
        code: str,
        message: str,
        request_id: Optional[str] = None,
        details: Any = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.code = code
        self.message = message
        self.request_id = request_id
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to a plain dict for serialization."""
        return {
            "name": type(self).__name__,
            "status": self.status,
            "code": self.code,
            "message": self.message,
            "request_id": self.request_id,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(status={self.status!r}, code={self.code!r}, "
            f"message={self.message!r}, request_id={self.request_id!r})"
        )


class _FixedStatusError(InfactoryAPIError):
    status_code: int = 500
    error_code: str = "api_error"

    def __init__(
        self,
        message: str,
        request_id: Optional[str] = None,
        details: Any = None,
    ) -> None:
        super().__init__(self.status_code, self.error_code, message, request_id, details)


class ValidationError(_FixedStatusError):
    """Raised when a request is invalid (400), including call-site argument errors."""

    status_code = 400
    error_code = "validation_error"


class AuthenticationError(_FixedStatusError):
    """Raised when authentication fails (401)."""

    status_code = 401
    error_code = "authentication_error"


class PermissionDeniedError(_FixedStatusError):
    """Raised when the caller lacks permission for an action (403)."""

    status_code = 403
    error_code = "permission_denied"


class NotFoundError(_FixedStatusError):
    """Raised when a resource is not found (404)."""

    status_code = 404
    error_code = "not_found"


class ConflictError(_FixedStatusError):
    """Raised when a request conflicts with the current state (409)."""

    status_code = 409
    error_code = "conflict"


class RateLimitError(_FixedStatusError):
    """Raised when the API rate limit is exceeded (429)."""

    status_code = 429
    error_code = "rate_limit_exceeded"


class ServerError(InfactoryAPIError):
    """Raised for unexpected server failures (5xx)."""

    def __init__(
        self,
        message: str,
        request_id: Optional[str] = None,
        details: Any = None,
        status: int = 500,
        code: str = "server_error",
    ) -> None:
        super().__init__(status, code, message, request_id, details)


class ServiceUnavailableError(ServerError):
    """Raised when the service is unavailable (503)."""

    def __init__(
        self,
        message: str,
        request_id: Optional[str] = None,
        details: Any = None,
    ) -> None:
        super().__init__(
            message, request_id, details, status=503, code="service_unavailable"
        )


class NetworkError(InfactoryAPIError):
    """Raised or returned when no HTTP response was received."""

    def __init__(self, message: str, details: Any = None) -> None:
        super().__init__(0, "network_error", message, None, details)


class PollingTimeoutError(InfactoryAPIError):
    """Raised when a polling operation exceeds its timeout."""

    def __init__(self, message: str, attempts: int = 0) -> None:
        super().__init__(408, "polling_timeout", message, None, {"attempts": attempts})
        self.attempts = attempts


class PollingCancelledError(InfactoryAPIError):
    """Raised when a polling operation is cancelled."""

    def __init__(self, message: str = "Polling operation was cancelled") -> None:
        super().__init__(499, "polling_cancelled", message)


class JobFailedError(InfactoryAPIError):
    """Raised when a polled job reaches a failed terminal state."""

    def __init__(self, job_id: str, job_status: str, details: Any = None) -> None:
        super().__init__(
            422,
            "job_failed",
            f"Job {job_id} finished with status: {job_status}",
            None,
            details,
        )
        self.job_id = job_id
        self.job_status = job_status


_STATUS_ERRORS = {
    400: ValidationError,
    401: AuthenticationError,
    403: PermissionDeniedError,
    404: NotFoundError,
    409: ConflictError,
    429: RateLimitError,
    503: ServiceUnavailableError,
}


def error_from_status(
    status: int,
    code: str = "unknown_error",
    message: str = "",
    request_id: Optional[str] = None,
    details: Any = None,
) -> InfactoryAPIError:
    """Create the error matching an HTTP status code."""
    error_cls = _STATUS_ERRORS.get(status)
    if error_cls is not None:
        return error_cls(message, request_id, details)
    if status >= 500:
        return ServerError(message, request_id, details, status=status)
    return InfactoryAPIError(status, code, message, request_id, details)
