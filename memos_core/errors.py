"""
Shared error types for core services.
"""


class ServiceError(Exception):
    """Base for per-call failures reported back to the caller."""

    error_kind = "internal"

    def __init__(self, message: str, field: str = "unknown", error_type: str | None = None):
        super().__init__(message)
        self.field = field
        self.error_type = error_type or self.error_kind


class ValidationIssue(ServiceError, ValueError):
    error_kind = "validation"

    def __init__(
        self,
        message: str,
        field: str = "unknown",
        error_type: str = "invalid",
        error_code: str | None = None,
        data: dict | None = None,
    ):
        super().__init__(message, field=field, error_type=error_type)
        self.error_code = error_code
        self.data = data


class NotFound(ServiceError):
    error_kind = "not_found"


class PermissionDenied(ServiceError):
    error_kind = "access_denied"


class Unauthenticated(ServiceError):
    error_kind = "unauthenticated"


class StoreFailure(ServiceError):
    """Raised when the backing store rejects or fails an operation."""

    error_kind = "store_failure"


class ResourceResolutionError(Exception):
    """Resource read failure, kept apart from tool-call errors."""

    def __init__(self, message: str, error_kind: str = "validation"):
        super().__init__(message)
        self.error_kind = error_kind

    @classmethod
    def from_service_error(cls, exc: ServiceError) -> "ResourceResolutionError":
        return cls(str(exc), error_kind=exc.error_kind)
