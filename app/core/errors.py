"""Domain error taxonomy.

Services raise these; the handlers in ``app.main`` turn them into
RFC 7807 problem documents (or the OpenKJ ``{error, message}`` shape).
"""


class AppError(Exception):
    """Base class for every error that maps to an HTTP status."""

    status_code: int = 500
    type: str = "internal_error"
    title: str = "Internal Server Error"

    def __init__(
        self,
        detail: str = "An unexpected error occurred",
        errors: list[dict[str, str]] | None = None,
    ) -> None:
        self.detail = detail
        self.errors = errors
        super().__init__(detail)

    def to_problem(self) -> dict:
        body: dict = {
            "type": self.type,
            "title": self.title,
            "status": self.status_code,
            "detail": self.detail,
        }
        if self.errors:
            body["errors"] = self.errors
        return body


class ValidationError(AppError):
    status_code = 400
    type = "validation_error"
    title = "Validation Error"

    def __init__(
        self,
        detail: str = "Request validation failed",
        errors: list[dict[str, str]] | None = None,
    ) -> None:
        super().__init__(detail, errors)

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls(message, errors=[{"field": field, "message": message}])


class AuthenticationError(AppError):
    status_code = 401
    type = "authentication_required"
    title = "Unauthorized"

    def __init__(self, detail: str = "Authentication required") -> None:
        super().__init__(detail)


class ApiKeyError(AuthenticationError):
    """Sync-client key missing or rejected; ``title`` names which."""

    def __init__(self, title: str, detail: str) -> None:
        super().__init__(detail)
        self.title = title


class AuthorizationError(AppError):
    status_code = 403
    type = "insufficient_permissions"
    title = "Forbidden"

    def __init__(self, detail: str = "Insufficient permissions") -> None:
        super().__init__(detail)


class NotFoundError(AppError):
    """Absence and foreign ownership are reported identically."""

    status_code = 404
    type = "resource_not_found"
    title = "Not Found"

    def __init__(self, resource: str, detail: str | None = None) -> None:
        self.resource = resource
        super().__init__(detail or f"{resource} not found")


class ConflictError(AppError):
    status_code = 409
    type = "conflict"
    title = "Conflict"

    def __init__(self, detail: str, field: str | None = None) -> None:
        errors = [{"field": field, "message": detail}] if field else None
        super().__init__(detail, errors)


class RateLimitError(AppError):
    status_code = 429
    type = "rate_limit_exceeded"
    title = "Too Many Requests"

    def __init__(self, retry_after: int) -> None:
        self.retry_after = retry_after
        super().__init__(f"Rate limit exceeded. Retry after {retry_after} seconds")


class InternalError(AppError):
    pass
