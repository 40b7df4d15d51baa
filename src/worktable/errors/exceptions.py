"""Custom exception classes for the Worktable API and client."""


class WorktableError(Exception):
    """Base exception for Worktable."""

    def __init__(self, code: str, message: str, details=None, status_code: int = 500):
        self.code = code
        self.message = message
        self.details = details
        self.status_code = status_code
        super().__init__(message)

    @property
    def field(self) -> str | None:
        """Name of the offending request field, when the error carries one."""
        if isinstance(self.details, dict):
            return self.details.get("field")
        return None


class ValidationError(WorktableError):
    """Missing or malformed required fields."""

    def __init__(self, message: str, field: str | None = None, details=None):
        if field is not None:
            details = {**(details or {}), "field": field}
        super().__init__("VALIDATION_ERROR", message, details, status_code=400)


class InvalidIdentifierError(WorktableError):
    """Malformed tenant or document reference."""

    def __init__(self, resource: str, value: str, field: str | None = None):
        super().__init__(
            "INVALID_IDENTIFIER",
            f"Invalid {resource} identifier '{value}'",
            {"field": field} if field else None,
            status_code=400,
        )


class NotFoundError(WorktableError):
    """Resource not found."""

    def __init__(self, resource: str, resource_id: str):
        super().__init__(
            "NOT_FOUND",
            f"{resource} '{resource_id}' not found",
            status_code=404,
        )


class AuthenticationError(WorktableError):
    """No active session, or the token is invalid."""

    def __init__(self, message: str = "Authentication required", field: str | None = None):
        super().__init__(
            "AUTHENTICATION_ERROR",
            message,
            {"field": field} if field else None,
            status_code=401,
        )


class AuthorizationError(WorktableError):
    """Authenticated but not entitled to the target organization."""

    def __init__(self, message: str = "Not a member of this organization"):
        super().__init__("AUTHORIZATION_ERROR", message, status_code=403)


class ConflictError(WorktableError):
    """Resource state conflict."""

    def __init__(self, message: str):
        super().__init__("CONFLICT", message, status_code=409)


class TransientIOError(WorktableError):
    """Network or storage failure during load or save."""

    def __init__(self, message: str = "Service temporarily unavailable", details=None):
        super().__init__("TRANSIENT_IO_ERROR", message, details, status_code=503)


# Error code → exception class, used to rebuild server errors on the client
ERROR_CODES: dict[str, type[WorktableError]] = {
    "VALIDATION_ERROR": ValidationError,
    "INVALID_IDENTIFIER": InvalidIdentifierError,
    "NOT_FOUND": NotFoundError,
    "AUTHENTICATION_ERROR": AuthenticationError,
    "AUTHORIZATION_ERROR": AuthorizationError,
    "CONFLICT": ConflictError,
    "TRANSIENT_IO_ERROR": TransientIOError,
}
