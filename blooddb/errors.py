class AppError(Exception):
    """Base for failures that are reported to the client as-is."""

    status_code = 500
    error = "InternalServerError"
    message = "Server error. Please try again."

    def __init__(self, message: str | None = None, details: dict | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message
        self.details = details


class ValidationError(AppError):
    status_code = 400
    error = "ValidationError"
    message = "Invalid request payload"

    def __init__(self, violations: list[str], message: str | None = None):
        super().__init__(message or "; ".join(violations) or None, details={"errors": violations})
        self.violations = violations


class ConflictError(AppError):
    status_code = 400
    error = "Conflict"
    message = "Username or email already exists"


class InvalidCredentialsError(AppError):
    status_code = 401
    error = "InvalidCredentials"
    message = "Invalid email or password"


class UnauthenticatedError(AppError):
    status_code = 401
    error = "Unauthenticated"
    message = "Please login"


class NotFoundOrUnauthorizedError(AppError):
    # Never 403: a row owned by someone else looks exactly like a missing row.
    status_code = 404
    error = "NotFoundOrUnauthorized"
    message = "Not found"


class InternalFaultError(AppError):
    pass
