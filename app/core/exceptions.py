"""Custom application exceptions."""


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, status_code: int = 500):
        """Initialize exception with message and status code."""
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class NotFoundException(AppException):
    """Resource not found exception."""

    def __init__(self, message: str = "Resource not found"):
        """Initialize with 404 status code."""
        super().__init__(message, status_code=404)


class ForbiddenException(AppException):
    """Forbidden access exception."""

    def __init__(self, message: str = "Forbidden"):
        """Initialize with 403 status code."""
        super().__init__(message, status_code=403)


class ConflictException(AppException):
    """Conflict exception."""

    def __init__(self, message: str = "Conflict"):
        """Initialize with 409 status code."""
        super().__init__(message, status_code=409)


# Phrasing for actions whose name does not read as a verb
ACTION_WORDING = {
    "message": "post a message on",
    "update_triage": "update triage for",
}


class InvalidTransitionException(ConflictException):
    """Appointment status change not allowed from the current status."""

    def __init__(self, current_status: str, action: str):
        """Initialize with the status the record is in and the rejected action."""
        self.current_status = current_status
        self.action = action
        wording = ACTION_WORDING.get(action, action.replace("_", " "))
        super().__init__(f"Cannot {wording} an appointment that is {current_status}")


class ValidationException(AppException):
    """Validation error exception."""

    def __init__(self, message: str = "Validation error"):
        """Initialize with 422 status code."""
        super().__init__(message, status_code=422)


class ExternalServiceException(AppException):
    """
    Upstream AI service failure.

    Only raised inside the triage client, which converts it into a fallback
    result. ``upstream_status`` carries the HTTP status of the failed call
    when there was one.
    """

    def __init__(self, message: str, upstream_status: int | None = None):
        """Initialize with 503 status code."""
        self.upstream_status = upstream_status
        super().__init__(message, status_code=503)
