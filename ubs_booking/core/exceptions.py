"""Custom application exceptions."""


class AppException(Exception):
    """Base application exception."""

    kind = "Error"

    def __init__(self, message: str, status_code: int = 500):
        """Initialize exception with message and status code."""
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class NotFoundException(AppException):
    """Resource not found exception."""

    kind = "NotFound"

    def __init__(self, message: str = "Resource not found"):
        """Initialize with 404 status code."""
        super().__init__(message, status_code=404)


class UnauthorizedException(AppException):
    """Unauthorized access exception."""

    kind = "Unauthorized"

    def __init__(self, message: str = "Unauthorized"):
        """Initialize with 401 status code."""
        super().__init__(message, status_code=401)


class ForbiddenException(AppException):
    """Forbidden access exception."""

    kind = "Forbidden"

    def __init__(self, message: str = "Forbidden"):
        """Initialize with 403 status code."""
        super().__init__(message, status_code=403)


class ConflictException(AppException):
    """Conflict exception."""

    kind = "Conflict"

    def __init__(self, message: str = "Conflict"):
        """Initialize with 409 status code."""
        super().__init__(message, status_code=409)


class AlreadyCancelledException(ConflictException):
    """Raised when cancelling an appointment that is already cancelled."""

    kind = "AlreadyCancelled"

    def __init__(self, message: str = "Appointment is already cancelled"):
        super().__init__(message)


class ValidationException(AppException):
    """Validation error exception."""

    kind = "ValidationError"

    def __init__(self, message: str = "Validation error"):
        """Initialize with 422 status code."""
        super().__init__(message, status_code=422)


class TransientStoreError(AppException):
    """Transaction aborted by the data store; the whole operation may be retried."""

    kind = "TransientStoreError"

    def __init__(self, message: str = "Temporary storage failure, please retry"):
        """Initialize with 503 status code."""
        super().__init__(message, status_code=503)
