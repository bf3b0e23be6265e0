"""Application errors with a stable kind and an HTTP status."""


class AppException(Exception):
    """Base application exception."""

    kind = "InternalError"
    status_code = 500

    def __init__(self, message: str = "An unexpected error occurred"):
        self.message = message
        super().__init__(self.message)


class NotFoundError(AppException):
    """Referenced patient, provider or appointment does not exist."""

    kind = "NotFound"
    status_code = 404

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message)


class UnauthenticatedError(AppException):
    """Caller identity is missing or cannot be verified."""

    kind = "Unauthenticated"
    status_code = 401

    def __init__(self, message: str = "Could not validate credentials"):
        super().__init__(message)


class ForbiddenError(AppException):
    """Caller is authenticated but has no rights over the resource."""

    kind = "Forbidden"
    status_code = 403

    def __init__(self, message: str = "Not enough permissions"):
        super().__init__(message)


class InvalidRequestError(AppException):
    """Malformed or out-of-policy input."""

    kind = "InvalidRequest"
    status_code = 400

    def __init__(self, message: str = "Invalid request"):
        super().__init__(message)


class ConflictError(AppException):
    """Request collides with existing state."""

    kind = "Conflict"
    status_code = 409

    def __init__(self, message: str = "Conflict"):
        super().__init__(message)


class SlotTakenError(ConflictError):
    """Storage rejected a booking because the slot was taken concurrently."""

    def __init__(self, message: str = "The selected time slot is no longer available"):
        super().__init__(message)


class SameDayConflictError(ConflictError):
    """Patient already holds a scheduled appointment with the provider that day."""

    def __init__(self, message: str = "You already have an appointment with this provider on the selected date"):
        super().__init__(message)


class RateLimitError(AppException):
    kind = "RateLimited"
    status_code = 429

    def __init__(self, message: str = "Too many requests. Please try again later."):
        super().__init__(message)
