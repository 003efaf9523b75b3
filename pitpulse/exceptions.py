"""
Domain exceptions raised by the service layer.

Each carries the HTTP status the API boundary should answer with; the
handlers in ``main`` turn them into the standard response envelope.
"""


class PitPulseError(Exception):
    """Base class for all expected service errors"""
    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(PitPulseError):
    """Raised for malformed or missing input"""
    status_code = 400


class AuthenticationError(PitPulseError):
    """Raised when the caller's identity is missing or invalid"""
    status_code = 401


class ForbiddenError(PitPulseError):
    """Raised when the caller does not own the resource"""
    status_code = 403


class NotFoundError(PitPulseError):
    """Raised when an entity is absent or soft-deleted"""
    status_code = 404


class ConflictError(PitPulseError):
    """Raised on uniqueness violations and reference-blocked deletes"""
    status_code = 409
