"""
Typed domain errors for the rounds engine.

Every rule violation raised by a service is one of these classes. The HTTP
layer maps them to status codes through ``exception_handlers.rounds_error_handler``.
"""


class RoundsError(Exception):
    """
    Base class for all domain errors.
    """
    code: str = "ROUNDS_ERROR"
    http_status: int = 500

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code

    def to_response(self) -> dict:
        return {"message": self.message, "data": {"code": self.code}}


class ValidationError(RoundsError):
    """Missing or invalid input."""
    code = "VALIDATION_ERROR"
    http_status = 400


class ForbiddenError(RoundsError):
    """Actor lacks the required role (not a member, not the organizer, not the owner)."""
    code = "FORBIDDEN"
    http_status = 403


class NotFoundError(RoundsError):
    """Round, contribution, proof or invite absent."""
    code = "NOT_FOUND"
    http_status = 404


class ConflictError(RoundsError):
    """Duplicate membership, full round, or a lost race on a uniqueness constraint."""
    code = "CONFLICT"
    http_status = 409


class GoneError(ConflictError):
    """Invite code expired or exhausted."""
    code = "GONE"
    http_status = 410


class StateError(RoundsError):
    """Operation not valid for the entity's current state."""
    code = "INVALID_STATE"
    http_status = 409
