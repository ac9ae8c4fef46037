# mediconnect/errors.py
from typing import Optional


class MediConnectError(Exception):
    """Base class for errors surfaced to API callers as structured responses."""

    status_code = 500

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field

    def to_dict(self) -> dict:
        return {"detail": self.message, "field": self.field}


class NotFound(MediConnectError):
    status_code = 404


class ValidationFailure(MediConnectError):
    status_code = 400


class ConstraintViolation(MediConnectError):
    status_code = 409


class InvalidTransition(ConstraintViolation):
    """Requested status is not a legal successor of the action's current status."""


class AuthenticationFailed(MediConnectError):
    status_code = 401
