"""
Application error taxonomy.

Services raise these; the gateway turns them into JSON responses with the
matching status code. Anything that is not an AppError becomes a 500 whose
detail stays in the server log.
"""
from typing import Dict, List, Optional


class AppError(Exception):
    status_code = 500
    message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.message}


class ValidationError(AppError):
    """
    Malformed or missing input. Always fixable by the caller.

    errors holds one entry per violated field so clients can show all
    problems at once.
    """
    status_code = 400
    message = "Validation failed"

    def __init__(self, errors: List[Dict[str, str]]):
        super().__init__()
        self.errors = errors

    @property
    def fields(self) -> List[str]:
        return [error["field"] for error in self.errors]

    def to_dict(self) -> dict:
        return {"error": self.message, "errors": self.errors}


class ConflictError(AppError):
    status_code = 409
    message = "User already exists"


class InvalidCredentialsError(AppError):
    # Same message for unknown email and wrong password
    status_code = 401
    message = "Invalid credentials"


class MissingTokenError(AppError):
    status_code = 401
    message = "Access token required"


class InvalidTokenError(AppError):
    status_code = 403
    message = "Invalid or expired token"


class ForbiddenError(AppError):
    status_code = 403
    message = "Forbidden"


class NotFoundError(AppError):
    status_code = 404
    message = "Not found"


class DuplicateEmailError(Exception):
    """Raised by user stores when the normalized email is already taken."""

    def __init__(self, email: str):
        super().__init__(f"Email already registered: {email}")
        self.email = email
