# finance_tracker/errors.py
"""Exceptions raised by the ledgers, the credential store and the gate.

Every error carries the HTTP status the web layer answers with, so routes
never translate errors themselves.
"""

from __future__ import annotations


class FinanceTrackerError(Exception):
    status_code = 500
    default_message = "Server error"

    def __init__(self, message: str | None = None, field: str | None = None) -> None:
        self.message = message or self.default_message
        self.field = field
        super().__init__(self.message)

    def to_dict(self) -> dict:
        payload = {"message": self.message}
        if self.field:
            payload["field"] = self.field
        return payload


class ValidationError(FinanceTrackerError):
    status_code = 400
    default_message = "Invalid request"


class DuplicateCategory(FinanceTrackerError):
    status_code = 400
    default_message = "Category with this name already exists!"


class DuplicateEmail(FinanceTrackerError):
    status_code = 400
    default_message = "A user with this email already exists"


class NotFound(FinanceTrackerError):
    status_code = 404
    default_message = "Not found"


class Unauthorized(FinanceTrackerError):
    status_code = 401
    default_message = "Authorization denied. No token found."


class InvalidToken(FinanceTrackerError):
    status_code = 401
    default_message = "Invalid token"


class InvalidCredentials(FinanceTrackerError):
    status_code = 400
    default_message = "Invalid credentials"


class InvalidOrExpiredToken(FinanceTrackerError):
    status_code = 400
    default_message = "Password reset token is invalid or has expired"


class DependencyFailure(FinanceTrackerError):
    status_code = 503
    default_message = "Email could not be sent. Please try again later."
