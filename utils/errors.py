"""
Typed errors raised by the lifecycle engine and the document store.

Each error carries the HTTP status the API layer answers with and the message
that is safe to show to the caller.
"""

from typing import Optional


class ClaimLedgerError(Exception):
    """Base class for all domain errors."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def public_message(self) -> str:
        return self.message


class ValidationError(ClaimLedgerError):
    status_code = 400
    default_message = "Invalid request"


class ForbiddenError(ClaimLedgerError):
    status_code = 403
    default_message = "Forbidden"


class NotFoundError(ClaimLedgerError):
    status_code = 404
    default_message = "Resource not found"


class ConflictError(ClaimLedgerError):
    status_code = 409
    default_message = "Resource was modified concurrently"


class InvalidTransitionError(ConflictError):
    default_message = "Invalid status transition"

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Cannot change status from {current} to {target}")


class PersistenceError(ClaimLedgerError):
    """Document store failure. Details stay in the server log."""

    status_code = 500
    default_message = "Storage operation failed"

    @property
    def public_message(self) -> str:
        return "Internal server error"
