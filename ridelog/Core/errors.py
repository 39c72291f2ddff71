"""
Domain Error Taxonomy
=====================

Structured error hierarchy raised by the trip and fuel services.

Every error carries the HTTP status it maps to, so the API layer can render
it with a single exception handler (see ridelog/main.py):

- ValidationError   → 400  malformed coordinates, negative amounts, missing fields
- ForbiddenError    → 403  caller does not own the record
- NotFoundError     → 404  trip / motor / record absent
- InvalidStateError → 409  illegal lifecycle transition
- PersistenceError  → 500  store unavailable or commit failed
"""

from typing import Any, Dict, Optional


class RideLogError(Exception):
    """
    Base exception for all domain errors.

    Attributes:
        message: Human-readable error description
        status_code: HTTP status code this error maps to
        context: Additional machine-readable context (ids, offending values)
    """

    status_code: int = 500

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        self.message = message
        self.context = context or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for serialization"""
        return {
            "detail": self.message,
            "error_type": self.__class__.__name__,
            "context": self.context,
        }


class ValidationError(RideLogError):
    """Input failed a domain rule (ranges, required fields, negative amounts)."""

    status_code = 400


class ForbiddenError(RideLogError):
    """Caller is neither the owner of the record nor an administrator."""

    status_code = 403


class NotFoundError(RideLogError):
    """Referenced trip, motor or record does not exist."""

    status_code = 404


class InvalidStateError(RideLogError):
    """Requested transition is not allowed from the record's current status."""

    status_code = 409


class PersistenceError(RideLogError):
    """
    The store rejected or failed a write.

    Raised after the session has been rolled back. Never retried
    automatically by the services.
    """

    status_code = 500
