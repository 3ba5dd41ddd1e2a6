"""
Error taxonomy shared by repositories, workflows and the HTTP layer.

Each error carries the HTTP status it is surfaced with, so the exception
handlers in ``app.main`` stay a single mapping.
"""

from __future__ import annotations


class APSError(Exception):
    status_code: int = 500

    def __init__(self, message: str, details: list[str] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or []


class ValidationError(APSError):
    """Missing or malformed required input."""

    status_code = 400

    @classmethod
    def missing(cls, fields: list[str]) -> ValidationError:
        return cls(f"Faltan campos obligatorios: {', '.join(fields)}", details=fields)


class NotFoundError(APSError):
    status_code = 404


class ConflictError(APSError):
    """The write would break an invariant (e.g. a family with active members)."""

    # The legacy clients expect 400 here, not 409.
    status_code = 400


class PersistenceError(APSError):
    status_code = 500


class MalformedDataError(APSError):
    """Stored structured text that does not decode. Recovered locally, never surfaced."""
