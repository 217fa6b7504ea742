"""
Error types raised by the services and rendered by the API as ``{"error": ...}``.
"""

from __future__ import annotations


class TaskboardError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(TaskboardError):
    """A required field is missing or empty."""

    status_code = 400


class ConflictError(TaskboardError):
    status_code = 409


class NotFoundError(TaskboardError):
    """No matching row, or a row the caller does not own."""

    status_code = 404


class AuthenticationError(TaskboardError):
    status_code = 401


class MissingCredentialError(TaskboardError):
    status_code = 401


class InvalidTokenError(TaskboardError):
    status_code = 403


class StoreUnavailableError(TaskboardError):
    """The backing store failed or timed out; safe to resubmit."""

    status_code = 500
