"""Error kinds raised by services and repositories.

The API layer maps each kind to an HTTP status; everything else raised by a
collaborator (provider, database driver) is left untouched and surfaces as an
internal error.
"""

from __future__ import annotations


class LessionError(Exception):
    """Base class for all domain errors."""


class NotFoundError(LessionError):
    def __init__(self, message: str = "not found") -> None:
        super().__init__(message)


class ValidationError(LessionError):
    def __init__(self, message: str = "validation error") -> None:
        super().__init__(message)


class InvalidPageTokenError(ValidationError):
    def __init__(self, token: str) -> None:
        super().__init__(f"invalid page token: {token!r}")
        self.token = token


class ConflictError(ValidationError):
    """A storage-level uniqueness constraint rejected the write."""


class UploadIdentifierRequiredError(LessionError):
    def __init__(self, message: str = "upload identifier required") -> None:
        super().__init__(message)


class UploadInvalidStateError(LessionError):
    def __init__(self, message: str = "upload session is in an invalid state") -> None:
        super().__init__(message)
