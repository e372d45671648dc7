"""Exit-code contract and exception types for the Setlist core."""
from __future__ import annotations

import enum


class ExitCode(enum.IntEnum):
    """Standardised CLI exit codes.

    0 - success
    1 - user error (unknown playlist, invalid import, bad name)
    3 - storage / internal error
    """

    SUCCESS = 0
    USER_ERROR = 1
    INTERNAL_ERROR = 3


class SetlistError(Exception):
    """Base exception for Setlist errors."""

    def __init__(self, message: str, exit_code: ExitCode = ExitCode.INTERNAL_ERROR) -> None:
        super().__init__(message)
        self.exit_code = exit_code


class StorageUnavailableError(SetlistError):
    """Raised when the underlying key-value store call itself failed.

    The backend exception is chained as ``__cause__``.  No retry is
    performed at this layer.
    """

    def __init__(self, operation: str, key: str | None = None) -> None:
        self.operation = operation
        self.key = key
        target = f" {key!r}" if key is not None else ""
        super().__init__(f"Storage error: unable to {operation}{target}")


class CorruptDataError(SetlistError):
    """Raised when a stored value does not decode or fails structural validation."""

    def __init__(self, key: str, reason: str) -> None:
        self.key = key
        self.reason = reason
        super().__init__(f"Corrupt data under {key!r}: {reason}")


class InvalidImportError(SetlistError):
    """Raised when an import document is malformed."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason, exit_code=ExitCode.USER_ERROR)


class InvalidCollectionNameError(SetlistError, ValueError):
    """Raised when a collection name cannot be mapped to a storage key."""

    def __init__(self, name: str, reason: str) -> None:
        self.name = name
        super().__init__(f"Invalid collection name {name!r}: {reason}", exit_code=ExitCode.USER_ERROR)
