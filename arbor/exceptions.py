"""
Arbor Custom Exceptions

All module-specific exceptions inherit from ArborError.
"""

from __future__ import annotations


class ArborError(Exception):
    """Base exception for all Arbor errors."""

    pass


# Parse Exceptions
class DocumentParseError(ArborError):
    """Raised when input text is not valid JSON."""

    def __init__(
        self,
        message: str,
        line: int | None = None,
        column: int | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.line = line
        self.column = column

    def __str__(self) -> str:
        if self.line is not None and self.column is not None:
            return f"{self.message} (line {self.line}, column {self.column})"
        return self.message


# Validation Exceptions
class ValidationError(ArborError):
    """Base exception for rejected document operations."""

    pass


class DuplicateKeyError(ValidationError):
    """Raised when a key is already used inside the same object."""

    pass


class EmptyKeyError(ValidationError):
    """Raised when an object key is missing or blank."""

    pass


class InvalidNumberError(ValidationError):
    """Raised when a numeric edit is not a finite number."""

    pass


class NodeNotFoundError(ValidationError):
    """Raised when a parent or child id cannot be resolved."""

    pass


class KindMismatchError(ValidationError):
    """Raised when an operation targets the wrong kind of node."""

    pass


class BoundaryMoveError(ValidationError):
    """Raised when an array item cannot move past the array boundary."""

    pass


# Structural Exceptions
class TreeIntegrityError(ArborError):
    """Raised when a document violates the strict-tree invariants."""

    pass


# Storage Exceptions
class StorageError(ArborError):
    """Raised when session or snippet storage fails."""

    pass
