from abc import ABC


class UserError(ABC, Exception):
    """Base class for user-related errors.

    All errors that inherit from UserError will have their messages
    displayed to the user. These errors should not contain any
    sensitive information.
    """


class NotFoundError(UserError):
    """Raised when a requested resource is not found."""

    def __init__(self, message: str = "Document not found") -> None:
        super().__init__(message)


class AuthenticationError(UserError):
    """Raised when authentication fails."""

    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(message)


class AccessDeniedError(UserError):
    """Raised when a user tries to access a resource they do not have permission for."""


class ValidationError(UserError):
    """Raised when user input fails validation."""


class SequenceError(Exception):
    """Base class for reference number allocation errors."""


class PrimitiveUnavailableError(SequenceError):
    """The store cannot perform an atomic increment for this counter."""


class UniquenessConflictError(SequenceError):
    """A candidate reference code is already taken."""

    def __init__(self, code: str) -> None:
        super().__init__(f"Reference code '{code}' already exists")
        self.code = code


class RetryBoundExhaustedError(SequenceError):
    """Every optimistic attempt collided with an existing code."""

    def __init__(self, attempts: int) -> None:
        super().__init__(f"No free reference code after {attempts} attempts")
        self.attempts = attempts


class StoreUnreachableError(SequenceError):
    """The record store cannot be reached; no reference code was issued."""

    def __init__(self, message: str = "Record store is unreachable") -> None:
        super().__init__(message)
