"""Exception types raised by the sanitization engine."""

from __future__ import annotations


class NoSQLSanitizeError(Exception):
    """Base class for all sanitization errors.

    Args:
        message: Human-readable description
        type: Short machine-readable error category
    """

    def __init__(self, message: str, type: str = "generic") -> None:  # noqa: A002
        self.type = type
        super().__init__(message)

    def code(self) -> str:
        """Return the error category."""
        return self.type


class ConfigurationError(NoSQLSanitizeError, ValueError):
    """Raised when options have an invalid shape or type.

    Only ever raised while resolving options, never while sanitizing.
    """

    def __init__(self, message: str, key: str = "") -> None:
        self.key = key
        super().__init__(message, "type_error")


class TypeMismatchError(NoSQLSanitizeError, TypeError):
    """Raised when an array or object sanitizer receives the wrong kind of value."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "type_error")
