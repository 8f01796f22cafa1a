"""Exception types raised by the expertise record store."""
from __future__ import annotations

from pathlib import Path


class MulchError(Exception):
    """Base class for mulch errors surfaced to the CLI."""


class InvalidDomainError(MulchError, ValueError):
    """Raised when a domain name does not match the allowed pattern."""


class RecordValidationError(MulchError, ValueError):
    """Raised when a record is missing required fields or has an unknown type."""


class RecordDecodeError(RecordValidationError):
    """Raised when a line cannot be decoded into an expertise record.

    ``path`` and ``line_number`` are filled in by the file reader so the
    message points at the offending line.
    """

    def __init__(
        self,
        message: str,
        *,
        path: Path | None = None,
        line_number: int | None = None,
    ) -> None:
        self.reason = message
        self.path = path
        self.line_number = line_number
        if path is not None and line_number is not None:
            message = f"{path}:{line_number}: {message}"
        super().__init__(message)


class ConfigError(MulchError, ValueError):
    """Raised when mulch.config.yaml cannot be parsed or holds invalid values."""


class RecordNotFoundError(MulchError, LookupError):
    """Raised when a record id or 1-based index does not resolve within a domain."""
