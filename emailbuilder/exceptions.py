"""Exceptions raised while assembling email messages."""

from __future__ import annotations


class EmailError(Exception):
    """Base class for errors reported by the message builder."""


class AddressError(EmailError):
    """Raised when an address argument is missing, empty or malformed."""

    def __init__(self, message: str, address: object = None) -> None:
        self.address = address
        super().__init__(message)


class MissingHostError(EmailError):
    """Raised when a host name is required but was never configured."""

    def __init__(self, message: str = "Cannot find valid hostname for mail session") -> None:
        super().__init__(message)


class AlreadyBuiltError(EmailError):
    """Raised when a builder is used again after producing its message."""

    def __init__(self, message: str = "The message has already been built") -> None:
        super().__init__(message)


class InvalidArgument(ValueError):
    """Raised for empty header names or values."""
