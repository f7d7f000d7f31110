"""Error taxonomy shared by the client and the HTTP surface."""

from __future__ import annotations


class WallapopError(Exception):
    """Base class for every failure this service reports to a caller."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class UpstreamError(WallapopError):
    """The API or page host answered with a non-success status, or could not be reached.

    ``status_code`` is ``None`` for transport failures.
    """

    def __init__(self, message: str, status_code: int | None = None, body: str = "") -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class HashNotFoundError(WallapopError):
    """The item page loaded but did not carry a usable item hash."""


class ValidationError(WallapopError):
    """A required input field is missing."""
