"""Error types raised below the HTTP handlers.

Validation problems are not exceptions: the validator returns the full list of
messages and the handler answers 422. The types here cover the store and
malformed requests.
"""

from __future__ import annotations


class LifePulseError(Exception):
    """Base exception for the donor registry."""


class PersistenceError(LifePulseError):
    """Raised when the donor store is unreachable or rejects an operation."""

    def __init__(self, message: str, operation: str | None = None):
        self.message = message
        self.operation = operation
        super().__init__(self.message)


class RequestShapeError(LifePulseError):
    """Raised when a request cannot be interpreted at all."""

    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)
