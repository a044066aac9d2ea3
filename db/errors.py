"""
db/errors.py
------------
Exceptions raised by the data-access layer.
Every failure surfaces as a subclass of DataAccessError, with the
driver or caller exception kept as ``__cause__``.
"""

from typing import Optional


class DataAccessError(Exception):
    """Base class for all data-access failures."""

    def __init__(self, message: str, original: Optional[BaseException] = None):
        super().__init__(message)
        self.original = original


class ConnectionUnavailable(DataAccessError):
    """The pool could not supply a connection (not initialized, closed, exhausted, unreachable)."""


class BindError(DataAccessError):
    """Filling statement parameters failed. Nothing was executed."""


class StatementError(DataAccessError):
    """The database rejected or failed to execute the statement."""


class MappingError(DataAccessError):
    """The caller's result mapper raised."""
