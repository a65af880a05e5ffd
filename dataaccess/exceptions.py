"""
Error taxonomy for the access layer.

- ``DatabaseConnectionError``: the connection could not be established.
- ``StatementError``: a statement failed to prepare or execute, a parameter
  was left unbound, or a transaction primitive was misused.
- ``ResolutionError``: a type name has no loadable definition.

Existence checks that skip an insert or update are not errors; they are
reported through the return value.
"""

from typing import Optional


class DataAccessError(Exception):
    """Base class for every error raised by `dataaccess`."""


class DatabaseConnectionError(DataAccessError):
    """Raised on first use of a `Database` whose connection could not be opened."""


class StatementError(DataAccessError):
    """Raised when a statement fails; the driver error is kept as ``__cause__``."""

    def __init__(self, message: str, query: Optional[str] = None):
        super().__init__(message)
        self.query = query


class ResolutionError(DataAccessError, LookupError):
    """Raised when a type name cannot be resolved to a record definition."""

    def __init__(self, type_name: str, search_packages=(), message: Optional[str] = None):
        searched = ", ".join(search_packages) or "<none>"
        super().__init__(message or f"No definition found for '{type_name}' (searched: {searched})")
        self.type_name = type_name
        self.search_packages = tuple(search_packages)
