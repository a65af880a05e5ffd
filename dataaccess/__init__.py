"""
The `dataaccess` package is a small relational access layer: one connection
with parameterized CRUD, plus a class registry that turns rows into records.

Contents:
    - config:
        Connection settings (environment / .env) and the SQLAlchemy engine
        bootstrap with its fixed UTF-8 character set.

    - core:
        `Database`, the single-connection access layer, and `ClassRegistry`,
        which resolves type names, caches singletons and hydrates rows.

    - entities:
        Data-record definitions searched first by the registry.

    - helpers:
        Transaction decorator and logging setup.

    - exceptions:
        `DatabaseConnectionError`, `StatementError`, `ResolutionError`.
"""

from dataaccess.core.class_registry import ClassRegistry, RecordDefinition, get_registry, reset_registry
from dataaccess.core.database import Database, get_database, reset_database
from dataaccess.exceptions import (
    DataAccessError,
    DatabaseConnectionError,
    ResolutionError,
    StatementError,
)

__all__ = [
    "ClassRegistry",
    "RecordDefinition",
    "get_registry",
    "reset_registry",
    "Database",
    "get_database",
    "reset_database",
    "DataAccessError",
    "DatabaseConnectionError",
    "ResolutionError",
    "StatementError",
]
