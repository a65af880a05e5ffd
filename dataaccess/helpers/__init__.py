"""
The `helpers` package provides utilities that support database operations
and cross-cutting concerns.

Contents
--------
- transactionManagement
    `@transactional` decorator: runs a function inside a transaction on a
    `Database`, joining the one already active in context if there is one.
- logger
    `configure_logging` and `get_logger` for the package loggers.
"""
