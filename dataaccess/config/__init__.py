"""
The `config` package provides the two building blocks used to reach the database.

Contents:
    - config: Configuration layer - typed connection settings loaded from environment variables (with .env support), exposed through a singleton Settings object
    - connection_engine: Database layer - SQLAlchemy bootstrap that builds a connection URL from explicit values or those settings, creates the Engine, shared MetaData, and the declarative base for record classes
"""
