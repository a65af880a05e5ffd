"""Pytest configuration and shared fixtures."""
from __future__ import annotations

import pytest

from dataaccess.config.connection_engine import metadata
from dataaccess.core.class_registry import ClassRegistry, reset_registry
from dataaccess.core.database import Database, reset_database
from dataaccess.entities.user import User  # noqa: F401  (puts `users` on metadata)


@pytest.fixture(autouse=True)
def _reset_singletons():
    yield
    reset_database()
    reset_registry()


@pytest.fixture
def registry() -> ClassRegistry:
    return ClassRegistry()


@pytest.fixture
def db(tmp_path, registry) -> Database:
    """A Database on a fresh SQLite file with the `users` table created."""
    database = Database(str(tmp_path / "app.db"), driver="sqlite", registry=registry)
    metadata.create_all(database.engine)
    yield database
    database.close()


def add_user(db: Database, email: str, name: str | None = None) -> None:
    db.insert(
        "User",
        "INSERT INTO users (email, name) VALUES (:email, :name)",
        {"email": email, "name": name},
    )


def count_users(db: Database) -> int:
    return db.select_one("SELECT COUNT(*) AS n FROM users")["n"]
