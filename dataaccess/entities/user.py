"""
User Record
===========

The ``User`` record maps the ``users`` table. It is the sample data-record
definition found by the class registry under ``dataaccess.entities``.

Key features
~~~~~~~~~~~~
- Integer autoincrement primary key (``id``)
- Unique e-mail address
- Creation timestamp set by the database

Rows come back from ``Database.select("User", ...)`` as transient ``User``
instances; only the selected columns are set.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import VARCHAR, DateTime, Integer, func
from sqlalchemy.orm import Mapped, mapped_column

from dataaccess.config.connection_engine import declarativeBase


class User(declarativeBase):
    """
    Record for the `users` table.

    Attributes
    ----------
    id : int
        Primary key.
    email : str
        E-mail address of the user (unique, max 255 chars).
    name : str | None
        Display name.
    created_on : datetime
        Time the row was created (database default).
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    email: Mapped[str] = mapped_column(VARCHAR(255), nullable=False, unique=True)

    name: Mapped[Optional[str]] = mapped_column(VARCHAR(255), nullable=True)

    created_on: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    """Creation timestamp, filled in by the database."""

    def __str__(self) -> str:
        return f"User: id:{self.id}, email: {self.email}, name: {self.name}"
