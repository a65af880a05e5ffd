"""
Connection Engine (SQLAlchemy)

Purpose
-------
Centralizes engine construction for the access layer:
- Builds a SQLAlchemy connection URL from explicit values, falling back to
  environment-backed settings for anything not supplied.
- Creates the Engine that `Database` opens its single connection from.
- Defines shared MetaData and the Declarative Base for record classes.

Notes
-----
- The session character set is always UTF-8. It is requested per dialect
  and cannot be switched off through settings.
- Uses `URL.create(...)` so credentials never get spliced into a string.
"""

from typing import Any, Dict, Optional, Tuple

from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.schema import MetaData

from dataaccess.config.config import settings

# --------------------------------------------------------------------
# Metadata object: schema-level information shared by all record classes.
# --------------------------------------------------------------------
metadata = MetaData()
"""Metadata object shared by every record class in `dataaccess.entities`."""

declarativeBase = declarative_base(metadata=metadata)
"""Declarative Base: root class for mapped record classes."""


def _dialect(drivername: str) -> str:
    return drivername.split("+", 1)[0]


def _charset_options(drivername: str) -> Tuple[Dict[str, str], Dict[str, Any]]:
    """Return the (url query, connect_args) pair that pins the session to UTF-8."""
    dialect = _dialect(drivername)
    if dialect in ("mysql", "mariadb"):
        return {"charset": "utf8mb4"}, {}
    if dialect == "postgresql":
        return {}, {"client_encoding": "utf8"}
    return {}, {}


def build_connection_url(
    dbname: Optional[str] = None,
    host: Optional[str] = None,
    user: Optional[str] = None,
    password: Optional[str] = None,
    port: Optional[int] = None,
    driver: Optional[str] = None,
) -> URL:
    """
    Build the connection URL, filling every missing part from `settings`.

    Parameters
    ----------
    dbname, host, user, password, port : optional
        Explicit overrides. ``None`` means "use the configured default".
    driver : str, optional
        SQLAlchemy driver name such as ``mysql+pymysql`` or ``sqlite``.

    Returns
    -------
    URL
        A URL carrying the UTF-8 character set where the dialect needs it.
        SQLite URLs only carry the database path.
    """
    drivername = driver or settings.DB_DRIVER_NAME
    database = dbname if dbname is not None else settings.DB_DATABASE_NAME

    if _dialect(drivername) == "sqlite":
        return URL.create(drivername=drivername, database=database or None)

    query, _ = _charset_options(drivername)
    return URL.create(
        drivername=drivername,
        username=user if user is not None else settings.DB_USERNAME,
        password=password if password is not None else settings.DB_PASSWORD,
        host=host if host is not None else settings.DB_HOST,
        port=port if port is not None else settings.DB_PORT,
        database=database,
        query=query,
    )


def create_connection_engine(url: URL, echo: Optional[bool] = None) -> Engine:
    """
    Create the Engine for `url`.

    The Engine is the factory `Database` opens its one connection from; no
    connection is made here.
    """
    _, connect_args = _charset_options(url.drivername)
    return create_engine(
        url,
        echo=settings.DB_ECHO if echo is None else echo,
        connect_args=connect_args,
    )
