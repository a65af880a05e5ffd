"""
Database — Single-Connection Access Layer
=========================================

Purpose
-------
Owns one live SQLAlchemy connection and exposes parameterized CRUD on it:
- ``select`` hydrates rows into a registered record type
- ``select_one`` returns the first row as a plain dict
- ``insert`` / ``update`` optionally guard the write with an existence query
- ``delete`` and the transaction primitives are thin pass-throughs

Connection Model
----------------
- Nothing is opened in the constructor. The connection is opened on first
  use and kept until ``close()``.
- A failed connection raises ``DatabaseConnectionError`` at that first use.
  The driver message stays on ``connection_error`` and later calls re-raise
  it without reconnecting.
- Outside ``begin_transaction()`` every statement is committed as soon as it
  has run. Inside one, nothing is committed until ``commit()``.

Parameters
----------
Queries are plain SQL with named placeholders (``:email``). Parameter keys
may carry the leading colon or not. Binding is the only escaping done here.

Usage
-----
.. code-block:: python

    with Database("app", "localhost", "app", "secret", 3306) as db:
        created = db.insert(
            "User",
            "INSERT INTO users (email) VALUES (:email)", {"email": "a@x.com"},
            "SELECT id FROM users WHERE email = :email", {"email": "a@x.com"},
        )
        users = db.select("User", "SELECT * FROM users WHERE id > :id", {"id": 0})
"""

from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from sqlalchemy import text
from sqlalchemy.engine import URL, Connection, CursorResult, Engine
from sqlalchemy.exc import SQLAlchemyError

from dataaccess.config.connection_engine import build_connection_url, create_connection_engine
from dataaccess.core.class_registry import ClassRegistry, get_registry
from dataaccess.exceptions import DatabaseConnectionError, StatementError
from dataaccess.helpers.logger import get_logger

logger = get_logger(__name__)

Params = Optional[Mapping[str, Any]]
TypeRef = Union[str, type]


def _bind(params: Params) -> Dict[str, Any]:
    """Normalize a parameter set to the ``{name: value}`` form SQLAlchemy binds."""
    if params is None:
        return {}
    if not isinstance(params, Mapping):
        raise StatementError("query parameters must be a mapping of placeholder names to values")
    return {str(key).lstrip(":"): value for key, value in params.items()}


def _rows(result: CursorResult) -> List[Dict[str, Any]]:
    return [dict(row) for row in result.mappings()]


def _first(result: CursorResult) -> Optional[Dict[str, Any]]:
    row = result.mappings().first()
    return dict(row) if row is not None else None


class Database:
    """
    Access layer over a single database connection.

    Parameters
    ----------
    dbname, host, user, password, port : optional
        Connection values; each one left as ``None`` is taken from
        ``dataaccess.config.config.settings``.
    driver : str, optional
        SQLAlchemy driver name, e.g. ``mysql+pymysql`` or ``sqlite``.
    engine : Engine, optional
        Prepared engine to open the connection from instead of building one.
    registry : ClassRegistry, optional
        Registry used to hydrate typed reads. Defaults to the process-wide one.
    """

    def __init__(
        self,
        dbname: Optional[str] = None,
        host: Optional[str] = None,
        user: Optional[str] = None,
        password: Optional[str] = None,
        port: Optional[int] = None,
        *,
        driver: Optional[str] = None,
        engine: Optional[Engine] = None,
        registry: Optional[ClassRegistry] = None,
    ):
        self._engine = engine
        self._owns_engine = engine is None
        self.url: URL = (
            engine.url if engine is not None
            else build_connection_url(dbname, host, user, password, port, driver)
        )
        self._registry = registry
        self._conn: Optional[Connection] = None
        self._transaction = None
        self._last_insert_id: Any = None
        self.connection_error: str = ""

    # -- connection lifecycle --------------------------------------------------

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            self._engine = create_connection_engine(self.url)
        return self._engine

    @property
    def registry(self) -> ClassRegistry:
        return self._registry if self._registry is not None else get_registry()

    @property
    def connection(self) -> Connection:
        """The live connection, opened on first access."""
        if self._conn is None:
            if self.connection_error:
                raise DatabaseConnectionError(self.connection_error)
            try:
                self._conn = self.engine.connect()
            except (SQLAlchemyError, ImportError) as e:
                self.connection_error = str(e)
                logger.error(
                    "Failed to connect to %s: %s",
                    self.url.render_as_string(hide_password=True), e,
                )
                raise DatabaseConnectionError(self.connection_error) from e
            logger.info("Connected to %s", self.url.render_as_string(hide_password=True))
        return self._conn

    def connect(self) -> "Database":
        """Open the connection now instead of on first use."""
        self.connection
        return self

    def close(self) -> None:
        """Roll back any open transaction and release the connection."""
        if self._conn is not None:
            if self._transaction is not None:
                self._transaction.rollback()
            self._conn.close()
            self._conn = None
            self._transaction = None
            logger.info("Connection to %s closed", self.url.render_as_string(hide_password=True))
        if self._owns_engine and self._engine is not None:
            self._engine.dispose()
            self._engine = None

    def __enter__(self) -> "Database":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # -- execution -------------------------------------------------------------

    def _execute(self, query: str, params: Params, handle: Callable[[CursorResult], Any]) -> Any:
        """
        Run one statement and return ``handle(result)``.

        The result is consumed before the implicit commit, which only happens
        when no explicit transaction is open.
        """
        conn = self.connection
        bound = _bind(params)
        try:
            outcome = handle(conn.execute(text(query), bound))
            if self._transaction is None:
                conn.commit()
        except SQLAlchemyError as e:
            logger.error("Statement failed: %s", e)
            if self._transaction is None:
                conn.rollback()
            raise StatementError(str(e), query) from e
        return outcome

    def select(self, type_name: TypeRef, query: str, params: Params = None) -> list:
        """
        Run a query and hydrate every row into `type_name`.

        Parameters
        ----------
        type_name : str | type
            Registered type name, or a class to register on first use.
        query : str
            SQL with named placeholders.
        params : Mapping, optional
            Values for every placeholder in `query`.

        Returns
        -------
        list
            One instance per row in result order; empty when nothing matched.

        Raises
        ------
        StatementError
            If the query fails or a placeholder is left unbound.
        ResolutionError
            If `type_name` has no definition, whether or not rows matched.
        """
        rows = self._execute(query, params, _rows)
        return self.registry.hydrate_all(type_name, rows)

    def select_one(self, query: str, params: Params = None) -> Optional[Dict[str, Any]]:
        """Return the first row as a ``{column: value}`` dict, or None."""
        return self._execute(query, params, _first)

    def insert(
        self,
        type_name: TypeRef,
        insert_query: str,
        insert_params: Params = None,
        exists_query: Optional[str] = None,
        exists_params: Params = None,
    ) -> bool:
        """
        Insert a row unless the existence query already finds one.

        Returns
        -------
        bool
            False when `exists_query` matched at least one row (the insert
            is never executed), True once the insert has run.
        """
        if exists_query:
            if self.select(type_name, exists_query, exists_params):
                logger.debug("Insert skipped, %s row already exists", type_name)
                return False
        self._last_insert_id = self._execute(insert_query, insert_params, lambda r: r.lastrowid)
        return True

    def update(
        self,
        type_name: TypeRef,
        update_query: str,
        update_params: Params = None,
        exists_query: Optional[str] = None,
        exists_params: Params = None,
    ) -> Any:
        """
        Update rows, guarded and confirmed by the existence query.

        Returns
        -------
        object | None
            The first row `exists_query` yields after the update. None when
            the guard found no row (the update is never executed), when the
            re-query finds nothing, or when no `exists_query` was given.
        """
        if exists_query:
            if not self.select(type_name, exists_query, exists_params):
                logger.debug("Update skipped, no %s row matched", type_name)
                return None
        self._execute(update_query, update_params, lambda r: r.rowcount)

        if not exists_query:
            return None
        records = self.select(type_name, exists_query, exists_params)
        return records[0] if records else None

    def delete(self, query: str, params: Params = None) -> bool:
        """Run a delete statement. Always True once it has executed."""
        self._execute(query, params, lambda r: r.rowcount)
        return True

    # -- transactions ----------------------------------------------------------

    def in_transaction(self) -> bool:
        return self._transaction is not None

    def begin_transaction(self) -> bool:
        if self._transaction is not None:
            raise StatementError("A transaction is already active")
        try:
            self._transaction = self.connection.begin()
        except SQLAlchemyError as e:
            raise StatementError(str(e)) from e
        return True

    def commit(self) -> bool:
        if self._transaction is None:
            raise StatementError("There is no active transaction")
        transaction, self._transaction = self._transaction, None
        try:
            transaction.commit()
        except SQLAlchemyError as e:
            raise StatementError(str(e)) from e
        return True

    def roll_back(self) -> bool:
        if self._transaction is None:
            raise StatementError("There is no active transaction")
        transaction, self._transaction = self._transaction, None
        try:
            transaction.rollback()
        except SQLAlchemyError as e:
            raise StatementError(str(e)) from e
        return True

    def last_insert_id(self, sequence_name: Optional[str] = None) -> Any:
        """
        Id of the last row inserted on this connection.

        On PostgreSQL the session is asked: `lastval()` without a name,
        `currval(sequence_name)` with one. Other dialects report the row id
        the driver gave back for the last insert; naming a sequence there is
        an error.

        Raises
        ------
        StatementError
            If `sequence_name` is given on a dialect without sequences.
        """
        if self.engine.dialect.name == "postgresql":
            if sequence_name is None:
                return self._execute("SELECT lastval()", None, lambda r: r.scalar())
            return self._execute(
                "SELECT currval(:name)", {"name": sequence_name},
                lambda r: r.scalar(),
            )
        if sequence_name is not None:
            raise StatementError(
                f"{self.engine.dialect.name} does not support sequence-based insert ids"
            )
        return self._last_insert_id

    def __repr__(self) -> str:
        return f"Database({self.url.render_as_string(hide_password=True)!r})"


# -- module singleton ----------------------------------------------------------

_default_db: Optional[Database] = None


def get_database() -> Database:
    """Return (and lazily create) the process-wide Database built from settings."""
    global _default_db
    if _default_db is None:
        _default_db = Database()
    return _default_db


def reset_database() -> None:
    """Close and discard the process-wide Database (useful in tests)."""
    global _default_db
    if _default_db is not None:
        _default_db.close()
        _default_db = None
