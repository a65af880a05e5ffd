"""
Database Transaction Management
===============================

This module wraps functions in a transaction on a ``Database`` using a
context variable, so nested calls join the transaction already running
instead of opening a second one.

Key features
~~~~~~~~~~~~
- Context variable holding the ``Database`` that drives the open transaction
- Implicit reuse of that ``Database`` by nested decorated calls
- Commit on success, rollback on any exception
- No savepoints: a nested call that fails rolls back the whole transaction
  when the exception reaches the outermost call
"""

import contextvars
from functools import wraps

from dataaccess.core.database import get_database

# --------------------------------------------------------------------
# Context variable to store the Database whose transaction is open.
# --------------------------------------------------------------------
db_transaction_context = contextvars.ContextVar("db_transaction_context", default=None)
"""Context variable storing the `Database` with an active transaction."""


def transactional(func):
    """
    Decorator to run a function inside a transaction.

    Ensures that:
    - If a transaction is already active in context, its `Database` is reused.
    - Otherwise the given (or process-wide) `Database` begins one, commits it
      on return and rolls it back if the function raises.

    Parameters
    ----------
    func : callable
        The function to wrap. It must accept a `db` keyword argument.

    Example
    -------
    >>> @transactional
    ... def rename_user(user_id, name, db=None):
    ...     db.update("User", "UPDATE users SET name = :name WHERE id = :id",
    ...               {"name": name, "id": user_id})
    ...
    >>> rename_user(1, "Ada", db=my_db)
    """
    @wraps(func)
    def wrap_func(*args, db=None, **kwargs):
        active = db_transaction_context.get()
        if active is not None and (db is None or db is active):
            return func(*args, db=active, **kwargs)

        db = db if db is not None else get_database()
        db.begin_transaction()
        token = db_transaction_context.set(db)

        try:
            result = func(*args, db=db, **kwargs)
            db.commit()
        except Exception:
            if db.in_transaction():
                db.roll_back()
            raise
        finally:
            db_transaction_context.reset(token)

        return result

    return wrap_func
