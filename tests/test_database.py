"""Tests for the single-connection access layer.

Every test runs against a fresh SQLite file so tests are isolated and leave
no artefacts behind.
"""

from __future__ import annotations

import pytest

from conftest import add_user, count_users
from dataaccess.config.connection_engine import metadata
from dataaccess.core.database import Database, get_database, reset_database
from dataaccess.entities.user import User
from dataaccess.exceptions import DatabaseConnectionError, ResolutionError, StatementError

EXISTS_BY_EMAIL = "SELECT id FROM users WHERE email = :email"
INSERT_USER = "INSERT INTO users (email, name) VALUES (:email, :name)"


# ---------------------------------------------------------------------------
# select / select_one
# ---------------------------------------------------------------------------

def test_select_hydrates_each_row_in_order(db):
    add_user(db, "a@x.com", "Ada")
    add_user(db, "b@x.com", "Bob")

    users = db.select("User", "SELECT id, email, name FROM users ORDER BY id", {})

    assert len(users) == 2
    assert all(isinstance(u, User) for u in users)
    assert [u.email for u in users] == ["a@x.com", "b@x.com"]
    assert [u.name for u in users] == ["Ada", "Bob"]
    assert users[0].id < users[1].id


def test_select_binds_named_parameters(db):
    add_user(db, "a@x.com", "Ada")
    add_user(db, "b@x.com", "Bob")

    users = db.select("User", "SELECT * FROM users WHERE name = :name", {"name": "Bob"})

    assert [u.email for u in users] == ["b@x.com"]


def test_select_accepts_colon_prefixed_keys(db):
    add_user(db, "a@x.com")

    users = db.select("User", EXISTS_BY_EMAIL, {":email": "a@x.com"})

    assert len(users) == 1


def test_select_without_matches_returns_empty_list(db):
    users = db.select("User", "SELECT * FROM users WHERE email = :email", {"email": "none@x.com"})

    assert users == []


def test_select_accepts_class_reference(db):
    add_user(db, "a@x.com")

    users = db.select(User, "SELECT id, email FROM users")

    assert isinstance(users[0], User)
    assert users[0].email == "a@x.com"


def test_select_unknown_type_raises_even_without_rows(db):
    with pytest.raises(ResolutionError) as exc_info:
        db.select("NoSuchRecord", "SELECT * FROM users")

    assert exc_info.value.type_name == "NoSuchRecord"


def test_select_one_returns_first_row_as_dict(db):
    add_user(db, "a@x.com", "Ada")
    add_user(db, "b@x.com", "Bob")

    row = db.select_one("SELECT email, name FROM users ORDER BY id")

    assert row == {"email": "a@x.com", "name": "Ada"}


def test_select_one_without_matches_returns_none(db):
    assert db.select_one("SELECT * FROM users WHERE id = :id", {"id": 42}) is None


def test_unbound_parameter_is_a_statement_error(db):
    with pytest.raises(StatementError):
        db.select_one("SELECT * FROM users WHERE email = :email", {})


def test_non_mapping_parameters_are_a_statement_error(db):
    with pytest.raises(StatementError):
        db.select_one("SELECT * FROM users WHERE email = :email", ["a@x.com"])


def test_malformed_query_raises_and_connection_stays_usable(db):
    with pytest.raises(StatementError) as exc_info:
        db.select_one("SELEC nonsense")

    assert exc_info.value.query == "SELEC nonsense"
    assert isinstance(exc_info.value.__cause__, Exception)
    assert count_users(db) == 0


# ---------------------------------------------------------------------------
# insert
# ---------------------------------------------------------------------------

def test_insert_guarded_by_existence_query_is_idempotent(db):
    params = {"email": "a@x.com", "name": "Ada"}
    exists = {"email": "a@x.com"}

    first = db.insert("User", INSERT_USER, params, EXISTS_BY_EMAIL, exists)
    second = db.insert("User", INSERT_USER, params, EXISTS_BY_EMAIL, exists)

    assert first is True
    assert second is False
    assert count_users(db) == 1


def test_insert_skipped_never_executes_insert_statement(db):
    add_user(db, "a@x.com")

    # The insert targets a missing table and would fail if it ran.
    result = db.insert(
        "User",
        "INSERT INTO missing_table (x) VALUES (:x)", {"x": 1},
        EXISTS_BY_EMAIL, {"email": "a@x.com"},
    )

    assert result is False


def test_insert_without_existence_query_runs_and_records_id(db):
    assert db.insert("User", INSERT_USER, {"email": "a@x.com", "name": None}) is True

    row = db.select_one("SELECT id FROM users WHERE email = :email", {"email": "a@x.com"})
    assert db.last_insert_id() == row["id"]


def test_insert_constraint_violation_is_a_statement_error(db):
    add_user(db, "a@x.com")

    with pytest.raises(StatementError):
        db.insert("User", INSERT_USER, {"email": "a@x.com", "name": None})

    assert count_users(db) == 1


def test_last_insert_id_rejects_sequence_name_without_sequences(db):
    add_user(db, "a@x.com")

    with pytest.raises(StatementError):
        db.last_insert_id("users_id_seq")


@pytest.mark.parametrize(
    "sequence_name, expected_query",
    [(None, "SELECT lastval()"), ("users_id_seq", "SELECT currval(:name)")],
)
def test_last_insert_id_asks_postgresql_session(db, monkeypatch, sequence_name, expected_query):
    calls = []

    def fake_execute(query, params, handle):
        calls.append((query, params))
        return 42

    monkeypatch.setattr(db.engine.dialect, "name", "postgresql")
    monkeypatch.setattr(db, "_execute", fake_execute)

    assert db.last_insert_id(sequence_name) == 42
    assert calls[0][0] == expected_query
    if sequence_name is not None:
        assert calls[0][1] == {"name": sequence_name}


# ---------------------------------------------------------------------------
# update
# ---------------------------------------------------------------------------

def test_update_returns_requeried_record(db):
    add_user(db, "a@x.com", "Ada")

    updated = db.update(
        "User",
        "UPDATE users SET name = :name WHERE email = :email",
        {"name": "Ada L.", "email": "a@x.com"},
        "SELECT id, email, name FROM users WHERE email = :email",
        {"email": "a@x.com"},
    )

    assert isinstance(updated, User)
    assert updated.name == "Ada L."


def test_update_skipped_when_no_row_exists(db):
    # The update is invalid SQL and would fail if it ran.
    result = db.update(
        "User",
        "UPDATE nowhere SET x = :x", {"x": 1},
        EXISTS_BY_EMAIL, {"email": "ghost@x.com"},
    )

    assert result is None


def test_update_returns_none_when_requery_finds_nothing(db):
    add_user(db, "a@x.com")

    result = db.update(
        "User",
        "UPDATE users SET email = :new WHERE email = :old",
        {"new": "moved@x.com", "old": "a@x.com"},
        EXISTS_BY_EMAIL,
        {"email": "a@x.com"},
    )

    assert result is None
    assert db.select_one(EXISTS_BY_EMAIL, {"email": "moved@x.com"}) is not None


def test_update_without_existence_query_returns_none_but_updates(db):
    add_user(db, "a@x.com", "Ada")

    result = db.update("User", "UPDATE users SET name = :name", {"name": "Renamed"})

    assert result is None
    assert db.select_one("SELECT name FROM users") == {"name": "Renamed"}


# ---------------------------------------------------------------------------
# delete
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("emails", [[], ["a@x.com"], ["a@x.com", "b@x.com", "c@x.com"]])
def test_delete_reports_true_regardless_of_row_count(db, emails):
    for email in emails:
        add_user(db, email)

    assert db.delete("DELETE FROM users WHERE email LIKE :pattern", {"pattern": "%@x.com"}) is True
    assert count_users(db) == 0


# ---------------------------------------------------------------------------
# transactions
# ---------------------------------------------------------------------------

def test_commit_persists_transaction(db):
    assert db.begin_transaction() is True
    add_user(db, "a@x.com")
    assert db.in_transaction()
    assert db.commit() is True

    assert not db.in_transaction()
    assert count_users(db) == 1


def test_roll_back_discards_transaction(db):
    db.begin_transaction()
    add_user(db, "a@x.com")
    add_user(db, "b@x.com")
    assert db.roll_back() is True

    assert count_users(db) == 0


def test_transactions_do_not_nest(db):
    db.begin_transaction()

    with pytest.raises(StatementError):
        db.begin_transaction()

    db.roll_back()


@pytest.mark.parametrize("primitive", ["commit", "roll_back"])
def test_commit_and_roll_back_require_open_transaction(db, primitive):
    with pytest.raises(StatementError):
        getattr(db, primitive)()


def test_failed_statement_inside_transaction_leaves_it_to_caller(db):
    db.begin_transaction()
    add_user(db, "a@x.com")

    with pytest.raises(StatementError):
        db.select_one("SELEC nonsense")

    assert db.in_transaction()
    db.roll_back()
    assert count_users(db) == 0


def test_close_rolls_back_open_transaction(tmp_path, registry):
    path = str(tmp_path / "app.db")
    db = Database(path, driver="sqlite", registry=registry)
    metadata.create_all(db.engine)
    db.begin_transaction()
    add_user(db, "a@x.com")
    db.close()

    with Database(path, driver="sqlite", registry=registry) as reopened:
        assert count_users(reopened) == 0


# ---------------------------------------------------------------------------
# connection lifecycle
# ---------------------------------------------------------------------------

def test_constructor_does_not_connect(tmp_path):
    db = Database(str(tmp_path / "missing" / "app.db"), driver="sqlite")

    assert db.connection_error == ""


def test_connection_failure_surfaces_at_first_use(tmp_path):
    db = Database(str(tmp_path / "missing" / "app.db"), driver="sqlite")

    with pytest.raises(DatabaseConnectionError):
        db.select_one("SELECT 1")

    assert db.connection_error
    with pytest.raises(DatabaseConnectionError) as exc_info:
        db.delete("DELETE FROM users")
    assert str(exc_info.value) == db.connection_error


def test_connect_opens_eagerly(tmp_path):
    with pytest.raises(DatabaseConnectionError):
        Database(str(tmp_path / "missing" / "app.db"), driver="sqlite").connect()


def test_connection_is_created_once(db):
    first = db.connection

    db.select_one("SELECT 1 AS one")

    assert db.connection is first


def test_context_manager_closes_connection(tmp_path, registry):
    with Database(str(tmp_path / "app.db"), driver="sqlite", registry=registry) as db:
        assert db.select_one("SELECT 1 AS one") == {"one": 1}
        conn = db.connection

    assert conn.closed


def test_repr_hides_password():
    db = Database("app", "db.internal", "app", "s3cret", 3306, driver="mysql+pymysql")

    assert "s3cret" not in repr(db)


def test_get_database_returns_process_wide_instance():
    first = get_database()

    assert get_database() is first
    reset_database()
    assert get_database() is not first


def test_select_refuses_class_clashing_with_registered_name(db):
    add_user(db, "a@x.com")
    db.select("User", "SELECT id FROM users")
    impostor = type("User", (), {})

    with pytest.raises(ResolutionError):
        db.select(impostor, "SELECT id, email FROM users")
