import pytest
from sqlalchemy.exc import DBAPIError, IntegrityError, NoResultFound, OperationalError

from event_tasks.core.errors import (
    Conflict,
    InternalError,
    InvalidReference,
    MalformedInput,
    NotFound,
    TransientStorageError,
    translate_storage_error,
)
from event_tasks.models.assignment import Assignment
from event_tasks.models.user import User
from event_tasks.tests.conftest import count_rows, create_users


class FakePgError(Exception):
    def __init__(self, message, pgcode):
        super().__init__(message)
        self.pgcode = pgcode


def integrity_error(message, pgcode=None):
    orig = FakePgError(message, pgcode) if pgcode else Exception(message)
    return IntegrityError("INSERT ...", {}, orig)


def test_unique_violation_from_store_is_conflict(seeded, store):
    with pytest.raises(Conflict) as excinfo:
        with store.transaction():
            store.add(User(name="Copy", email="user1@test.local", password="x"))

    assert excinfo.value.status_code == 409
    assert "users.email" in excinfo.value.constraint
    assert count_rows(seeded, User) == 3


def test_foreign_key_violation_from_store_is_invalid_reference(seeded, store):
    with pytest.raises(InvalidReference) as excinfo:
        with store.transaction():
            store.add(Assignment(task_id="no-such-task", user_id=1))

    assert excinfo.value.status_code == 400
    assert count_rows(seeded, Assignment) == 0


def test_postgres_codes_are_classified():
    assert isinstance(translate_storage_error(integrity_error("dup", "23505")), Conflict)
    assert isinstance(translate_storage_error(integrity_error("fk", "23503")), InvalidReference)
    assert isinstance(translate_storage_error(integrity_error("null", "23502")), MalformedInput)
    assert isinstance(translate_storage_error(integrity_error("other", "23000")), InternalError)


def test_already_classified_errors_pass_through_unchanged():
    original = NotFound("Task", "abc")
    assert translate_storage_error(original) is original

    invalid = InvalidReference("assigned_to", [9])
    assert translate_storage_error(invalid) is invalid


@pytest.mark.parametrize("pgcode", ["08006", "08001", "53300", "57P01", "40001", "40P01"])
def test_connection_and_lock_sqlstates_are_transient(pgcode):
    operational = OperationalError("SELECT 1", {}, FakePgError("server closed the connection", pgcode))
    assert isinstance(translate_storage_error(operational), TransientStorageError)


def test_connection_failures_are_transient():
    locked = OperationalError("UPDATE tasks ...", {}, Exception("database is locked"))
    assert isinstance(translate_storage_error(locked), TransientStorageError)

    invalidated = DBAPIError("SELECT 1", {}, Exception("gone"), connection_invalidated=True)
    assert isinstance(translate_storage_error(invalidated), TransientStorageError)


@pytest.mark.parametrize(
    "message",
    ["no such table: tasks", "no such column: tasks.priority", "near \"SELEC\": syntax error"],
)
def test_schema_and_sql_mistakes_are_internal(message):
    operational = OperationalError("SELECT ...", {}, Exception(message))

    error = translate_storage_error(operational)

    assert isinstance(error, InternalError)
    assert error.status_code == 500
    assert message not in error.message


def test_no_result_is_not_found():
    assert isinstance(translate_storage_error(NoResultFound()), NotFound)


def test_unexpected_errors_hide_details():
    error = translate_storage_error(RuntimeError("password=secret at db.internal"))

    assert isinstance(error, InternalError)
    assert error.to_body() == {
        "statusCode": 500,
        "error": "Internal Server Error",
        "message": "Unexpected error occurred.",
    }


def test_invalid_reference_body_enumerates_ids():
    body = InvalidReference("assigned_to", [9, 4]).to_body()
    assert body == {"statusCode": 400, "error": "Bad Request", "message": "Invalid user IDs: 9, 4"}


def test_transaction_rolls_back_every_write(seeded, store):
    with pytest.raises(Conflict):
        with store.transaction():
            store.add(User(name="Fresh", email="fresh@test.local", password="x"))
            store.flush()
            store.add(User(name="Copy", email="user2@test.local", password="x"))

    assert count_rows(seeded, User, User.email == "fresh@test.local") == 0
    create_users(seeded, 10)
    assert count_rows(seeded, User) == 4
