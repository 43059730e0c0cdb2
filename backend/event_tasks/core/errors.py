"""Error taxonomy shared by services and routes.

Every failure that reaches a caller is one of the ``DomainError`` subclasses
below. Storage failures are converted by ``translate_storage_error``, the only
place that knows about SQLAlchemy/DBAPI exception shapes.
"""
import logging
import re
from typing import Iterable, Optional

from sqlalchemy.exc import (
    DBAPIError,
    IntegrityError,
    NoResultFound,
    OperationalError,
    TimeoutError as PoolTimeoutError,
)

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"
NOT_NULL_VIOLATION = "23502"
CHECK_VIOLATION = "23514"
# connection exception, insufficient resources, operator intervention, rollback (serialization, deadlock)
TRANSIENT_SQLSTATE_CLASSES = ("08", "53", "57P", "40")
TRANSIENT_SQLITE_MARKERS = ("database is locked", "database is busy", "unable to open database file")

SQLITE_UNIQUE_PATTERN = re.compile(r"UNIQUE constraint failed: (?P<target>.+)$", re.IGNORECASE)


class DomainError(Exception):
    status_code = 500
    error = "Internal Server Error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_body(self) -> dict:
        return {"statusCode": self.status_code, "error": self.error, "message": self.message}


class NotFound(DomainError):
    status_code = 404
    error = "Not Found"

    def __init__(self, entity: str, id: object = None):
        self.entity = entity
        self.id = id
        if id is None:
            message = f"{entity} not found"
        else:
            message = f"{entity} with ID {id} not found"
        super().__init__(message)


class InvalidReference(DomainError):
    status_code = 400
    error = "Bad Request"

    def __init__(self, field: str, offending_ids: Iterable[object], message: Optional[str] = None):
        self.field = field
        self.offending_ids = list(offending_ids)
        if message is None:
            listed = ", ".join(str(item) for item in self.offending_ids)
            message = f"Invalid user IDs: {listed}"
        super().__init__(message)


class MalformedInput(DomainError):
    status_code = 400
    error = "Bad Request"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"{field} {reason}" if field else reason)


class Conflict(DomainError):
    status_code = 409
    error = "Conflict"

    def __init__(self, constraint: str = ""):
        self.constraint = constraint
        suffix = f" ({constraint})" if constraint else ""
        super().__init__(f"A record with this value already exists.{suffix}")


class TransientStorageError(DomainError):
    status_code = 503
    error = "Service Unavailable"

    def __init__(self, message: str = "Database temporarily unavailable. Try again later."):
        super().__init__(message)


class InternalError(DomainError):
    status_code = 500
    error = "Internal Server Error"

    def __init__(self, message: str = "Unexpected error occurred."):
        super().__init__(message)


def _sqlstate(exc: DBAPIError) -> str:
    orig = getattr(exc, "orig", None)
    # psycopg2 exposes pgcode, psycopg 3 exposes sqlstate
    return str(getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None) or "")


def _classify_integrity_error(exc: IntegrityError) -> DomainError:
    code = _sqlstate(exc)
    text = str(getattr(exc, "orig", exc) or "")
    lowered = text.lower()

    if code == UNIQUE_VIOLATION or "unique constraint" in lowered or "duplicate key" in lowered:
        match = SQLITE_UNIQUE_PATTERN.search(text)
        if match:
            target = match.group("target").strip()
        else:
            diag = getattr(getattr(exc, "orig", None), "diag", None)
            target = str(getattr(diag, "constraint_name", "") or "")
        return Conflict(target)
    if code == FOREIGN_KEY_VIOLATION or "foreign key" in lowered:
        return InvalidReference(
            field="",
            offending_ids=[],
            message="Invalid reference: foreign key constraint failed",
        )
    if code in {NOT_NULL_VIOLATION, CHECK_VIOLATION} or "not null" in lowered or "check constraint" in lowered:
        return MalformedInput("", "Invalid data provided.")
    return InternalError("Database error occurred.")


def _is_transient(exc: DBAPIError) -> bool:
    if exc.connection_invalidated:
        return True
    if _sqlstate(exc).startswith(TRANSIENT_SQLSTATE_CLASSES):
        return True
    if isinstance(exc, OperationalError):
        text = str(getattr(exc, "orig", exc) or "").lower()
        return any(marker in text for marker in TRANSIENT_SQLITE_MARKERS)
    return False


def translate_storage_error(exc: Exception) -> DomainError:
    if isinstance(exc, DomainError):
        return exc
    if isinstance(exc, IntegrityError):
        return _classify_integrity_error(exc)
    if isinstance(exc, NoResultFound):
        return NotFound("Record")
    if isinstance(exc, PoolTimeoutError):
        return TransientStorageError()
    if isinstance(exc, DBAPIError) and _is_transient(exc):
        return TransientStorageError()
    logger.error("Unexpected storage failure: %s", exc.__class__.__name__, exc_info=exc)
    return InternalError()
