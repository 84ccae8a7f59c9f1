"""
Database error hierarchy.

Driver errors from PyMySQL are translated into these classes by MySQL error
code, so callers can catch a specific failure without knowing the driver.
"""

from __future__ import annotations

from typing import Dict, Optional, Type

from pymysql.constants import CR, ER


class DatabaseError(Exception):
    """Base class for every database failure. ``code`` is the MySQL error number, if any."""

    category = "database"

    def __init__(self, message: str, code: Optional[int] = None) -> None:
        super().__init__(message)
        self.code = code


class DuplicateEntryError(DatabaseError):
    category = "duplicate_entry"


class InvalidReferenceError(DatabaseError):
    category = "invalid_reference"


class ReferencedRowError(DatabaseError):
    category = "referenced_row"


class InvalidFieldError(DatabaseError):
    category = "invalid_field"


class QuerySyntaxError(DatabaseError):
    category = "syntax"


class AccessDeniedError(DatabaseError):
    category = "access_denied"


class DatabaseConnectionRefusedError(DatabaseError):
    category = "connection_refused"


class DatabaseConnectionLostError(DatabaseError):
    category = "connection_lost"


class InvalidIdentifierError(DatabaseError):
    """A table or column name failed validation before reaching the server."""

    category = "invalid_identifier"


ERROR_TYPES: Dict[int, Type[DatabaseError]] = {
    ER.DUP_ENTRY: DuplicateEntryError,
    ER.NO_REFERENCED_ROW_2: InvalidReferenceError,
    ER.ROW_IS_REFERENCED_2: ReferencedRowError,
    ER.BAD_FIELD_ERROR: InvalidFieldError,
    ER.PARSE_ERROR: QuerySyntaxError,
    ER.ACCESS_DENIED_ERROR: AccessDeniedError,
    CR.CR_CONN_HOST_ERROR: DatabaseConnectionRefusedError,
    CR.CR_SERVER_LOST: DatabaseConnectionLostError,
    CR.CR_SERVER_GONE_ERROR: DatabaseConnectionLostError,
}

ERROR_MESSAGES: Dict[Type[DatabaseError], str] = {
    DuplicateEntryError: "Duplicate entry",
    InvalidReferenceError: "Referenced row does not exist",
    ReferencedRowError: "Row is still referenced by other records",
    InvalidFieldError: "Unknown column",
    QuerySyntaxError: "SQL syntax error",
    AccessDeniedError: "Access denied",
    DatabaseConnectionRefusedError: "Connection to the database server was refused",
    DatabaseConnectionLostError: "Connection to the database server was lost",
}


def error_code(exc: BaseException) -> Optional[int]:
    """MySQL error number carried by a PyMySQL exception, if any."""
    if exc.args and isinstance(exc.args[0], int):
        return exc.args[0]
    return None


def translate_error(exc: BaseException) -> DatabaseError:
    """Build the :class:`DatabaseError` matching a driver exception."""
    if isinstance(exc, DatabaseError):
        return exc
    code = error_code(exc)
    error_type = ERROR_TYPES.get(code, DatabaseError) if code is not None else DatabaseError
    detail = exc.args[1] if len(exc.args) > 1 else str(exc)
    prefix = ERROR_MESSAGES.get(error_type, "Database error")
    return error_type(f"{prefix}: {detail}", code)
