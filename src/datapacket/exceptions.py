"""
Packet-specific exception classes.
"""
import sqlite3

import psycopg


class PacketError(Exception):
    """Base class for all datapacket errors.
    """


class SchemaError(PacketError):
    """Column descriptors are missing or malformed.
    """


class StreamError(PacketError):
    """Row cursor failed while being drained.
    """


class SourceError(PacketError):
    """Failure reported by the data source itself.

    The message and code are carried exactly as the source produced them.
    Nothing in this package rewrites, localizes or suppresses them.
    """

    def __init__(self, message: str, code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code

    def __repr__(self) -> str:
        return f'SourceError(message={self.message!r}, code={self.code!r})'

    @classmethod
    def from_driver_error(cls, exc: BaseException) -> 'SourceError':
        """Lift a driver exception into a SourceError, keeping its text.
        """
        return cls(driver_error_message(exc), driver_error_code(exc))


class InvalidInputError(PacketError, ValueError):
    """Widget input rejected under the `reject` invalid-input policy.
    """


class RequestError(PacketError, ValueError):
    """Request body does not match its declared shape.
    """


def driver_error_message(exc: BaseException) -> str:
    """Message text as the source produced it.

    psycopg keeps the server's primary message on `diag`; every other driver
    puts it in str(exc).
    """
    diag = getattr(exc, 'diag', None)
    primary = getattr(diag, 'message_primary', None)
    if primary:
        return primary
    return str(exc)


def driver_error_code(exc: BaseException) -> int | None:
    """Numeric error code reported by the source, if any.

    sqlite3 reports the extended result code on `sqlite_errorcode`. psycopg
    carries a SQLSTATE string instead, so no numeric code is available.
    """
    code = getattr(exc, 'sqlite_errorcode', None)
    if isinstance(code, int) and not isinstance(code, bool):
        return code
    return None


DbConnectionError = (
    psycopg.OperationalError,
    psycopg.InterfaceError,
    sqlite3.OperationalError,
    sqlite3.InterfaceError,
    )

IntegrityError = (
    psycopg.IntegrityError,
    sqlite3.IntegrityError,
    )

ProgrammingError = (
    psycopg.ProgrammingError,
    psycopg.DatabaseError,
    sqlite3.ProgrammingError,
    sqlite3.DatabaseError,
    )
