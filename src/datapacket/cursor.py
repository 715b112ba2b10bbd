"""
Row cursors consumed by the packet builder.

A row cursor exposes a column description, sequential row fetching and
`close`. Cursors that can carry several result sets also expose `nextset`.

Two implementations are provided:

- DbApiRowCursor wraps a PEP-249 cursor after a statement has run
- ListRowCursor serves result sets that are already in memory
"""
import logging
from collections import deque
from collections.abc import Iterable, Iterator, Sequence
from typing import Any, Protocol, runtime_checkable

from datapacket.adapters.column_info import ColumnDescriptor
from datapacket.adapters.column_info import descriptors_from_cursor_description
from datapacket.adapters.type_mapping import python_type_of
from datapacket.exceptions import DbConnectionError, IntegrityError, ProgrammingError
from datapacket.exceptions import SourceError

logger = logging.getLogger(__name__)

__all__ = [
    'RowCursor',
    'DbApiRowCursor',
    'ListRowCursor',
    'translate_driver_errors',
]


@runtime_checkable
class RowCursor(Protocol):

    def column_descriptors(self) -> Sequence[ColumnDescriptor]: ...

    def fetchone(self) -> Sequence[Any] | None: ...

    def close(self) -> None: ...


class translate_driver_errors:
    """Context manager lifting driver errors raised by the data source into
    SourceError. Connection-level failures pass through untouched.
    """

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc is None:
            return False
        if isinstance(exc, DbConnectionError):
            return False
        if isinstance(exc, IntegrityError + ProgrammingError):
            raise SourceError.from_driver_error(exc) from exc
        return False


class DbApiRowCursor:
    """RowCursor over a DB-API cursor that has already executed a statement.

    Rows are fetched in chunks of `arraysize`. When the driver reports no
    storage types (sqlite3) and `sniff_types` is on, the first row is fetched
    early and each column's storage type is taken from its first non-null
    value.
    """

    def __init__(self, cursor: Any, dialect: str, sniff_types: bool = True,
                 arraysize: int = 500) -> None:
        self.dbapi_cursor = cursor
        self.dialect = dialect
        self.sniff_types = sniff_types
        self.arraysize = arraysize
        self._buffer: deque = deque()
        self._exhausted = False
        self._closed = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    @property
    def closed(self) -> bool:
        return self._closed

    def _has_result_set(self) -> bool:
        return self.dbapi_cursor.description is not None

    def _fill_buffer(self) -> None:
        if self._exhausted or not self._has_result_set():
            self._exhausted = True
            return
        with translate_driver_errors():
            chunk = self.dbapi_cursor.fetchmany(self.arraysize)
        if not chunk:
            self._exhausted = True
            return
        self._buffer.extend(chunk)

    def column_descriptors(self) -> list[ColumnDescriptor]:
        descriptors = descriptors_from_cursor_description(self.dbapi_cursor, self.dialect)
        if not self.sniff_types or all(d.storage_type is not None for d in descriptors):
            return descriptors
        return self._sniff(descriptors)

    def _sniff(self, descriptors: list[ColumnDescriptor]) -> list[ColumnDescriptor]:
        if not self._buffer:
            self._fill_buffer()
        for i, descriptor in enumerate(descriptors):
            if descriptor.storage_type is not None:
                continue
            for row in self._buffer:
                sniffed = python_type_of(row[i])
                if sniffed is not None:
                    descriptor.storage_type = sniffed
                    break
        logger.debug(f'Sniffed storage types from {len(self._buffer)} buffered row(s)')
        return descriptors

    def fetchone(self) -> Sequence[Any] | None:
        if not self._buffer:
            self._fill_buffer()
        if not self._buffer:
            return None
        return self._buffer.popleft()

    def nextset(self) -> bool:
        """Advance to the next result set; False when there is none.

        Returns False for drivers that don't support multiple result sets.
        """
        if not hasattr(self.dbapi_cursor, 'nextset'):
            return False
        with translate_driver_errors():
            advanced = self.dbapi_cursor.nextset()
        self._buffer.clear()
        self._exhausted = False
        return bool(advanced)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._buffer.clear()
        self.dbapi_cursor.close()


class ListRowCursor:
    """RowCursor over result sets held in memory.

    Each result set is a (descriptors, rows) pair; descriptors may be
    ColumnDescriptor objects, mappings or tuples.
    """

    def __init__(self, *result_sets: tuple[Iterable[Any], Iterable[Sequence[Any]]]) -> None:
        self._sets = list(result_sets) or [((), ())]
        self._index = 0
        self._rows: Iterator = iter(self._sets[0][1])
        self.closed = False

    def column_descriptors(self) -> list[ColumnDescriptor]:
        return [ColumnDescriptor.coerce(d) for d in self._sets[self._index][0]]

    def fetchone(self) -> Sequence[Any] | None:
        return next(self._rows, None)

    def nextset(self) -> bool:
        if self._index + 1 >= len(self._sets):
            return False
        self._index += 1
        self._rows = iter(self._sets[self._index][1])
        return True

    def close(self) -> None:
        self.closed = True
