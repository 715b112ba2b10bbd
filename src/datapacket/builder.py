"""
Packet construction.

`build` turns one result set (column descriptors plus a row stream) into a
Packet; `build_multi` does the same for every result set of one operation, in
emission order. The cursor-level variants own the cursor for the duration of
the call and release it on every exit path.

A build either completes or raises. No partially drained packet is ever
returned: SchemaError and StreamError abort the build, SourceError from the
data source propagates exactly as raised.
"""
import logging
from collections.abc import Iterable, Iterator, Mapping, Sequence
from typing import Any

from datapacket.config.naming import NamingConfig
from datapacket.cursor import RowCursor
from datapacket.exceptions import PacketError, SchemaError
from datapacket.exceptions import StreamError
from datapacket.introspect import introspect
from datapacket.packet import Meta, MultiPacket, Packet
from datapacket.types import normalize_row

logger = logging.getLogger(__name__)

__all__ = [
    'build',
    'build_multi',
    'build_from_cursor',
    'build_multi_from_cursor',
    'iter_cursor',
]


def iter_cursor(cursor: RowCursor) -> Iterator[Sequence[Any]]:
    """Yield rows from a cursor until it reports the end of its result set."""
    while True:
        row = cursor.fetchone()
        if row is None:
            return
        yield row


def _positional(row: Any, names: list[str], index: int) -> tuple[Any, ...]:
    if isinstance(row, Mapping):
        try:
            return tuple(row[name] for name in names)
        except KeyError as e:
            raise StreamError(f'Row {index} is missing column {e.args[0]!r}') from e
    try:
        return tuple(row)
    except TypeError as e:
        raise StreamError(f'Row {index} is not a sequence: {row!r}') from e


def _drain(rows: Iterable[Any], names: list[str]) -> tuple[tuple[Any, ...], ...]:
    width = len(names)
    data = []
    for index, row in enumerate(rows):
        cells = _positional(row, names, index)
        if len(cells) != width:
            raise StreamError(f'Row {index} has {len(cells)} cells, expected {width}')
        data.append(normalize_row(cells))
    return tuple(data)


def _close_stream(rows: Any) -> None:
    close = getattr(rows, 'close', None)
    if callable(close):
        close()


def build(descriptors: Iterable[Any] | None, rows: Iterable[Any] | None,
          config: NamingConfig | None = None) -> Packet:
    """Build a Packet from one result set.

    Args:
        descriptors: Column descriptors in source order
        rows: Row stream; sequences aligned with the descriptors, or
            mappings keyed by column name. Drained fully, in order.
        config: Naming overrides (defaults to the loaded NamingConfig)

    Returns
        Packet with metadata populated even when there are no rows

    Raises
        SchemaError: descriptors are malformed
        StreamError: the row stream fails or yields a misaligned row
        SourceError: the data source reported a failure while streaming
    """
    rows = () if rows is None else rows
    try:
        columns = introspect(descriptors, config=config)
        names = [c.name for c in columns]
        try:
            data = _drain(rows, names)
        except PacketError:
            raise
        except Exception as e:
            raise StreamError(f'Row stream failed: {e}') from e
    except BaseException:
        _close_stream(rows)
        raise

    packet = Packet(meta=Meta.from_columns(columns), data=data)
    logger.debug(f'Built packet: {len(names)} column(s), {len(data)} row(s)')
    return packet


def build_multi(result_sets: Iterable[tuple[Iterable[Any] | None, Iterable[Any] | None]],
                config: NamingConfig | None = None) -> MultiPacket:
    """Build one Packet per (descriptors, rows) pair, preserving order.

    When any result set fails, the row streams of the later pairs are closed
    before the error propagates.
    """
    pairs = list(result_sets)
    packets = []
    for i, (descriptors, rows) in enumerate(pairs):
        try:
            packets.append(build(descriptors, rows, config=config))
        except BaseException:
            for _, pending in pairs[i + 1:]:
                _close_stream(pending)
            raise
    packets = tuple(packets)
    logger.debug(f'Built multi-packet with {len(packets)} result set(s)')
    return MultiPacket(results=packets)


def _build_current(cursor: RowCursor, config: NamingConfig | None) -> Packet:
    try:
        descriptors = cursor.column_descriptors()
    except PacketError:
        raise
    except Exception as e:
        raise SchemaError(f'Cursor did not describe its columns: {e}') from e
    return build(descriptors, iter_cursor(cursor), config=config)


def build_from_cursor(cursor: RowCursor, config: NamingConfig | None = None) -> Packet:
    """Build a Packet from the cursor's current result set, then close it."""
    try:
        return _build_current(cursor, config)
    finally:
        cursor.close()


def build_multi_from_cursor(cursor: RowCursor, config: NamingConfig | None = None) -> MultiPacket:
    """Build a Packet for every result set the cursor yields, then close it.

    Cursors without `nextset` are treated as carrying one result set.
    """
    packets = []
    try:
        while True:
            packets.append(_build_current(cursor, config))
            nextset = getattr(cursor, 'nextset', None)
            if nextset is None or not nextset():
                break
    finally:
        cursor.close()
    logger.debug(f'Built multi-packet with {len(packets)} result set(s) from cursor')
    return MultiPacket(results=tuple(packets))
