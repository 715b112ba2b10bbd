"""
Packet queries against live connections.

Runs a statement on a DB-API connection (sqlite3, psycopg, pyodbc-style) or a
SQLAlchemy connection and builds packets from the resulting cursor:

>>> import sqlite3
>>> cn = sqlite3.connect(':memory:')
>>> packet = select_packet(cn, "select 1 as Total_CNT, 'Ann' as User_NM")
>>> packet.meta.types
('integer', 'string')
>>> packet.data
((1, 'Ann'),)
"""
import logging
import time
from functools import wraps
from typing import Any

import sqlalchemy as sa

from datapacket.builder import build_from_cursor, build_multi_from_cursor
from datapacket.config.naming import NamingConfig
from datapacket.cursor import DbApiRowCursor, translate_driver_errors
from datapacket.options import PacketOptions
from datapacket.packet import MultiPacket, Packet

logger = logging.getLogger(__name__)

__all__ = [
    'get_dialect_name',
    'open_cursor',
    'select_packet',
    'select_multi_packet',
]


def dumpsql(func):
    """Decorator for logging SQL statements and parameters."""
    @wraps(func)
    def wrapper(cn: Any, sql: str, *args: Any, **kwargs: Any):
        start = time.time()
        logger.debug(f'SQL:\n{sql}\nargs: {args}')
        try:
            return func(cn, sql, *args, **kwargs)
        except Exception:
            logger.error(f'Error with query:\nSQL:\n{sql}\nargs: {args}')
            raise
        finally:
            logger.debug(f'Query time: {time.time() - start:.4f}s')
    return wrapper


def get_dialect_name(obj: Any) -> str:
    """Get dialect name for a database connection.

    Returns 'postgresql', 'sqlite', 'mssql', or 'generic' for DB-API
    connections that follow PEP-249 descriptions without extras.
    """
    if isinstance(obj, sa.engine.Connection):
        return str(obj.dialect.name).lower()

    # SQLAlchemy pool wrapper (_ConnectionFairy) - unwrap to DBAPI connection
    if hasattr(obj, 'dbapi_connection'):
        return get_dialect_name(obj.dbapi_connection)

    type_name = f'{type(obj).__module__}.{type(obj).__name__}'
    if 'psycopg' in type_name:
        return 'postgresql'
    if 'sqlite3' in type_name:
        return 'sqlite'
    if 'pyodbc' in type_name or 'pymssql' in type_name:
        return 'mssql'
    return 'generic'


def _raw_connection(cn: Any) -> Any:
    if isinstance(cn, sa.engine.Connection):
        return cn.connection.dbapi_connection
    if hasattr(cn, 'dbapi_connection'):
        return cn.dbapi_connection
    return cn


def _params(args: tuple) -> Any:
    if len(args) == 1 and isinstance(args[0], list | tuple | dict):
        return args[0]
    return args


def open_cursor(cn: Any, sql: str, *args: Any,
                options: PacketOptions | None = None) -> DbApiRowCursor:
    """Execute a statement and wrap its cursor for packet building.

    Errors reported by the data source surface as SourceError; the cursor is
    closed before they propagate.
    """
    options = options if options is not None else PacketOptions()
    dialect = get_dialect_name(cn)
    cursor = _raw_connection(cn).cursor()
    try:
        with translate_driver_errors():
            params = _params(args)
            if params:
                cursor.execute(sql, params)
            else:
                cursor.execute(sql)
    except BaseException:
        cursor.close()
        raise
    return DbApiRowCursor(cursor, dialect, sniff_types=options.sniff_types)


@dumpsql
def select_packet(cn: Any, sql: str, *args: Any, options: PacketOptions | None = None,
                  config: NamingConfig | None = None) -> Packet:
    """Execute a statement and return its first result set as a Packet.
    """
    cursor = open_cursor(cn, sql, *args, options=options)
    packet = build_from_cursor(cursor, config=config)
    logger.debug(f'Select returned {len(packet)} row(s)')
    return packet


@dumpsql
def select_multi_packet(cn: Any, sql: str, *args: Any, options: PacketOptions | None = None,
                        config: NamingConfig | None = None) -> MultiPacket:
    """Execute a statement and return every result set it produces.

    Drivers without multiple result set support yield a single packet.
    """
    cursor = open_cursor(cn, sql, *args, options=options)
    multi = build_multi_from_cursor(cursor, config=config)
    logger.debug(f'Statement returned {len(multi)} result set(s)')
    return multi


if __name__ == '__main__':
    __import__('doctest').testmod(optionflags=4 | 8 | 32)
