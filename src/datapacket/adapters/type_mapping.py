"""
Storage type resolution for result columns.

Maps whatever a driver reports as a column's storage type onto a small set of
storage families that the naming rules fall back to:

1. Python types (sqlite sniffing, pyodbc type codes, hand-built descriptors)
2. PostgreSQL type OIDs
3. Type names (SQL declarations, .NET type names, plain names)

The module identifies families only. It never converts values.
"""
import datetime
import decimal
import logging
from typing import Any

from psycopg.postgres import types as pg_types

logger = logging.getLogger(__name__)

INTEGER = 'integer'
DECIMAL = 'decimal'
TEMPORAL = 'temporal'
BOOLEAN = 'boolean'
STRING = 'string'

STORAGE_FAMILIES = (INTEGER, DECIMAL, TEMPORAL, BOOLEAN, STRING)

_oid = lambda x: pg_types.get(x).oid

postgres_families: dict[int, str] = {}

for v in [_oid('bigint'), _oid('int2'), _oid('int4'), _oid('int8'), _oid('integer'),
          _oid('oid')]:
    postgres_families[v] = INTEGER

for v in [_oid('float4'), _oid('float8'), _oid('double precision'), _oid('numeric'),
          _oid('money')]:
    postgres_families[v] = DECIMAL

for v in [_oid('date'), _oid('time'), _oid('timetz'), _oid('timestamp'),
          _oid('timestamptz'), _oid('interval')]:
    postgres_families[v] = TEMPORAL

for v in [_oid('bool'), _oid('boolean')]:
    postgres_families[v] = BOOLEAN

for v in [_oid('"char"'), _oid('bpchar'), _oid('character varying'), _oid('text'),
          _oid('name'), _oid('uuid'), _oid('varchar'), _oid('json'), _oid('jsonb')]:
    postgres_families[v] = STRING


# bool must precede int: bool is an int subclass
python_families: tuple[tuple[type, str], ...] = (
    (bool, BOOLEAN),
    (int, INTEGER),
    (float, DECIMAL),
    (decimal.Decimal, DECIMAL),
    (datetime.date, TEMPORAL),
    (datetime.time, TEMPORAL),
    (datetime.timedelta, TEMPORAL),
    (str, STRING),
    )


name_families: dict[str, str] = {}

for v in ['int', 'integer', 'bigint', 'smallint', 'tinyint', 'mediumint',
          'int2', 'int4', 'int8', 'int16', 'int32', 'int64', 'uint16', 'uint32',
          'uint64', 'serial', 'bigserial', 'smallserial', 'long', 'short', 'byte',
          'sbyte']:
    name_families[v] = INTEGER

for v in ['decimal', 'numeric', 'float', 'real', 'double', 'double precision',
          'money', 'smallmoney', 'float4', 'float8', 'single', 'number']:
    name_families[v] = DECIMAL

for v in ['date', 'datetime', 'datetime2', 'smalldatetime', 'datetimeoffset',
          'timestamp', 'timestamptz', 'timestamp with time zone',
          'timestamp without time zone', 'time', 'timetz', 'time with time zone',
          'time without time zone', 'interval', 'dateonly', 'timeonly', 'timespan']:
    name_families[v] = TEMPORAL

for v in ['bool', 'boolean', 'bit']:
    name_families[v] = BOOLEAN

for v in ['char', 'nchar', 'varchar', 'nvarchar', 'text', 'ntext', 'string', 'str',
          'character', 'character varying', 'uuid', 'uniqueidentifier', 'json',
          'jsonb', 'xml', 'guid', 'clob']:
    name_families[v] = STRING


def _family_from_name(type_name: str) -> str | None:
    """Look a declared type name up, ignoring case and size suffixes.

    >>> _family_from_name('NVARCHAR(50)')
    'string'
    >>> _family_from_name('Int32')
    'integer'
    >>> _family_from_name('numeric(18, 2)')
    'decimal'
    """
    base = type_name.split('(')[0].strip().lower()
    if base in name_families:
        return name_families[base]
    # unsigned/varying qualifiers, e.g. 'int unsigned'
    head = base.split(' ')[0]
    return name_families.get(head)


def resolve_storage_family(storage_type: Any) -> str:
    """Resolve a storage type to one of STORAGE_FAMILIES.

    Priority:
    1. Python types (walk the family table in order)
    2. PostgreSQL OIDs
    3. Type names
    4. Default to the string family

    >>> resolve_storage_family(bool)
    'boolean'
    >>> resolve_storage_family('datetime')
    'temporal'
    >>> resolve_storage_family(None)
    'string'
    """
    if storage_type is None:
        return STRING

    if isinstance(storage_type, type):
        for python_type, family in python_families:
            if issubclass(storage_type, python_type):
                return family
        return STRING

    if isinstance(storage_type, int) and not isinstance(storage_type, bool):
        family = postgres_families.get(storage_type)
        if family is None:
            logger.debug(f'Unknown type code {storage_type}, using string family')
            return STRING
        return family

    if isinstance(storage_type, str):
        family = _family_from_name(storage_type)
        if family is None:
            logger.debug(f'Unknown type name {storage_type!r}, using string family')
            return STRING
        return family

    return STRING


def python_type_of(value: Any) -> type | None:
    """Storage type for a sniffed value, or None for NULL.
    """
    if value is None:
        return None
    return type(value)


if __name__ == '__main__':
    __import__('doctest').testmod(optionflags=4 | 8 | 32)
