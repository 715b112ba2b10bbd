"""
Column descriptor abstraction across database drivers.
"""
import logging
from collections.abc import Mapping
from typing import Any, Self

from datapacket.exceptions import SchemaError

logger = logging.getLogger(__name__)


class ColumnDescriptor:
    """What a row cursor knows about one of its columns.

    - name: column identifier as reported by the source
    - storage_type: Python type, type OID or type name; None when unknown
    - max_length: declared maximum length; None when unbounded or unknown
    - nullable: whether NULL is allowed; None when the driver does not say
    """

    __slots__ = ('name', 'storage_type', 'max_length', 'nullable')

    def __init__(self,
                 name: str,
                 storage_type: Any = None,
                 max_length: int | None = None,
                 nullable: bool | None = None):
        self.name = name
        self.storage_type = storage_type
        self.max_length = max_length
        self.nullable = nullable

    def __repr__(self) -> str:
        return (f'ColumnDescriptor(name={self.name!r}, storage_type={self.storage_type!r}, '
                f'max_length={self.max_length!r}, nullable={self.nullable!r})')

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ColumnDescriptor):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization.
        """
        return {
            'name': self.name,
            'storage_type': self.storage_type,
            'max_length': self.max_length,
            'nullable': self.nullable,
            }

    @classmethod
    def coerce(cls, item: Any) -> Self:
        """Accept a descriptor, a mapping, or a (name, type, max_length, nullable) tuple.

        Mapping keys may be snake_case or the camelCase wire names.
        """
        if isinstance(item, ColumnDescriptor):
            return item
        if isinstance(item, Mapping):
            if 'name' not in item:
                raise SchemaError(f'Column descriptor has no name: {dict(item)!r}')
            return cls(
                name=item['name'],
                storage_type=item.get('storage_type', item.get('storageType')),
                max_length=item.get('max_length', item.get('maxLength')),
                nullable=item.get('nullable'),
                )
        if isinstance(item, tuple | list) and 1 <= len(item) <= 4:
            return cls(*item)
        raise SchemaError(f'Unrecognized column descriptor: {item!r}')

    @classmethod
    def from_cursor_description(cls, description_item: Any, dialect: str) -> Self:
        """Create a ColumnDescriptor from one cursor.description item.

        Args:
            description_item: One item from cursor.description
            dialect: Database type ('postgresql', 'sqlite', anything else)

        Returns
            ColumnDescriptor instance
        """
        if dialect == 'postgresql':
            return cls._from_postgres_description(description_item)
        if dialect == 'sqlite':
            return cls._from_sqlite_description(description_item)
        return cls._from_generic_description(description_item)

    @classmethod
    def _from_postgres_description(cls, description_item: Any) -> Self:
        """psycopg Column objects: OID type codes, no nullability.
        """
        display_size = getattr(description_item, 'display_size', None)
        return cls(
            name=getattr(description_item, 'name', None),
            storage_type=getattr(description_item, 'type_code', None),
            max_length=display_size if display_size and display_size > 0 else None,
            nullable=None,
            )

    @classmethod
    def _from_sqlite_description(cls, description_item: Any) -> Self:
        """sqlite3 only reports the name; everything else is None.
        """
        name = description_item[0] if len(description_item) > 0 else None
        type_code = description_item[1] if len(description_item) > 1 else None
        return cls(name=name, storage_type=type_code)

    @classmethod
    def _from_generic_description(cls, description_item: Any) -> Self:
        """PEP-249 7-tuple: name, type_code, display_size, internal_size,
        precision, scale, null_ok.
        """
        if len(description_item) >= 7:
            internal_size = description_item[3]
            null_ok = description_item[6]
            return cls(
                name=description_item[0],
                storage_type=description_item[1],
                max_length=internal_size if isinstance(internal_size, int) and internal_size > 0 else None,
                nullable=None if null_ok is None else bool(null_ok),
                )
        return cls(
            name=description_item[0] if len(description_item) > 0 else None,
            storage_type=description_item[1] if len(description_item) > 1 else None,
            )

    @staticmethod
    def get_names(descriptors: list[Self]) -> list[str]:
        """Get column names from a list of descriptors.
        """
        return [d.name for d in descriptors]


def descriptors_from_cursor_description(cursor: Any, dialect: str) -> list[ColumnDescriptor]:
    """Create descriptors directly from a cursor description.

    Args:
        cursor: Database cursor with a description attribute
        dialect: Database type ('postgresql', 'sqlite', ...)

    Returns
        List of ColumnDescriptor objects, empty when the statement produced
        no result set
    """
    if cursor.description is None:
        return []

    return [ColumnDescriptor.from_cursor_description(item, dialect)
            for item in cursor.description]
