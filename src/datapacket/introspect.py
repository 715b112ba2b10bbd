"""
Schema introspection: column descriptors to column metadata.
"""
import logging
from collections.abc import Iterable
from typing import Any

from datapacket.adapters.column_info import ColumnDescriptor
from datapacket.config.naming import NamingConfig
from datapacket.exceptions import SchemaError
from datapacket.naming import classify
from datapacket.packet import ColumnMeta, Constraint

logger = logging.getLogger(__name__)

__all__ = ['introspect', 'describe_column']


def describe_column(descriptor: ColumnDescriptor,
                    config: NamingConfig | None = None) -> ColumnMeta:
    """Build the metadata record for one column.

    Unknown nullability counts as nullable, so the column is not required.
    """
    name = descriptor.name
    if not isinstance(name, str) or not name.strip():
        raise SchemaError(f'Column descriptor has no usable name: {descriptor!r}')

    max_length = descriptor.max_length
    if max_length is not None:
        if isinstance(max_length, bool) or not isinstance(max_length, int) or max_length < 0:
            raise SchemaError(f'Column {name!r} has invalid max length {max_length!r}')

    classification = classify(name, descriptor.storage_type, config=config)
    nullable = True if descriptor.nullable is None else bool(descriptor.nullable)
    required = not nullable

    constraint = Constraint(required=required, max_length=max_length,
                            format=classification.format)
    return ColumnMeta(name=name, semantic_type=classification.semantic_type,
                      format=classification.format, constraint=constraint)


def introspect(descriptors: Iterable[Any] | None,
               config: NamingConfig | None = None) -> list[ColumnMeta]:
    """Emit one ColumnMeta per descriptor, in source order.

    Args:
        descriptors: ColumnDescriptor objects, mappings or tuples; None or an
            empty sequence means the operation produced no result description
        config: Naming overrides (defaults to the loaded NamingConfig)

    Returns
        List of ColumnMeta aligned positionally with the row data

    Raises
        SchemaError: a descriptor is malformed or a name repeats
    """
    if descriptors is None:
        return []

    try:
        items = list(descriptors)
    except TypeError as e:
        raise SchemaError(f'Column descriptors are not iterable: {descriptors!r}') from e

    columns: list[ColumnMeta] = []
    seen: set[str] = set()
    for item in items:
        meta = describe_column(ColumnDescriptor.coerce(item), config=config)
        if meta.name in seen:
            raise SchemaError(f'Duplicate column name {meta.name!r}')
        seen.add(meta.name)
        columns.append(meta)

    logger.debug(f'Introspected {len(columns)} column(s): {[c.name for c in columns]}')
    return columns
