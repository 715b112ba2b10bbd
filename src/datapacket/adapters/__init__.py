"""
Driver adapters package.

This package provides the following components:

- column_info: ColumnDescriptor and extraction from cursor.description
- type_mapping: Storage type to storage family resolution (no conversion)

Adapters only describe columns. Values are never converted here; row cells
are normalized to wire scalars by datapacket.types during packet building.
"""
from datapacket.adapters.column_info import ColumnDescriptor
from datapacket.adapters.column_info import descriptors_from_cursor_description
from datapacket.adapters.type_mapping import STORAGE_FAMILIES
from datapacket.adapters.type_mapping import resolve_storage_family
