"""
Self-describing query result packets.

Every result travels with its column metadata: names, semantic types inferred
from storage types and column naming conventions, and constraints. Consumers
pick widgets and validation from the metadata alone.

Entry points:
- Builders: dp.build(descriptors, rows), dp.build_multi(result_sets)
- Live queries: dp.select_packet(cn, sql, *args), dp.select_multi_packet(...)
- Rendering contract: dp.resolve(column_name, semantic_type, constraint)
- Wire format: dp.dumps(packet), dp.loads(text), dp.envelope_for(exc)
"""
__version__ = '0.1.0'

from datapacket.adapters.column_info import ColumnDescriptor
from datapacket.builder import build, build_from_cursor, build_multi
from datapacket.builder import build_multi_from_cursor
from datapacket.client import PacketClient
from datapacket.cursor import DbApiRowCursor, ListRowCursor, RowCursor
from datapacket.exceptions import InvalidInputError, PacketError, RequestError
from datapacket.exceptions import SchemaError, SourceError, StreamError
from datapacket.introspect import introspect
from datapacket.naming import NAMING_RULES, classify
from datapacket.options import PacketOptions
from datapacket.packet import ColumnMeta, Constraint, ListResult, Meta
from datapacket.packet import MultiPacket, Packet, SemanticType
from datapacket.query import select_multi_packet, select_packet
from datapacket.render import collect_form, format_label, render_form
from datapacket.render import render_grid
from datapacket.transport import ErrorEnvelope, decode_request, dumps
from datapacket.transport import envelope_for, from_wire, loads, to_wire
from datapacket.widgets import WidgetKind, WidgetSpec, resolve, resolve_meta

__all__ = [
    'build',
    'build_multi',
    'build_from_cursor',
    'build_multi_from_cursor',
    'select_packet',
    'select_multi_packet',
    'introspect',
    'classify',
    'NAMING_RULES',
    'resolve',
    'resolve_meta',
    'WidgetKind',
    'WidgetSpec',
    'render_form',
    'collect_form',
    'render_grid',
    'format_label',
    'dumps',
    'loads',
    'to_wire',
    'from_wire',
    'envelope_for',
    'decode_request',
    'ErrorEnvelope',
    'PacketClient',
    'PacketOptions',
    'ColumnDescriptor',
    'RowCursor',
    'DbApiRowCursor',
    'ListRowCursor',
    'SemanticType',
    'Constraint',
    'ColumnMeta',
    'Meta',
    'Packet',
    'MultiPacket',
    'ListResult',
    'PacketError',
    'SchemaError',
    'StreamError',
    'SourceError',
    'InvalidInputError',
    'RequestError',
]
