"""
Self-describing packet data model.

A Packet bundles column metadata with row data for one logical result:

    Packet(meta=Meta(columns=('User_ID', 'User_NM'),
                     types=('integer', 'string'),
                     constraints={'User_ID': Constraint(required=True), ...}),
           data=((1, 'Ann'),))

Rows are positional: row[i] belongs to meta.columns[i]. Everything here is
frozen once built.
"""
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Self

import pandas as pd
import pyarrow as pa

from datapacket.exceptions import SchemaError

from libb import attrdict

logger = logging.getLogger(__name__)

__all__ = [
    'SemanticType',
    'Constraint',
    'ColumnMeta',
    'Meta',
    'Packet',
    'MultiPacket',
    'ListResult',
]


class SemanticType(str, Enum):
    INTEGER = 'integer'
    NUMBER = 'number'
    CURRENCY = 'currency'
    PERCENTAGE = 'percentage'
    DATE = 'date'
    DATETIME = 'datetime'
    BOOLEAN = 'boolean'
    STRING = 'string'

    @classmethod
    def coerce(cls, value: Any) -> 'SemanticType':
        """Accept a member or its wire name; unknown names fall back to string.
        """
        if isinstance(value, SemanticType):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            logger.debug(f'Unknown semantic type {value!r}, using string')
            return cls.STRING


@dataclass(frozen=True)
class Constraint:
    """Validation hints for one column.

    `required` is the negation of the source's nullability flag.
    """
    required: bool = False
    max_length: int | None = None
    format: str | None = None

    def __post_init__(self):
        if self.max_length is not None and self.max_length < 0:
            raise SchemaError(f'max_length must be >= 0, got {self.max_length}')

    def to_dict(self) -> dict[str, Any]:
        """Wire form; absent optionals are omitted.
        """
        result: dict[str, Any] = {}
        if self.max_length is not None:
            result['maxLength'] = self.max_length
        result['required'] = self.required
        if self.format is not None:
            result['format'] = self.format
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        if 'required' not in data:
            raise SchemaError(f'Constraint has no required flag: {dict(data)!r}')
        return cls(
            required=bool(data['required']),
            max_length=data.get('maxLength'),
            format=data.get('format'),
            )


@dataclass(frozen=True)
class ColumnMeta:
    name: str
    semantic_type: SemanticType
    format: str | None
    constraint: Constraint


@dataclass(frozen=True)
class Meta:
    columns: tuple[str, ...] = ()
    types: tuple[str, ...] = ()
    constraints: Mapping[str, Constraint] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        if len(self.columns) != len(self.types):
            raise SchemaError(
                f'{len(self.columns)} columns but {len(self.types)} types')
        if len(set(self.columns)) != len(self.columns):
            raise SchemaError(f'Duplicate column names in {list(self.columns)}')
        object.__setattr__(self, 'constraints', MappingProxyType(dict(self.constraints)))

    @classmethod
    def from_columns(cls, columns: list[ColumnMeta]) -> Self:
        return cls(
            columns=tuple(c.name for c in columns),
            types=tuple(c.semantic_type.value for c in columns),
            constraints={c.name: c.constraint for c in columns},
            )

    def column_meta(self) -> list[ColumnMeta]:
        """Per-column view of the metadata.
        """
        result = []
        for name, type_name in zip(self.columns, self.types):
            constraint = self.constraints.get(name, Constraint())
            result.append(ColumnMeta(name, SemanticType.coerce(type_name),
                                     constraint.format, constraint))
        return result

    def index(self, column: str) -> int:
        return self.columns.index(column)

    def to_dict(self) -> dict[str, Any]:
        return {
            'columns': list(self.columns),
            'types': list(self.types),
            'constraints': {name: c.to_dict() for name, c in self.constraints.items()},
            }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        try:
            columns = tuple(data['columns'])
            types = tuple(data['types'])
            constraints = {name: Constraint.from_dict(c)
                           for name, c in data.get('constraints', {}).items()}
        except (KeyError, TypeError, AttributeError) as e:
            raise SchemaError(f'Malformed meta: {e}') from e
        return cls(columns=columns, types=types, constraints=constraints)


@dataclass(frozen=True)
class Packet:
    meta: Meta = field(default_factory=Meta)
    data: tuple[tuple[Any, ...], ...] = ()

    def __post_init__(self):
        width = len(self.meta.columns)
        for i, row in enumerate(self.data):
            if len(row) != width:
                raise SchemaError(f'Row {i} has {len(row)} cells, expected {width}')

    def __len__(self) -> int:
        return len(self.data)

    @property
    def columns(self) -> tuple[str, ...]:
        return self.meta.columns

    def column_meta(self) -> list[ColumnMeta]:
        return self.meta.column_meta()

    def row_dict(self, index: int) -> attrdict:
        """One row keyed by column name.
        """
        return attrdict(zip(self.meta.columns, self.data[index]))

    def first_row(self) -> attrdict | None:
        """First row keyed by column name, or None when there are no rows.
        """
        if not self.data:
            return None
        return self.row_dict(0)

    def records(self) -> list[attrdict]:
        """All rows keyed by column name, in row order.
        """
        return [attrdict(zip(self.meta.columns, row)) for row in self.data]

    def to_dataframe(self, arrow: bool = False) -> pd.DataFrame:
        """Load rows into a DataFrame, column metadata in DataFrame.attrs.

        Always returns a DataFrame, with columns preserved for empty results.
        """
        names = list(self.meta.columns)
        if not self.data:
            df = pd.DataFrame(columns=names)
        elif arrow:
            columns_data = {name: [row[i] for row in self.data] for i, name in enumerate(names)}
            df = pa.Table.from_pydict(columns_data).to_pandas(types_mapper=pd.ArrowDtype)
        else:
            df = pd.DataFrame.from_records([list(row) for row in self.data], columns=names)
        df.attrs['column_types'] = dict(zip(names, self.meta.types))
        df.attrs['constraints'] = {name: c.to_dict() for name, c in self.meta.constraints.items()}
        return df

    def to_dict(self) -> dict[str, Any]:
        return {
            'meta': self.meta.to_dict(),
            'data': [list(row) for row in self.data],
            }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        if 'meta' not in data or 'data' not in data:
            raise SchemaError('Packet requires meta and data')
        try:
            rows = tuple(tuple(row) for row in data['data'])
        except TypeError as e:
            raise SchemaError(f'Malformed rows: {e}') from e
        return cls(meta=Meta.from_dict(data['meta']), data=rows)


@dataclass(frozen=True)
class MultiPacket:
    """Packets for each result set of one operation, in emission order.
    """
    results: tuple[Packet, ...] = ()

    def __len__(self) -> int:
        return len(self.results)

    def __getitem__(self, index: int) -> Packet:
        return self.results[index]

    def __iter__(self):
        return iter(self.results)

    def paged(self, total_index: int = 0, page_index: int = 1) -> 'ListResult':
        """Combine a total-count packet and a page-of-rows packet.

        The total is the first cell of the total packet and is carried as-is.
        """
        try:
            total_packet = self.results[total_index]
            page = self.results[page_index]
        except IndexError as e:
            raise SchemaError(
                f'Paged result needs result sets {total_index} and {page_index}, '
                f'got {len(self.results)}') from e
        if not total_packet.data or not total_packet.data[0]:
            raise SchemaError('Total result set is empty')
        return ListResult(total=total_packet.data[0][0], meta=page.meta, data=page.data)

    def to_dict(self) -> dict[str, Any]:
        return {'results': [p.to_dict() for p in self.results]}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        if 'results' not in data:
            raise SchemaError('MultiPacket requires results')
        return cls(results=tuple(Packet.from_dict(p) for p in data['results']))


@dataclass(frozen=True)
class ListResult:
    """A page of rows with an opaque total count.
    """
    total: Any
    meta: Meta
    data: tuple[tuple[Any, ...], ...]

    @property
    def packet(self) -> Packet:
        return Packet(meta=self.meta, data=self.data)

    def records(self) -> list[attrdict]:
        return self.packet.records()

    def to_dict(self) -> dict[str, Any]:
        return {
            'total': self.total,
            'meta': self.meta.to_dict(),
            'data': [list(row) for row in self.data],
            }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        if 'total' not in data:
            raise SchemaError('List result requires total')
        packet = Packet.from_dict(data)
        return cls(total=data['total'], meta=packet.meta, data=packet.data)
