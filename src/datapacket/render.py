"""
Headless form and grid views built from packets.

These are the rendering surfaces that consume widget resolution. They produce
plain view models (labels, widget specs, edit text, display text) that any UI
layer can draw; nothing here knows about concrete widgets.
"""
import logging
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from datapacket.options import PacketOptions
from datapacket.packet import Meta, Packet
from datapacket.widgets import WidgetSpec, resolve_meta

logger = logging.getLogger(__name__)

__all__ = [
    'FormField',
    'GridView',
    'format_label',
    'render_form',
    'collect_form',
    'render_grid',
]

_LABEL_PREFIX = re.compile(r'^(Is_|Has_)')
_LABEL_SUFFIX = re.compile(r'(_NM|_DT|_AMT|_CNT|_CD|_YN|_Rate|_SEQ|_DESC|_ID)$')


def format_label(column: str) -> str:
    """Human-readable label for a column name.

    >>> format_label('User_NM')
    'User'
    >>> format_label('Is_Active')
    'Active'
    >>> format_label('Ship_Addr_DESC')
    'Ship Addr'
    """
    label = _LABEL_PREFIX.sub('', column)
    label = _LABEL_SUFFIX.sub('', label)
    return label.replace('_', ' ').strip()


@dataclass(frozen=True)
class FormField:
    column: str
    label: str
    widget: WidgetSpec
    value: Any
    text: str
    required: bool
    interactive: bool


@dataclass(frozen=True)
class GridView:
    columns: tuple[str, ...]
    labels: tuple[str, ...]
    aligns: tuple[str, ...]
    rows: tuple[tuple[str, ...], ...]


def _row_values(meta: Meta, row: Mapping[str, Any] | Sequence[Any] | None) -> list[Any]:
    if row is None:
        return [None] * len(meta.columns)
    if isinstance(row, Mapping):
        return [row.get(column) for column in meta.columns]
    if len(row) != len(meta.columns):
        raise ValueError(f'Row has {len(row)} cells, expected {len(meta.columns)}')
    return list(row)


def render_form(meta: Meta, row: Mapping[str, Any] | Sequence[Any] | None = None,
                read_only: bool = False, options: PacketOptions | None = None) -> list[FormField]:
    """One field per column, in packet order.

    Args:
        meta: Packet metadata; its semantic types are trusted
        row: Current values, keyed by column or positional; None for a blank form
        read_only: Render every field non-interactive
        options: Widget behavior options

    Returns
        FormField list; identifier columns are never interactive
    """
    widgets = resolve_meta(meta, options=options)
    values = _row_values(meta, row)
    fields = []
    for widget, value in zip(widgets, values):
        fields.append(FormField(
            column=widget.column,
            label=format_label(widget.column),
            widget=widget,
            value=value,
            text=widget.format_value(value),
            required=widget.required,
            interactive=widget.interactive(read_only),
            ))
    return fields


def collect_form(fields: Sequence[FormField], inputs: Mapping[str, Any]) -> dict[str, Any]:
    """Merge raw user inputs into the form's values.

    Interactive fields present in `inputs` are parsed by their widget; every
    other field keeps its original value.
    """
    result = {}
    for f in fields:
        if f.interactive and f.column in inputs:
            result[f.column] = f.widget.parse(inputs[f.column])
        else:
            result[f.column] = f.value
    return result


def render_grid(packet: Packet, options: PacketOptions | None = None) -> GridView:
    """Display text for every cell, plus per-column labels and alignment."""
    widgets = resolve_meta(packet.meta, options=options)
    rows = tuple(
        tuple(widget.display(value) for widget, value in zip(widgets, row))
        for row in packet.data
        )
    logger.debug(f'Rendered grid: {len(widgets)} column(s), {len(rows)} row(s)')
    return GridView(
        columns=packet.meta.columns,
        labels=tuple(format_label(w.column) for w in widgets),
        aligns=tuple(w.align for w in widgets),
        rows=rows,
        )


if __name__ == '__main__':
    __import__('doctest').testmod(optionflags=4 | 8 | 32)
