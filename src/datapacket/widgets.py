"""
Widget resolution: the rendering contract for packet consumers.

`resolve` picks a widget kind for one column and returns a WidgetSpec that
knows how to parse user input, produce edit text and produce grid text for
that column. Resolution follows the naming table in datapacket.naming, so a
client holding only a column name reaches the same widget a server-described
packet would:

1. suffix _ID               -> display-only, never editable
2. format Y/N               -> yes/no choice
3. suffix _DESC on a string -> multi-line text
4. otherwise by semantic type (server-provided when present, else inferred
   from the name)

`resolve` is pure: equal inputs give equal WidgetSpecs.
"""
import datetime
import decimal
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import dateutil.parser

from datapacket.exceptions import InvalidInputError
from datapacket.naming import COUNT_SUFFIX, DESC_SUFFIX, ID_SUFFIX, YN_FORMAT, classify
from datapacket.options import PacketOptions
from datapacket.packet import Constraint, Meta, SemanticType

from libb import is_null

logger = logging.getLogger(__name__)

__all__ = [
    'WidgetKind',
    'WidgetSpec',
    'resolve',
    'resolve_meta',
    'YES',
    'NO',
]

YES = 'Y'
NO = 'N'


class WidgetKind(str, Enum):
    TOGGLE = 'toggle'
    DATE = 'date'
    CURRENCY = 'currency'
    INTEGER = 'integer'
    PERCENTAGE = 'percentage'
    YES_NO = 'yes_no'
    TEXTAREA = 'textarea'
    DISPLAY = 'display'
    NUMBER = 'number'
    DATETIME = 'datetime'
    TEXT = 'text'


_SEMANTIC_KINDS: dict[SemanticType, WidgetKind] = {
    SemanticType.BOOLEAN: WidgetKind.TOGGLE,
    SemanticType.DATE: WidgetKind.DATE,
    SemanticType.CURRENCY: WidgetKind.CURRENCY,
    SemanticType.INTEGER: WidgetKind.INTEGER,
    SemanticType.PERCENTAGE: WidgetKind.PERCENTAGE,
    SemanticType.NUMBER: WidgetKind.NUMBER,
    SemanticType.DATETIME: WidgetKind.DATETIME,
    SemanticType.STRING: WidgetKind.TEXT,
    }

_RIGHT_ALIGNED = {WidgetKind.CURRENCY, WidgetKind.INTEGER, WidgetKind.PERCENTAGE,
                  WidgetKind.NUMBER}

_TRUE_TEXT = {'true', '1', 'yes', 'y', 'on'}
_FALSE_TEXT = {'false', '0', 'no', 'n', 'off', ''}


@dataclass(frozen=True)
class WidgetSpec:
    """How one column is edited and displayed.

    `editable` is the widget's own answer; renderers combine it with the
    form's read-only flag through `interactive`.
    """
    column: str
    kind: WidgetKind
    semantic_type: SemanticType
    format: str | None = None
    editable: bool = True
    required: bool = False
    max_length: int | None = None
    min_value: float | None = None
    max_value: float | None = None
    step: float | None = None
    choices: tuple[str, ...] = ()
    rows: int | None = None
    align: str = 'left'
    options: PacketOptions = field(default_factory=PacketOptions, hash=False)

    def interactive(self, read_only: bool = False) -> bool:
        """Whether the rendered widget accepts input.

        A read-only form makes every widget non-interactive.
        """
        return self.editable and not read_only

    def parse(self, raw: Any) -> Any:
        """Turn user input into the value submitted for this column."""
        return _PARSERS[self.kind](self, raw)

    def format_value(self, value: Any) -> str:
        """Edit text shown inside the widget for a stored value."""
        return _EDITORS[self.kind](self, value)

    def display(self, value: Any) -> str:
        """Read-only text for grids and detail views."""
        if _is_blank(value):
            return self.options.null_display
        return _DISPLAYS[self.kind](self, value)


def _is_blank(value: Any) -> bool:
    if isinstance(value, str):
        return value == ''
    return is_null(value)


def _invalid(spec: WidgetSpec, raw: Any, fallback: Any, reason: str) -> Any:
    if spec.options.invalid_input == 'reject':
        raise InvalidInputError(f'{spec.column}: {reason}: {raw!r}')
    logger.debug(f'{spec.column}: {reason}: {raw!r}, using {fallback!r}')
    return fallback


def _to_number(raw: Any) -> int | decimal.Decimal | None:
    """Parse numeric input, ignoring thousands separators.

    Returns None for anything that is not a finite number.
    """
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float | decimal.Decimal):
        number = decimal.Decimal(str(raw)) if isinstance(raw, float) else raw
        return number if number.is_finite() else None
    if not isinstance(raw, str):
        return None
    text = raw.replace(',', '').replace(' ', '').strip()
    if not text or '_' in text:
        return None
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = decimal.Decimal(text)
    except decimal.InvalidOperation:
        return None
    return number if number.is_finite() else None


def _to_date(value: Any) -> datetime.date | None:
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if isinstance(value, str):
        try:
            return dateutil.parser.isoparse(value.strip()).date()
        except ValueError:
            return None
    return None


def _to_datetime(value: Any) -> datetime.datetime | None:
    if isinstance(value, datetime.datetime):
        return value
    if isinstance(value, datetime.date):
        return datetime.datetime.combine(value, datetime.time())
    if isinstance(value, str):
        try:
            return dateutil.parser.isoparse(value.strip())
        except ValueError:
            return None
    return None


def _grouped(number: Any) -> str:
    return f'{number:,}'


# Parsers

def _parse_toggle(spec: WidgetSpec, raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    if raw is None:
        return False
    if isinstance(raw, int) and raw in {0, 1}:
        return bool(raw)
    text = str(raw).strip().lower()
    if text in _TRUE_TEXT:
        return True
    if text in _FALSE_TEXT:
        return False
    return _invalid(spec, raw, False, 'not a boolean')


def _parse_date(spec: WidgetSpec, raw: Any) -> str | None:
    if _is_blank(raw):
        return None
    parsed = _to_date(raw)
    if parsed is None:
        return _invalid(spec, raw, None, 'not an ISO date')
    return parsed.isoformat()


def _parse_datetime(spec: WidgetSpec, raw: Any) -> str | None:
    if _is_blank(raw):
        return None
    parsed = _to_datetime(raw)
    if parsed is None:
        return _invalid(spec, raw, None, 'not an ISO datetime')
    return parsed.isoformat()


def _parse_number(spec: WidgetSpec, raw: Any) -> int | decimal.Decimal:
    number = _to_number(raw)
    if number is None:
        return _invalid(spec, raw, 0, 'not a number')
    return number


def _parse_integer(spec: WidgetSpec, raw: Any) -> int:
    number = _to_number(raw)
    if number is None or number != int(number):
        return _invalid(spec, raw, 0, 'not an integer')
    number = int(number)
    if spec.min_value is not None and number < spec.min_value:
        return _invalid(spec, raw, 0, 'negative count')
    return number


def _parse_percentage(spec: WidgetSpec, raw: Any) -> float:
    number = _to_number(raw)
    if number is None:
        return _invalid(spec, raw, 0.0, 'not a percentage')
    value = round(float(number), 2)
    if value < spec.min_value:
        return _invalid(spec, raw, float(spec.min_value), 'below range')
    if value > spec.max_value:
        return _invalid(spec, raw, float(spec.max_value), 'above range')
    return value


def _parse_yes_no(spec: WidgetSpec, raw: Any) -> str:
    if isinstance(raw, bool):
        return YES if raw else NO
    if raw in spec.choices:
        return raw
    return _invalid(spec, raw, NO, 'not Y or N')


def _parse_text(spec: WidgetSpec, raw: Any) -> str:
    text = '' if raw is None else str(raw)
    if spec.max_length is not None and len(text) > spec.max_length:
        return _invalid(spec, raw, text[:spec.max_length],
                        f'longer than {spec.max_length} characters')
    return text


def _parse_display(spec: WidgetSpec, raw: Any) -> Any:
    return raw


_PARSERS: dict[WidgetKind, Callable[[WidgetSpec, Any], Any]] = {
    WidgetKind.TOGGLE: _parse_toggle,
    WidgetKind.DATE: _parse_date,
    WidgetKind.CURRENCY: _parse_number,
    WidgetKind.INTEGER: _parse_integer,
    WidgetKind.PERCENTAGE: _parse_percentage,
    WidgetKind.YES_NO: _parse_yes_no,
    WidgetKind.TEXTAREA: _parse_text,
    WidgetKind.DISPLAY: _parse_display,
    WidgetKind.NUMBER: _parse_number,
    WidgetKind.DATETIME: _parse_datetime,
    WidgetKind.TEXT: _parse_text,
    }


# Edit text

def _edit_toggle(spec: WidgetSpec, value: Any) -> str:
    if isinstance(value, str):
        checked = value.strip().lower() in _TRUE_TEXT
    else:
        checked = not _is_blank(value) and bool(value)
    return 'true' if checked else 'false'


def _edit_date(spec: WidgetSpec, value: Any) -> str:
    parsed = None if _is_blank(value) else _to_date(value)
    return parsed.isoformat() if parsed else ''


def _edit_datetime(spec: WidgetSpec, value: Any) -> str:
    parsed = None if _is_blank(value) else _to_datetime(value)
    return parsed.isoformat() if parsed else ''


def _edit_currency(spec: WidgetSpec, value: Any) -> str:
    number = None if _is_blank(value) else _to_number(value)
    return '' if number is None else _grouped(number)


def _edit_integer(spec: WidgetSpec, value: Any) -> str:
    number = None if _is_blank(value) else _to_number(value)
    return '0' if number is None else str(int(number))


def _edit_number(spec: WidgetSpec, value: Any) -> str:
    number = None if _is_blank(value) else _to_number(value)
    return '' if number is None else str(number)


def _edit_percentage(spec: WidgetSpec, value: Any) -> str:
    number = None if _is_blank(value) else _to_number(value)
    return f'{float(number or 0):.2f}'


def _edit_yes_no(spec: WidgetSpec, value: Any) -> str:
    return value if value in spec.choices else NO


def _edit_text(spec: WidgetSpec, value: Any) -> str:
    return '' if _is_blank(value) else str(value)


_EDITORS: dict[WidgetKind, Callable[[WidgetSpec, Any], str]] = {
    WidgetKind.TOGGLE: _edit_toggle,
    WidgetKind.DATE: _edit_date,
    WidgetKind.CURRENCY: _edit_currency,
    WidgetKind.INTEGER: _edit_integer,
    WidgetKind.PERCENTAGE: _edit_percentage,
    WidgetKind.YES_NO: _edit_yes_no,
    WidgetKind.TEXTAREA: _edit_text,
    WidgetKind.DISPLAY: _edit_text,
    WidgetKind.NUMBER: _edit_number,
    WidgetKind.DATETIME: _edit_datetime,
    WidgetKind.TEXT: _edit_text,
    }


# Grid text; blanks are handled by WidgetSpec.display

def _show_toggle(spec: WidgetSpec, value: Any) -> str:
    return spec.options.true_glyph if value else spec.options.false_glyph


def _show_date(spec: WidgetSpec, value: Any) -> str:
    parsed = _to_date(value)
    return parsed.strftime(spec.options.date_display_format) if parsed else str(value)


def _show_datetime(spec: WidgetSpec, value: Any) -> str:
    parsed = _to_datetime(value)
    return parsed.isoformat(sep=' ') if parsed else str(value)


def _show_grouped(spec: WidgetSpec, value: Any) -> str:
    number = _to_number(value)
    return str(value) if number is None else _grouped(number)


def _show_percentage(spec: WidgetSpec, value: Any) -> str:
    number = _to_number(value)
    return str(value) if number is None else f'{float(number):.2f}%'


def _show_yes_no(spec: WidgetSpec, value: Any) -> str:
    if value == YES:
        return spec.options.yes_label
    if value == NO:
        return spec.options.no_label
    return str(value)


def _show_text(spec: WidgetSpec, value: Any) -> str:
    return str(value)


_DISPLAYS: dict[WidgetKind, Callable[[WidgetSpec, Any], str]] = {
    WidgetKind.TOGGLE: _show_toggle,
    WidgetKind.DATE: _show_date,
    WidgetKind.CURRENCY: _show_grouped,
    WidgetKind.INTEGER: _show_grouped,
    WidgetKind.PERCENTAGE: _show_percentage,
    WidgetKind.YES_NO: _show_yes_no,
    WidgetKind.TEXTAREA: _show_text,
    WidgetKind.DISPLAY: _show_text,
    WidgetKind.NUMBER: _show_text,
    WidgetKind.DATETIME: _show_datetime,
    WidgetKind.TEXT: _show_text,
    }


def _kind_for(column_name: str, semantic_type: SemanticType, fmt: str | None) -> WidgetKind:
    if column_name.endswith(ID_SUFFIX):
        return WidgetKind.DISPLAY
    if fmt == YN_FORMAT:
        return WidgetKind.YES_NO
    if semantic_type is SemanticType.STRING and column_name.endswith(DESC_SUFFIX):
        return WidgetKind.TEXTAREA
    return _SEMANTIC_KINDS[semantic_type]


def resolve(column_name: str, semantic_type: SemanticType | str | None = None,
            constraint: Constraint | None = None,
            options: PacketOptions | None = None) -> WidgetSpec:
    """Select the widget for one column.

    Args:
        column_name: Column identifier
        semantic_type: Server-provided semantic type; None to infer it from
            the column name alone
        constraint: Server-provided constraint; its format wins over the
            format the name would imply
        options: Widget behavior options (invalid-input policy, bounds, labels)

    Returns
        WidgetSpec describing the widget kind and its parse/format behavior

    >>> resolve('User_ID', 'integer').editable
    False
    >>> resolve('Active_YN').kind.value
    'yes_no'
    >>> resolve('Price_AMT', 'currency').format_value(1234567)
    '1,234,567'
    """
    options = options if options is not None else PacketOptions()
    constraint = constraint if constraint is not None else Constraint()

    inferred = classify(column_name)
    if semantic_type is None:
        semantic = inferred.semantic_type
    else:
        semantic = SemanticType.coerce(semantic_type)
    fmt = constraint.format if constraint.format is not None else inferred.format

    kind = _kind_for(column_name, semantic, fmt)

    attrs: dict[str, Any] = {}
    if kind is WidgetKind.INTEGER:
        # only counts are bounded at zero
        is_count = column_name.endswith(COUNT_SUFFIX) and not options.allow_negative_count
        attrs.update(min_value=0 if is_count else None, step=1)
    elif kind is WidgetKind.PERCENTAGE:
        attrs.update(min_value=options.percent_min, max_value=options.percent_max, step=0.01)
    elif kind is WidgetKind.YES_NO:
        attrs.update(choices=(YES, NO))
    elif kind is WidgetKind.TEXTAREA:
        attrs.update(rows=options.textarea_rows)

    if kind in _RIGHT_ALIGNED:
        align = 'right'
    elif kind is WidgetKind.TOGGLE:
        align = 'center'
    else:
        align = 'left'

    return WidgetSpec(
        column=column_name,
        kind=kind,
        semantic_type=semantic,
        format=fmt,
        editable=kind is not WidgetKind.DISPLAY,
        required=constraint.required,
        max_length=constraint.max_length,
        align=align,
        options=options,
        **attrs,
        )


def resolve_meta(meta: Meta, options: PacketOptions | None = None) -> list[WidgetSpec]:
    """Resolve every column of a packet, trusting the packet's own types."""
    return [resolve(c.name, c.semantic_type, c.constraint, options=options)
            for c in meta.column_meta()]


if __name__ == '__main__':
    __import__('doctest').testmod(optionflags=4 | 8 | 32)
