"""
JSON wire format for packets and errors.

Field names on the wire are normative:

    Packet      = {"meta": Meta, "data": [[scalar|null]]}
    Meta        = {"columns": [str], "types": [str], "constraints": {name: Constraint}}
    Constraint  = {"maxLength"?: int, "required": bool, "format"?: str}
    MultiPacket = {"results": [Packet]}
    Error       = {"message": str, "code"?: int}

Errors raised by the data source are forwarded in the envelope verbatim.
"""
import dataclasses
import datetime
import decimal
import json
import logging
import types
import typing
from collections.abc import Mapping
from typing import Any

from datapacket.exceptions import PacketError, RequestError, SchemaError
from datapacket.exceptions import SourceError
from datapacket.packet import ListResult, MultiPacket, Packet

logger = logging.getLogger(__name__)

__all__ = [
    'ErrorEnvelope',
    'PacketEncoder',
    'to_wire',
    'from_wire',
    'dumps',
    'loads',
    'envelope_for',
    'decode_request',
]

Wire = Packet | MultiPacket | ListResult


@dataclasses.dataclass(frozen=True)
class ErrorEnvelope:
    message: str
    code: int | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {'message': self.message}
        if self.code is not None:
            result['code'] = self.code
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'ErrorEnvelope':
        return cls(message=data['message'], code=data.get('code'))

    def to_exception(self) -> SourceError:
        return SourceError(self.message, self.code)

    def dumps(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)


class PacketEncoder(json.JSONEncoder):
    """JSON encoder for row cells: ISO dates, numeric Decimals."""

    def default(self, o):
        if isinstance(o, datetime.datetime | datetime.date | datetime.time):
            return o.isoformat()
        if isinstance(o, decimal.Decimal):
            if o == o.to_integral_value():
                return int(o)
            return float(o)
        if isinstance(o, bytes):
            return o.hex()
        return super().default(o)


def to_wire(obj: Wire) -> dict[str, Any]:
    """Wire dictionary for a Packet, MultiPacket or ListResult."""
    return obj.to_dict()


def from_wire(data: Mapping[str, Any]) -> Wire:
    """Rebuild a packet object from its wire dictionary.

    The shape decides the type: `results` is a MultiPacket, `total` a
    ListResult, `meta` a Packet.
    """
    if not isinstance(data, Mapping):
        raise SchemaError(f'Expected a JSON object, got {type(data).__name__}')
    if 'results' in data:
        return MultiPacket.from_dict(data)
    if 'total' in data:
        return ListResult.from_dict(data)
    if 'meta' in data:
        return Packet.from_dict(data)
    raise SchemaError(f'Unrecognized wire object with keys {sorted(data)}')


def dumps(obj: Wire) -> str:
    return json.dumps(to_wire(obj), cls=PacketEncoder, ensure_ascii=False)


def loads(text: str | bytes) -> Wire:
    try:
        data = json.loads(text)
    except ValueError as e:
        raise SchemaError(f'Invalid JSON: {e}') from e
    return from_wire(data)


def envelope_for(exc: BaseException) -> ErrorEnvelope:
    """Error envelope for a failure.

    SourceError keeps the source's message and code untouched; any other
    error is reported by its own message, without a code.
    """
    if isinstance(exc, SourceError):
        return ErrorEnvelope(message=exc.message, code=exc.code)
    if not isinstance(exc, PacketError):
        logger.error(f'Unexpected {type(exc).__name__} reported to client: {exc}')
    return ErrorEnvelope(message=str(exc))


# Request decoding

def _check_value(name: str, value: Any, annotation: Any) -> Any:
    origin = typing.get_origin(annotation)
    if origin is typing.Union or origin is types.UnionType:
        args = typing.get_args(annotation)
        if value is None and type(None) in args:
            return None
        errors = []
        for arg in args:
            if arg is type(None):
                continue
            try:
                return _check_value(name, value, arg)
            except RequestError as e:
                errors.append(str(e))
        raise RequestError('; '.join(errors))
    if annotation is Any:
        return value
    if annotation is bool:
        if isinstance(value, bool):
            return value
    elif annotation is int:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    elif annotation is float:
        if isinstance(value, int | float) and not isinstance(value, bool):
            return float(value)
    elif annotation is decimal.Decimal:
        if isinstance(value, int | float | str) and not isinstance(value, bool):
            try:
                return decimal.Decimal(str(value))
            except decimal.InvalidOperation:
                pass
    elif annotation is str:
        if isinstance(value, str):
            return value
    elif annotation is datetime.date:
        if isinstance(value, str):
            try:
                return datetime.date.fromisoformat(value)
            except ValueError:
                pass
    elif isinstance(annotation, type) and isinstance(value, annotation):
        return value
    raise RequestError(f'{name}: expected {getattr(annotation, "__name__", annotation)}, '
                       f'got {value!r}')


def decode_request(body: str | bytes | Mapping[str, Any], shape: type) -> Any:
    """Decode a request body into a declared request dataclass.

    Every field of `shape` is matched by name; fields without a default must
    be present, values must match the field's annotation, and unknown keys
    are rejected.

    Raises
        RequestError: the body is not a JSON object or does not fit the shape
    """
    if not dataclasses.is_dataclass(shape):
        raise TypeError(f'{shape!r} is not a dataclass')
    if isinstance(body, str | bytes):
        try:
            body = json.loads(body)
        except ValueError as e:
            raise RequestError(f'Invalid JSON: {e}') from e
    if not isinstance(body, Mapping):
        raise RequestError(f'Expected a JSON object, got {type(body).__name__}')

    hints = typing.get_type_hints(shape)
    fields = {f.name: f for f in dataclasses.fields(shape) if f.init}
    unknown = set(body) - set(fields)
    if unknown:
        raise RequestError(f'Unexpected field(s): {sorted(unknown)}')

    values = {}
    for name, f in fields.items():
        if name not in body:
            if f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING:
                raise RequestError(f'{name}: required')
            continue
        values[name] = _check_value(name, body[name], hints.get(name, Any))
    return shape(**values)
