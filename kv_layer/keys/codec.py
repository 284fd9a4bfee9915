"""Order-preserving tuple codec for structured keys (the ``bytewise`` scheme).

Every component starts with a tag byte. Tags are ordered so that encoded keys
compare byte-wise in the same order as the components they encode::

    None < False < True < numbers < bytes < str < nested tuples < MAXIMUM

Numbers share one kind, encoded as big-endian IEEE-754 doubles with the sign bit
flipped (negative values have every bit flipped). Bytes and strings escape
``0x00`` as ``0x00 0xFF`` and are terminated by ``0x00``; nested tuples are
terminated by ``0x00`` as well, so a shorter tuple sorts before its extensions.
"""

from __future__ import annotations

import math
import struct
from enum import Enum
from typing import Any, final

from kv_layer.errors import EncodingError


_TAG_NULL = 0x10
_TAG_FALSE = 0x20
_TAG_TRUE = 0x21
_TAG_NUMBER = 0x40
_TAG_BYTES = 0x60
_TAG_STRING = 0x70
_TAG_NESTED = 0xA0
_TAG_MAXIMUM = 0xF0

_END = 0x00
_ESCAPE = 0xFF
_NUMBER_SIZE = 8


class ComponentKind(Enum):
    """Closed set of key component kinds, in encoded order."""

    NULL = "null"
    BOOLEAN = "boolean"
    NUMBER = "number"
    BYTES = "bytes"
    STRING = "string"
    NESTED = "nested"
    MAXIMUM = "maximum"


@final
class _Maximum:
    """Sentinel component sorting after every other component."""

    _instance: _Maximum | None = None

    def __new__(cls) -> _Maximum:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MAXIMUM"

    def __copy__(self) -> _Maximum:
        return self

    def __deepcopy__(self, _memo: dict[int, Any]) -> _Maximum:
        return self


MAXIMUM = _Maximum()


def component_kind(value: Any) -> ComponentKind:
    """Classify a key component, raising ``EncodingError`` for unsupported types."""
    if value is None:
        return ComponentKind.NULL
    if value is MAXIMUM:
        return ComponentKind.MAXIMUM
    # bool before number: bool is an int subclass
    if isinstance(value, bool):
        return ComponentKind.BOOLEAN
    if isinstance(value, (int, float)):
        return ComponentKind.NUMBER
    if isinstance(value, (bytes, bytearray)):
        return ComponentKind.BYTES
    if isinstance(value, str):
        return ComponentKind.STRING
    if isinstance(value, (tuple, list)):
        return ComponentKind.NESTED
    msg = f"unsupported key component type: {type(value).__name__}"
    raise EncodingError(msg)


def _encode_number(value: int | float) -> bytes:
    if isinstance(value, int):
        try:
            as_float = float(value)
        except OverflowError as error:
            msg = f"integer {value} is too large for the bytewise encoding"
            raise EncodingError(msg) from error
        if int(as_float) != value:
            msg = f"integer {value} is not exactly representable as a double"
            raise EncodingError(msg)
        value = as_float
    if math.isnan(value):
        msg = "NaN cannot be encoded as a key component"
        raise EncodingError(msg)
    if value == 0:
        value = 0.0  # folds -0.0
    bits = bytearray(struct.pack(">d", value))
    if bits[0] & 0x80:
        bits = bytearray(byte ^ 0xFF for byte in bits)
    else:
        bits[0] ^= 0x80
    return bytes(bits)


def _decode_number(raw: bytes) -> int | float:
    bits = bytearray(raw)
    if bits[0] & 0x80:
        bits[0] ^= 0x80
    else:
        bits = bytearray(byte ^ 0xFF for byte in bits)
    (value,) = struct.unpack(">d", bits)
    if value.is_integer():
        return int(value)
    return value


def _escape(raw: bytes) -> bytes:
    return raw.replace(b"\x00", b"\x00\xff") + b"\x00"


def _write(value: Any, out: bytearray) -> None:
    kind = component_kind(value)
    if kind is ComponentKind.NULL:
        out.append(_TAG_NULL)
    elif kind is ComponentKind.BOOLEAN:
        out.append(_TAG_TRUE if value else _TAG_FALSE)
    elif kind is ComponentKind.NUMBER:
        out.append(_TAG_NUMBER)
        out += _encode_number(value)
    elif kind is ComponentKind.BYTES:
        out.append(_TAG_BYTES)
        out += _escape(bytes(value))
    elif kind is ComponentKind.STRING:
        try:
            raw = value.encode("utf-8")
        except UnicodeEncodeError as error:
            msg = f"string component is not valid unicode: {value!r}"
            raise EncodingError(msg) from error
        out.append(_TAG_STRING)
        out += _escape(raw)
    elif kind is ComponentKind.NESTED:
        out.append(_TAG_NESTED)
        for item in value:
            _write(item, out)
        out.append(_END)
    else:
        out.append(_TAG_MAXIMUM)


def _truncated() -> EncodingError:
    return EncodingError("truncated bytewise data")


def _read_escaped(data: bytes, pos: int) -> tuple[bytes, int]:
    out = bytearray()
    size = len(data)
    while pos < size:
        byte = data[pos]
        if byte == _END:
            if pos + 1 < size and data[pos + 1] == _ESCAPE:
                out.append(_END)
                pos += 2
                continue
            return bytes(out), pos + 1
        out.append(byte)
        pos += 1
    raise _truncated()


def _read(data: bytes, pos: int) -> tuple[Any, int]:
    if pos >= len(data):
        raise _truncated()
    tag = data[pos]
    pos += 1
    if tag == _TAG_NULL:
        return None, pos
    if tag == _TAG_FALSE:
        return False, pos
    if tag == _TAG_TRUE:
        return True, pos
    if tag == _TAG_NUMBER:
        raw = data[pos : pos + _NUMBER_SIZE]
        if len(raw) != _NUMBER_SIZE:
            raise _truncated()
        return _decode_number(raw), pos + _NUMBER_SIZE
    if tag == _TAG_BYTES:
        return _read_escaped(data, pos)
    if tag == _TAG_STRING:
        raw, pos = _read_escaped(data, pos)
        try:
            return raw.decode("utf-8"), pos
        except UnicodeDecodeError as error:
            msg = "string component is not valid utf-8"
            raise EncodingError(msg) from error
    if tag == _TAG_NESTED:
        items: list[Any] = []
        while True:
            if pos >= len(data):
                raise _truncated()
            if data[pos] == _END:
                return tuple(items), pos + 1
            item, pos = _read(data, pos)
            items.append(item)
    if tag == _TAG_MAXIMUM:
        return MAXIMUM, pos
    msg = f"unknown bytewise tag 0x{tag:02x}"
    raise EncodingError(msg)


def encode_bytewise(value: Any) -> bytes:
    """Encode a component (a structured key is a nested tuple) to ordered bytes."""
    out = bytearray()
    _write(value, out)
    return bytes(out)


def decode_bytewise(data: bytes | bytearray | memoryview) -> Any:
    """Decode bytes produced by :func:`encode_bytewise`.

    Sequences come back as tuples and integral numbers come back as ``int``.
    """
    raw = bytes(data)
    if not raw:
        msg = "cannot decode empty bytewise data"
        raise EncodingError(msg)
    value, pos = _read(raw, 0)
    if pos != len(raw):
        msg = f"unexpected trailing bytes at offset {pos}"
        raise EncodingError(msg)
    return value
