"""Key and value encoding schemes."""

from __future__ import annotations

import json
from enum import StrEnum
from typing import Any

from kv_layer.errors import EncodingError
from kv_layer.keys import decode_bytewise, encode_bytewise


class Encoding(StrEnum):
    """Encoding schemes understood by :func:`encode` and :func:`decode`."""

    BYTEWISE = "bytewise"
    JSON = "json"


def _scheme(encoding: str) -> Encoding:
    try:
        return Encoding(encoding)
    except ValueError as error:
        msg = f"unknown encoding: {encoding!r}"
        raise EncodingError(msg) from error


def encode(value: Any, encoding: str) -> bytes:
    """Encode ``value`` with the named scheme.

    ``bytewise`` output is order preserving, ``json`` output is opaque UTF-8 text.
    """
    scheme = _scheme(encoding)
    if scheme is Encoding.BYTEWISE:
        return encode_bytewise(value)
    try:
        return json.dumps(value).encode()
    except (TypeError, ValueError) as error:
        msg = f"value is not JSON serializable: {error}"
        raise EncodingError(msg) from error


def decode(data: bytes, encoding: str) -> Any:
    """Decode bytes produced by :func:`encode` with the same scheme."""
    scheme = _scheme(encoding)
    if scheme is Encoding.BYTEWISE:
        return decode_bytewise(data)
    try:
        return json.loads(data)
    except ValueError as error:
        msg = f"malformed JSON data: {error}"
        raise EncodingError(msg) from error
