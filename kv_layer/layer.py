"""Store layer: key/value encodings plus key-shape and range operations."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Self

from kv_layer import keys
from kv_layer.encoding import Encoding, decode, encode
from kv_layer.errors import InvalidKeyError, UnimplementedEncodingError
from kv_layer.selectors import KeyRange, RangeSelector, normalize_selector


if TYPE_CHECKING:
    from kv_layer.keys import Key


def is_missing_key(key: Any) -> bool:
    if key is None:
        return True
    if isinstance(key, (str, bytes, bytearray, tuple, list)):
        return len(key) == 0
    return False


class StoreLayer:
    """Encoding configuration shared by a root layer and its nested views.

    Parameters
    ----------
    key_encoding
        Scheme for record keys. Only ``bytewise`` supports the key-shape and
        range operations.
    value_encoding
        Scheme for stored values, ``json`` by default.
    """

    def __init__(
        self,
        key_encoding: str = Encoding.BYTEWISE,
        value_encoding: str = Encoding.JSON,
    ) -> None:
        super().__init__()
        self._key_encoding = key_encoding
        self._value_encoding = value_encoding
        self._root: StoreLayer = self

    @property
    def key_encoding(self) -> str:
        return self._key_encoding

    @property
    def value_encoding(self) -> str:
        return self._value_encoding

    @property
    def root(self) -> StoreLayer:
        return self._root

    @property
    def inside_transaction(self) -> bool:
        """True for a nested view, False for the root layer."""
        return self is not self._root

    def view(self) -> Self:
        """Return a nested view sharing this layer's root and encodings."""
        nested = type(self).__new__(type(self))
        nested.__dict__.update(self.__dict__)
        return nested

    def encode(self, value: Any, encoding: str) -> bytes:
        return encode(value, encoding)

    def decode(self, data: bytes, encoding: str) -> Any:
        return decode(data, encoding)

    def encode_key(self, key: Any) -> bytes:
        """Encode a record key; ``None`` and empty keys are rejected."""
        if is_missing_key(key):
            msg = "undefined, null or empty key"
            raise InvalidKeyError(msg)
        return self.encode(key, self._key_encoding)

    def decode_key(self, data: bytes | None) -> Any:
        if not data:
            msg = "undefined, null or empty key"
            raise InvalidKeyError(msg)
        return self.decode(data, self._key_encoding)

    def encode_value(self, value: Any) -> bytes | None:
        """Encode a value; ``None`` is the absence of a value and stays ``None``."""
        if value is None:
            return None
        return self.encode(value, self._value_encoding)

    def decode_value(self, data: bytes | None) -> Any:
        if data is None:
            return None
        return self.decode(data, self._value_encoding)

    def _require_bytewise(self) -> None:
        if self._key_encoding != Encoding.BYTEWISE:
            msg = f"unimplemented key encoding: {self._key_encoding!r}"
            raise UnimplementedEncodingError(msg)

    def previous_key(self, key: Key) -> Key:
        self._require_bytewise()
        return keys.previous_key(key)

    def next_key(self, key: Key) -> Key:
        self._require_bytewise()
        return keys.next_key(key)

    def empty_key(self) -> Key:
        self._require_bytewise()
        return keys.EMPTY_KEY

    def minimum_key(self) -> Key:
        self._require_bytewise()
        return keys.MINIMUM_KEY

    def maximum_key(self) -> Key:
        self._require_bytewise()
        return keys.MAXIMUM_KEY

    def normalize_key(self, key: Any) -> Key:
        self._require_bytewise()
        return keys.normalize_key(key)

    def concat_keys(self, left: Key, right: Key) -> Key:
        self._require_bytewise()
        return keys.concat_keys(left, right)

    def normalize_key_selectors(self, selector: RangeSelector | Mapping[str, Any] | None = None) -> KeyRange:
        """Resolve a selector (or a mapping of selector options) into a :class:`KeyRange`."""
        self._require_bytewise()
        if selector is None:
            selector = RangeSelector()
        elif isinstance(selector, Mapping):
            selector = RangeSelector.from_options(selector)
        return normalize_selector(selector)
