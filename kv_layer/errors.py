"""Error taxonomy for key encoding and range selection."""

from __future__ import annotations


class KVLayerError(Exception):
    """Base class for all kv-layer usage errors."""


class EncodingError(KVLayerError, ValueError):
    """Unknown encoding scheme, or a value the scheme cannot represent."""


class InvalidKeyError(KVLayerError, ValueError):
    """A record key is missing or empty."""


class UnimplementedEncodingError(KVLayerError, NotImplementedError):
    """Key-shape operation requested for a key encoding other than bytewise."""


class InvalidSelectorError(KVLayerError, ValueError):
    """Range selector options that cannot be combined."""

    def __init__(self, msg: str, fields: tuple[str, ...] = ()) -> None:
        super().__init__(msg)
        self.fields = fields
