"""kv-layer - order-preserving keys and range selectors for ordered KV stores"""

from ._version import version as __version__
from .backends import Backend, InMemoryAsyncBackend
from .encoding import Encoding
from .errors import (
    EncodingError,
    InvalidKeyError,
    InvalidSelectorError,
    KVLayerError,
    UnimplementedEncodingError,
)
from .keys import MAXIMUM
from .layer import StoreLayer
from .selectors import UNSET, KeyRange, RangeSelector, normalize_selector
from .store import AsyncStore, StoreMapping


__all__ = [
    "MAXIMUM",
    "UNSET",
    "AsyncStore",
    "Backend",
    "Encoding",
    "EncodingError",
    "InMemoryAsyncBackend",
    "InvalidKeyError",
    "InvalidSelectorError",
    "KVLayerError",
    "KeyRange",
    "RangeSelector",
    "StoreLayer",
    "StoreMapping",
    "UnimplementedEncodingError",
    "__version__",
    "normalize_selector",
]
