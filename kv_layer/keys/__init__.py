"""Structured keys: tuple codec, shape helpers and adjacency."""

from .adjacent import NUMBER_EPSILON, next_key, previous_key
from .codec import MAXIMUM, ComponentKind, component_kind, decode_bytewise, encode_bytewise
from .shape import EMPTY_KEY, MAXIMUM_KEY, MINIMUM_KEY, Key, concat_keys, normalize_key


__all__ = [
    "EMPTY_KEY",
    "MAXIMUM",
    "MAXIMUM_KEY",
    "MINIMUM_KEY",
    "NUMBER_EPSILON",
    "ComponentKind",
    "Key",
    "component_kind",
    "concat_keys",
    "decode_bytewise",
    "encode_bytewise",
    "next_key",
    "normalize_key",
    "previous_key",
]
