"""Structured key helpers shared by the store layer and the range normalizer."""

from __future__ import annotations

from typing import Any

from .codec import MAXIMUM


Key = tuple[Any, ...]

EMPTY_KEY: Key = ()
MINIMUM_KEY: Key = (None,)
MAXIMUM_KEY: Key = (MAXIMUM,)


def normalize_key(key: Any) -> Key:
    """Coerce a scalar or sequence into a structured key tuple."""
    if isinstance(key, (tuple, list)):
        return tuple(key)
    return (key,)


def concat_keys(left: Key, right: Key) -> Key:
    """Return ``left`` followed by ``right``; the empty key is the identity."""
    return (*left, *right)
