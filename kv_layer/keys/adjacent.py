"""Immediate predecessor/successor of a structured key.

Only the last component is perturbed. Numbers move by ``NUMBER_EPSILON``, which
is an approximation: keys closer together than the epsilon are skipped or
collide. Strings use sentinel characters. Every other kind has no adjacency and
is returned unchanged, so open bounds on such keys behave like closed ones.
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, Any

from .codec import ComponentKind, component_kind


if TYPE_CHECKING:
    from collections.abc import Callable

    from .shape import Key


NUMBER_EPSILON = 0.000001
HIGHEST_CHAR = chr(sys.maxunicode)
LOWEST_CHAR = "\x01"

_SURROGATES = range(0xD800, 0xE000)


def _previous_number(value: float) -> float:
    return value - NUMBER_EPSILON


def _next_number(value: float) -> float:
    return value + NUMBER_EPSILON


def _previous_string(value: str) -> str:
    if not value:
        return value
    head, code = value[:-1], ord(value[-1])
    if code == 0:
        # nothing sorts between head and head + "\x00"
        return head
    code -= 1
    if code in _SURROGATES:
        code = _SURROGATES.start - 1
    return head + chr(code) + HIGHEST_CHAR


def _next_string(value: str) -> str:
    if not value:
        return value
    return value + LOWEST_CHAR


_PREVIOUS: dict[ComponentKind, Callable[[Any], Any]] = {
    ComponentKind.NUMBER: _previous_number,
    ComponentKind.STRING: _previous_string,
}
_NEXT: dict[ComponentKind, Callable[[Any], Any]] = {
    ComponentKind.NUMBER: _next_number,
    ComponentKind.STRING: _next_string,
}


def _replace_last(key: Key, rules: dict[ComponentKind, Callable[[Any], Any]]) -> Key:
    key = tuple(key)
    if not key:
        return key
    *head, last = key
    rule = rules.get(component_kind(last))
    if rule is None:
        return key
    return (*head, rule(last))


def previous_key(key: Key) -> Key:
    """Return the key sorting immediately before ``key``."""
    return _replace_last(key, _PREVIOUS)


def next_key(key: Key) -> Key:
    """Return the key sorting immediately after ``key``."""
    return _replace_last(key, _NEXT)
