"""Range selectors and their normalization into a canonical key range.

A selector describes a logical query (exact value, inclusive or exclusive
bounds, a common prefix, a scan direction). :func:`normalize_selector` turns it
into a :class:`KeyRange` whose ``start``/``end`` always describe the ascending
half-open range ``[start, end)``; ``reverse`` only tells the caller which way to
walk that range.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import TYPE_CHECKING, Any, final

from kv_layer.errors import InvalidSelectorError
from kv_layer.keys import EMPTY_KEY, MAXIMUM_KEY, concat_keys, next_key, normalize_key, previous_key


if TYPE_CHECKING:
    from collections.abc import Mapping

    from kv_layer.keys import Key


@final
class _Unset:
    """Marks a selector option as absent; ``None`` is a valid key component."""

    _instance: _Unset | None = None

    def __new__(cls) -> _Unset:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()

_OPTION_ALIASES = {"startAfter": "start_after", "endBefore": "end_before"}


@dataclass(frozen=True)
class RangeSelector:
    """Logical range query; every bound option defaults to :data:`UNSET`."""

    value: Any = UNSET
    start: Any = UNSET
    start_after: Any = UNSET
    end: Any = UNSET
    end_before: Any = UNSET
    prefix: Any = UNSET
    reverse: bool = False

    def is_set(self, name: str) -> bool:
        """Return True when option ``name`` was supplied."""
        return getattr(self, name) is not UNSET

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> RangeSelector:
        """Build a selector from a mapping of option names.

        Both ``start_after``/``end_before`` and ``startAfter``/``endBefore``
        spellings are accepted.
        """
        known = {field.name for field in fields(cls)}
        kwargs: dict[str, Any] = {}
        for name, value in options.items():
            field_name = _OPTION_ALIASES.get(name, name)
            if field_name not in known:
                msg = f"unknown range selector option: {name!r}"
                raise InvalidSelectorError(msg, (name,))
            if field_name in kwargs:
                msg = f"range selector option given twice: {field_name!r}"
                raise InvalidSelectorError(msg, (field_name,))
            kwargs[field_name] = value
        return cls(**kwargs)


@dataclass(frozen=True)
class KeyRange:
    """Canonical ascending half-open range ``[start, end)`` of structured keys."""

    start: Key
    end: Key
    reverse: bool = False


def _conflict(*names: str) -> InvalidSelectorError:
    msg = f"invalid key selector: {' and '.join(names)} cannot be combined"
    return InvalidSelectorError(msg, names)


def _lower_bound(selector: RangeSelector, reverse: bool) -> Key:
    if selector.is_set("value"):
        if selector.is_set("start"):
            raise _conflict("value", "start")
        if selector.is_set("start_after"):
            raise _conflict("value", "start_after")
        bound = normalize_key(selector.value)
    elif selector.is_set("start"):
        if selector.is_set("start_after"):
            raise _conflict("start", "start_after")
        bound = normalize_key(selector.start)
    elif selector.is_set("start_after"):
        after = normalize_key(selector.start_after)
        # in reverse, "after" is lower in encoded order
        bound = previous_key(after) if reverse else next_key(after)
    else:
        bound = EMPTY_KEY

    if reverse:
        bound = concat_keys(bound, MAXIMUM_KEY)
    return bound


def _upper_bound(selector: RangeSelector, reverse: bool) -> Key:
    if selector.is_set("value"):
        if selector.is_set("end"):
            raise _conflict("value", "end")
        if selector.is_set("end_before"):
            raise _conflict("value", "end_before")
        bound = normalize_key(selector.value)
    elif selector.is_set("end"):
        if selector.is_set("end_before"):
            raise _conflict("end", "end_before")
        bound = normalize_key(selector.end)
    elif selector.is_set("end_before"):
        before = normalize_key(selector.end_before)
        bound = next_key(before) if reverse else previous_key(before)
    else:
        bound = EMPTY_KEY

    if not reverse:
        bound = concat_keys(bound, MAXIMUM_KEY)
    return bound


def normalize_selector(selector: RangeSelector) -> KeyRange:
    """Resolve ``selector`` into a canonical :class:`KeyRange`.

    Raises :class:`InvalidSelectorError` for mutually exclusive options:
    ``value`` with ``start``/``end``, ``start`` with ``start_after`` and
    ``end`` with ``end_before``. The selector itself is never modified.
    """
    reverse = bool(selector.reverse)
    start = _lower_bound(selector, reverse)
    end = _upper_bound(selector, reverse)

    if selector.is_set("prefix"):
        prefix = normalize_key(selector.prefix)
        start = concat_keys(prefix, start)
        end = concat_keys(prefix, end)

    if reverse:
        start, end = end, start
    return KeyRange(start=start, end=end, reverse=reverse)
