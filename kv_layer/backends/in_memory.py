"""In-memory backend implementation."""

from __future__ import annotations

import asyncio
import bisect
from typing import TYPE_CHECKING, override

from .protocol import DEFAULT_BATCH_SIZE, Backend


if TYPE_CHECKING:
    from collections.abc import AsyncIterator


class InMemoryAsyncBackend(Backend):
    """Sorted in-memory backend for local development and tests."""

    def __init__(self) -> None:
        super().__init__()
        self._keys: list[bytes] = []
        self._store: dict[bytes, bytes] = {}
        self._lock = asyncio.Lock()

    @override
    async def get(self, key: bytes) -> bytes | None:
        """Return raw value for key, or None when key does not exist."""
        async with self._lock:
            return self._store.get(key)

    @override
    async def set(self, key: bytes, value: bytes) -> None:
        """Store raw value for key."""
        async with self._lock:
            if key not in self._store:
                bisect.insort(self._keys, key)
            self._store[key] = value

    @override
    async def delete(self, key: bytes) -> None:
        """Delete key if present."""
        async with self._lock:
            if self._store.pop(key, None) is None:
                return
            index = bisect.bisect_left(self._keys, key)
            del self._keys[index]

    async def _batch(self, low: bytes, high: bytes, *, reverse: bool, size: int) -> list[tuple[bytes, bytes]]:
        async with self._lock:
            first = bisect.bisect_left(self._keys, low)
            last = bisect.bisect_left(self._keys, high)
            if reverse:
                selected = self._keys[max(first, last - size) : last][::-1]
            else:
                selected = self._keys[first : min(last, first + size)]
            return [(key, self._store[key]) for key in selected]

    @override
    async def scan(
        self,
        start: bytes,
        end: bytes,
        *,
        reverse: bool = False,
        limit: int | None = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> AsyncIterator[tuple[bytes, bytes]]:
        """Iterate pairs in ``[start, end)``, one locked batch at a time."""
        remaining = limit
        low, high = start, end
        while remaining is None or remaining > 0:
            size = batch_size if remaining is None else min(batch_size, remaining)
            batch = await self._batch(low, high, reverse=reverse, size=size)
            for item in batch:
                yield item
            if remaining is not None:
                remaining -= len(batch)
            if len(batch) < size:
                return
            last_key = batch[-1][0]
            if reverse:
                high = last_key
            else:
                low = last_key + b"\x00"

    @override
    async def close(self) -> None:
        """Release backend resources."""
        return
