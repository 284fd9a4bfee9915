"""Store facades combining a :class:`StoreLayer` with an ordered backend."""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Iterator, MutableMapping
from typing import TYPE_CHECKING, Any, TypeVar, override

from kv_layer.encoding import Encoding
from kv_layer.layer import StoreLayer, is_missing_key
from kv_layer.selectors import RangeSelector


if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Coroutine
    from concurrent.futures import Future

    from kv_layer.backends import Backend
    from kv_layer.keys import Key
    from kv_layer.selectors import KeyRange


_T = TypeVar("_T")


def _selector(selector: RangeSelector | None, options: dict[str, Any]) -> RangeSelector:
    if selector is None:
        return RangeSelector.from_options(options)
    if options:
        msg = "pass either a RangeSelector or selector options, not both"
        raise TypeError(msg)
    return selector


class AsyncStore:
    """Async record store: structured keys, encoded values, range queries."""

    def __init__(self, backend: Backend, layer: StoreLayer | None = None) -> None:
        super().__init__()
        self._backend = backend
        self._layer = layer if layer is not None else StoreLayer()
        self._logger = logging.getLogger("kv_layer.store")

    @property
    def layer(self) -> StoreLayer:
        return self._layer

    def _record_key(self, key: Any) -> bytes:
        if self._layer.key_encoding == Encoding.BYTEWISE and not is_missing_key(key):
            key = self._layer.normalize_key(key)
        return self._layer.encode_key(key)

    async def get(self, key: Any) -> Any:
        """Return the decoded value stored under ``key``, or None."""
        raw = await self._backend.get(self._record_key(key))
        return self._layer.decode_value(raw)

    async def put(self, key: Any, value: Any) -> None:
        """Store ``value`` under ``key``; a None value deletes the record."""
        encoded_key = self._record_key(key)
        encoded_value = self._layer.encode_value(value)
        if encoded_value is None:
            await self._backend.delete(encoded_key)
            return
        await self._backend.set(encoded_key, encoded_value)

    async def delete(self, key: Any) -> None:
        """Delete ``key`` if present."""
        await self._backend.delete(self._record_key(key))

    def resolve(self, selector: RangeSelector | None = None, **options: Any) -> KeyRange:
        """Return the canonical range a ``find`` with the same arguments scans."""
        return self._layer.normalize_key_selectors(_selector(selector, options))

    async def find(
        self,
        selector: RangeSelector | None = None,
        *,
        limit: int | None = None,
        **options: Any,
    ) -> AsyncIterator[tuple[Key, Any]]:
        """Iterate decoded ``(key, value)`` pairs matching a range selector.

        Either pass a :class:`RangeSelector` or its options as keyword arguments,
        for example ``find(prefix="users", start_after="bob", reverse=True)``.
        """
        key_range = self.resolve(selector, **options)
        start = self._layer.encode(key_range.start, self._layer.key_encoding)
        end = self._layer.encode(key_range.end, self._layer.key_encoding)
        self._logger.debug(
            "Scanning %r to %r (reverse=%s, limit=%s)", key_range.start, key_range.end, key_range.reverse, limit
        )
        async for raw_key, raw_value in self._backend.scan(start, end, reverse=key_range.reverse, limit=limit):
            yield self._layer.decode_key(raw_key), self._layer.decode_value(raw_value)

    async def count(self, selector: RangeSelector | None = None, **options: Any) -> int:
        """Return the number of records matching a range selector."""
        total = 0
        async for _ in self.find(selector, **options):
            total += 1
        return total

    async def close(self) -> None:
        """Close the backend."""
        await self._backend.close()


class _AsyncLoopBridge:
    """Bridge sync calls to async backend operations on a dedicated loop."""

    def __init__(self) -> None:
        super().__init__()
        self._loop_ready = threading.Event()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread = threading.Thread(target=self._run, name="kv-layer-store-mapping", daemon=True)
        self._thread.start()
        _ = self._loop_ready.wait()

    def _run(self) -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        self._loop = loop
        self._loop_ready.set()
        loop.run_forever()

    def run(self, coroutine: Coroutine[Any, Any, _T]) -> _T:
        if self._loop is None:
            msg = "store mapping async loop not initialized"
            raise RuntimeError(msg)
        future: Future[Any] = asyncio.run_coroutine_threadsafe(coroutine, self._loop)
        return future.result()

    def close(self) -> None:
        if self._loop is None:
            return
        _ = self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout=5)


async def _collect(iterator: AsyncIterator[_T]) -> list[_T]:
    return [item async for item in iterator]


class StoreMapping(MutableMapping[Any, Any]):
    """Dict-like sync API over an :class:`AsyncStore`.

    Keys are normalized to structured key tuples, so ``mapping["a"]`` and
    ``mapping[("a",)]`` address the same record. Iteration follows encoded key
    order.
    """

    def __init__(self, backend: Backend, layer: StoreLayer | None = None) -> None:
        super().__init__()
        self._store = AsyncStore(backend, layer)
        self._bridge = _AsyncLoopBridge()

    @property
    def store(self) -> AsyncStore:
        return self._store

    @override
    def __getitem__(self, key: Any) -> Any:
        value = self._bridge.run(self._store.get(key))
        if value is None:
            raise KeyError(key)
        return value

    @override
    def __setitem__(self, key: Any, value: Any) -> None:
        if value is None:
            msg = "None values cannot be stored"
            raise ValueError(msg)
        self._bridge.run(self._store.put(key, value))

    @override
    def __delitem__(self, key: Any) -> None:
        if self._bridge.run(self._store.get(key)) is None:
            raise KeyError(key)
        self._bridge.run(self._store.delete(key))

    @override
    def __iter__(self) -> Iterator[Key]:
        """Iterate all keys in ascending order."""
        return iter([key for key, _ in self.find()])

    @override
    def __len__(self) -> int:
        return self._bridge.run(self._store.count())

    def find(
        self,
        selector: RangeSelector | None = None,
        *,
        limit: int | None = None,
        **options: Any,
    ) -> list[tuple[Key, Any]]:
        """Return decoded ``(key, value)`` pairs matching a range selector."""
        return self._bridge.run(_collect(self._store.find(selector, limit=limit, **options)))

    @override
    def __repr__(self) -> str:
        return repr(dict(self.find()))

    def close(self) -> None:
        """Close backend and bridge resources."""
        self._bridge.run(self._store.close())
        self._bridge.close()
