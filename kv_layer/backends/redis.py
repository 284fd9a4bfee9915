"""Redis-compatible backend implementation."""

from __future__ import annotations

import logging
from inspect import isawaitable
from typing import TYPE_CHECKING, Any, override


try:
    import redis.asyncio as redis_async
except ImportError:  # pragma: no cover - exercised when dependency is absent
    redis_async = None

from .protocol import DEFAULT_BATCH_SIZE, Backend


if TYPE_CHECKING:
    from collections.abc import AsyncIterator


def _to_bytes(value: str | bytes) -> bytes:
    if isinstance(value, str):
        return value.encode()
    return value


class RedisBackend(Backend):
    """Redis-compatible async backend using ``redis.asyncio`` client APIs.

    Keys live as members of one sorted set (all scores 0) so that
    ``ZRANGEBYLEX`` walks them in byte order; values live in a companion hash.
    """

    def __init__(
        self,
        url: str = "redis://localhost:6379/0",
        namespace: str = "kv_layer",
        *,
        client: Any | None = None,
    ) -> None:
        """Create a backend from URL or an injected async client.

        Parameters
        ----------
        url
            Redis connection URL used when ``client`` is not provided.
        namespace
            Prefix of the sorted set (``<namespace>:keys``) and hash
            (``<namespace>:values``) holding the data.
        client
            Optional injected client with ``zadd/zrem/zrangebylex/zrevrangebylex/
            hget/hmget/hset/hdel/aclose`` API, returning bytes.
        """
        super().__init__()
        self._url = url
        self._index = f"{namespace}:keys"
        self._values = f"{namespace}:values"
        self._logger = logging.getLogger("kv_layer.backends.redis")
        if client is not None:
            self._client = client
            return

        if redis_async is None:
            msg = "redis dependency is required for RedisBackend; install with `uv add redis`"
            raise RuntimeError(msg)

        self._client = redis_async.from_url(url, decode_responses=False)
        self._logger.debug("Connected redis backend to %s (namespace %s)", url, namespace)

    @override
    async def get(self, key: bytes) -> bytes | None:
        """Return raw value for key, or None when key does not exist."""
        value = await self._client.hget(self._values, key)
        if value is None:
            return None
        return _to_bytes(value)

    @override
    async def set(self, key: bytes, value: bytes) -> None:
        """Store raw value for key."""
        await self._client.hset(self._values, key, value)
        await self._client.zadd(self._index, {key: 0})

    @override
    async def delete(self, key: bytes) -> None:
        """Delete key if present."""
        await self._client.zrem(self._index, key)
        await self._client.hdel(self._values, key)

    async def _members(self, low: bytes, high: bytes, *, reverse: bool, size: int) -> list[bytes]:
        if reverse:
            members = await self._client.zrevrangebylex(self._index, high, low, start=0, num=size)
        else:
            members = await self._client.zrangebylex(self._index, low, high, start=0, num=size)
        return [_to_bytes(member) for member in members]

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
        """Iterate pairs in ``[start, end)`` with lexicographic range queries."""
        remaining = limit
        low, high = b"[" + start, b"(" + end
        while remaining is None or remaining > 0:
            size = batch_size if remaining is None else min(batch_size, remaining)
            members = await self._members(low, high, reverse=reverse, size=size)
            if not members:
                return
            values = await self._client.hmget(self._values, members)
            for member, value in zip(members, values, strict=True):
                # concurrently deleted between the two round trips
                if value is None:
                    continue
                yield member, _to_bytes(value)
                if remaining is not None:
                    remaining -= 1
                    if remaining == 0:
                        return
            if len(members) < size:
                return
            if reverse:
                high = b"(" + members[-1]
            else:
                low = b"(" + members[-1]

    @override
    async def close(self) -> None:
        """Release backend resources."""
        close_method = getattr(self._client, "aclose", None)
        if close_method is None:
            close_method = getattr(self._client, "close", None)
        if close_method is None:
            return

        maybe_awaitable = close_method()
        if isawaitable(maybe_awaitable):
            await maybe_awaitable
