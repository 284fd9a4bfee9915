import bisect

import pytest

from kv_layer.backends import redis as redis_module
from kv_layer.backends.redis import RedisBackend


def _lex_bound(bound: bytes) -> tuple[bytes, bool]:
    """Split a ZRANGEBYLEX bound into its key and inclusivity."""
    return bound[1:], bound[:1] == b"["


class _FakeRedisClient:
    def __init__(self) -> None:
        self.members: list[bytes] = []
        self.hashes: dict[str, dict[bytes, bytes]] = {}
        self.closed = False
        self.range_calls = 0

    async def hget(self, name: str, key: bytes) -> bytes | None:
        return self.hashes.get(name, {}).get(key)

    async def hmget(self, name: str, keys: list[bytes]) -> list[bytes | None]:
        return [self.hashes.get(name, {}).get(key) for key in keys]

    async def hset(self, name: str, key: bytes, value: bytes) -> None:
        self.hashes.setdefault(name, {})[key] = value

    async def hdel(self, name: str, key: bytes) -> None:
        _ = self.hashes.get(name, {}).pop(key, None)

    async def zadd(self, _name: str, mapping: dict[bytes, int]) -> None:
        for member in mapping:
            if member not in self.members:
                bisect.insort(self.members, member)

    async def zrem(self, _name: str, member: bytes) -> None:
        if member in self.members:
            self.members.remove(member)

    def _between(self, low: bytes, high: bytes) -> list[bytes]:
        low_key, low_inclusive = _lex_bound(low)
        high_key, high_inclusive = _lex_bound(high)
        return [
            member
            for member in self.members
            if (member >= low_key if low_inclusive else member > low_key)
            and (member <= high_key if high_inclusive else member < high_key)
        ]

    async def zrangebylex(self, _name: str, low: bytes, high: bytes, start: int, num: int) -> list[bytes]:
        self.range_calls += 1
        return self._between(low, high)[start : start + num]

    async def zrevrangebylex(self, _name: str, high: bytes, low: bytes, start: int, num: int) -> list[bytes]:
        self.range_calls += 1
        return self._between(low, high)[::-1][start : start + num]

    async def aclose(self) -> None:
        self.closed = True


class _FakeStrRedisClient(_FakeRedisClient):
    async def hget(self, name: str, key: bytes) -> str | None:
        value = await super().hget(name, key)
        return value.decode() if value is not None else None


class _FakeCloseOnlyClient:
    def __init__(self) -> None:
        self.closed = False

    async def close(self) -> None:
        self.closed = True


async def _filled(client: _FakeRedisClient) -> RedisBackend:
    backend = RedisBackend(client=client)
    for key in (b"d", b"a", b"c", b"e", b"b"):
        await backend.set(key, key.upper())
    return backend


@pytest.mark.asyncio
async def test_redis_backend_get_set_delete_roundtrip() -> None:
    client = _FakeRedisClient()
    backend = RedisBackend(client=client)

    await backend.set(b"\x70user\x00", b'{"alice": true}')
    assert await backend.get(b"\x70user\x00") == b'{"alice": true}'
    assert client.members == [b"\x70user\x00"]

    await backend.delete(b"\x70user\x00")
    assert await backend.get(b"\x70user\x00") is None
    assert client.members == []


@pytest.mark.asyncio
async def test_redis_backend_uses_namespaced_structures() -> None:
    client = _FakeRedisClient()
    backend = RedisBackend(namespace="app", client=client)

    await backend.set(b"k", b"v")
    assert client.hashes == {"app:values": {b"k": b"v"}}


@pytest.mark.asyncio
async def test_redis_backend_scan_is_half_open_in_both_directions() -> None:
    backend = await _filled(_FakeRedisClient())

    assert [key async for key, _ in backend.scan(b"b", b"d")] == [b"b", b"c"]
    assert [key async for key, _ in backend.scan(b"b", b"d", reverse=True)] == [b"c", b"b"]
    assert [item async for item in backend.scan(b"a", b"b")] == [(b"a", b"A")]


@pytest.mark.asyncio
async def test_redis_backend_scan_pages_with_exclusive_continuation() -> None:
    client = _FakeRedisClient()
    backend = await _filled(client)

    forward = [key async for key, _ in backend.scan(b"", b"\xff", batch_size=2)]
    backward = [key async for key, _ in backend.scan(b"", b"\xff", reverse=True, batch_size=2)]

    assert forward == [b"a", b"b", b"c", b"d", b"e"]
    assert backward == [b"e", b"d", b"c", b"b", b"a"]
    assert client.range_calls == 6


@pytest.mark.asyncio
async def test_redis_backend_scan_limit() -> None:
    backend = await _filled(_FakeRedisClient())

    assert [key async for key, _ in backend.scan(b"", b"\xff", limit=3, batch_size=2)] == [b"a", b"b", b"c"]


@pytest.mark.asyncio
async def test_redis_backend_scan_limit_skips_members_without_value() -> None:
    client = _FakeRedisClient()
    backend = await _filled(client)
    # index entry left behind by a concurrent delete
    del client.hashes["kv_layer:values"][b"a"]

    pairs = [pair async for pair in backend.scan(b"a", b"z", limit=2)]
    assert pairs == [(b"b", b"B"), (b"c", b"C")]

    pairs = [pair async for pair in backend.scan(b"a", b"z", limit=2, batch_size=1)]
    assert pairs == [(b"b", b"B"), (b"c", b"C")]


@pytest.mark.asyncio
async def test_redis_backend_normalizes_str_from_client() -> None:
    backend = RedisBackend(client=_FakeStrRedisClient())

    await backend.set(b"key", b"value")
    assert await backend.get(b"key") == b"value"


@pytest.mark.asyncio
async def test_redis_backend_close_prefers_aclose() -> None:
    client = _FakeRedisClient()
    backend = RedisBackend(client=client)

    await backend.close()
    assert client.closed is True


@pytest.mark.asyncio
async def test_redis_backend_close_falls_back_to_close() -> None:
    client = _FakeCloseOnlyClient()
    backend = RedisBackend(client=client)

    await backend.close()
    assert client.closed is True


def test_redis_backend_requires_dependency_without_injected_client(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(redis_module, "redis_async", None)

    with pytest.raises(RuntimeError, match="redis dependency is required"):
        _ = RedisBackend()
