"""Minimal example for AsyncStore using a Redis-compatible backend."""

import asyncio

from kv_layer.backends.redis import RedisBackend
from kv_layer.store import AsyncStore


async def main() -> None:
    """Write time-series style keys and page through them backwards."""
    store = AsyncStore(RedisBackend(url="redis://redis:6379/0", namespace="example"))
    try:
        for day in range(1, 8):
            await store.put(("sensor", "s1", day), {"reading": day * 1.5})

        print("range:", store.resolve(prefix=("sensor", "s1"), start=6, reverse=True))
        async for key, value in store.find(prefix=("sensor", "s1"), start=6, end_before=2, reverse=True):
            print(key, value)
        print("count:", await store.count(prefix=("sensor", "s1")))
    finally:
        await store.close()


if __name__ == "__main__":
    asyncio.run(main())
