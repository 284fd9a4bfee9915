"""Minimal example for AsyncStore using a NATS JetStream KV backend."""

import asyncio

from kv_layer.backends.nats import NatsBackend
from kv_layer.store import AsyncStore


async def main() -> None:
    """Run a basic put/find/delete flow against NATS JetStream KV."""
    store = AsyncStore(NatsBackend(url="nats://nats:4222", bucket="kv_layer", create_bucket=True))
    try:
        await store.put(("user", "alice"), {"age": 30})
        await store.put(("user", "bob"), {"age": 31})
        print("users:", [item async for item in store.find(prefix="user")])

        await store.delete(("user", "alice"))
        print("after delete:", [key async for key, _ in store.find(prefix="user")])
    finally:
        await store.close()


if __name__ == "__main__":
    asyncio.run(main())
