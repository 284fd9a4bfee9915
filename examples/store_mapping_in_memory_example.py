"""Minimal example for StoreMapping using the in-memory backend."""

from kv_layer.backends.in_memory import InMemoryAsyncBackend
from kv_layer.store import StoreMapping


def main() -> None:
    """Store a few composite keys and query them with range selectors."""
    mapping = StoreMapping(backend=InMemoryAsyncBackend())
    try:
        mapping[("users", "alice")] = {"age": 30}
        mapping[("users", "bob")] = {"age": 25}
        mapping[("users", "carol")] = {"age": 41}
        mapping[("groups", "admins")] = ["alice"]
        print(f"{mapping=}")

        print("users:", mapping.find(prefix="users"))
        print("users after alice:", mapping.find(prefix="users", start_after="alice"))
        print("last user:", mapping.find(prefix="users", reverse=True, limit=1))

        del mapping[("users", "bob")]
        print("keys after delete:", list(mapping))
    finally:
        mapping.close()


if __name__ == "__main__":
    main()
