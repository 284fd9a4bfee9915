"""NATS JetStream KV backend implementation."""

from __future__ import annotations

import bisect
import logging
from typing import TYPE_CHECKING, Any, override


try:
    import nats as nats_module
except ImportError:  # pragma: no cover - exercised when dependency is absent
    nats_module = None

from .protocol import DEFAULT_BATCH_SIZE, Backend


if TYPE_CHECKING:
    from collections.abc import AsyncIterator


_NOT_FOUND_ERROR_NAMES = {"BucketNotFoundError", "KeyDeletedError", "KeyNotFoundError", "NoKeysError"}


def _is_not_found_error(error: Exception) -> bool:
    return error.__class__.__name__ in _NOT_FOUND_ERROR_NAMES


def _to_subject(key: bytes) -> str:
    # lowercase hex keeps byte order and only uses valid NATS key characters
    return key.hex()


class NatsBackend(Backend):
    """NATS JetStream KV backend.

    JetStream KV has no ordered range query, so ``scan`` lists the bucket keys,
    keeps the ones inside the range and sorts them client side.
    The backend uses an existing KV bucket by default.
    Set ``create_bucket=True`` to allow creating it when missing.
    """

    def __init__(
        self,
        url: str = "nats://nats:4222",
        bucket: str = "kv_layer",
        *,
        client: Any | None = None,
        create_bucket: bool = False,
    ) -> None:
        """Create a backend using a NATS URL or injected client.

        Parameters
        ----------
        url
            NATS server URL used when ``client`` is not provided.
        bucket
            JetStream KV bucket name.
        client
            Optional injected connected NATS client with ``jetstream`` API.
        create_bucket
            When True, creates bucket if missing. Defaults to False.
        """
        super().__init__()
        self._url = url
        self._bucket_name = bucket
        self._client = client
        self._create_bucket = create_bucket
        self._kv: Any | None = None
        self._logger = logging.getLogger("kv_layer.backends.nats")

    async def _ensure_kv(self) -> Any:
        if self._kv is not None:
            return self._kv

        if self._client is None:
            if nats_module is None:
                msg = "nats-py dependency is required for NatsBackend; install with `uv add nats-py`"
                raise RuntimeError(msg)
            connect = getattr(nats_module, "connect", None)
            if connect is None:
                msg = "nats.connect is unavailable in installed nats-py package"
                raise RuntimeError(msg)
            self._client = await connect(servers=[self._url])

        jetstream = self._client.jetstream()

        try:
            self._kv = await jetstream.key_value(self._bucket_name)
        except Exception as error:
            if _is_not_found_error(error) and self._create_bucket:
                self._logger.debug("Creating jetstream KV bucket %s", self._bucket_name)
                self._kv = await jetstream.create_key_value(bucket=self._bucket_name)
            else:
                msg = (
                    f"jetstream KV bucket '{self._bucket_name}' is not available; "
                    "create it first or initialize with create_bucket=True"
                )
                raise RuntimeError(msg) from error

        return self._kv

    async def _get_subject(self, kv: Any, subject: str) -> bytes | None:
        try:
            entry = await kv.get(subject)
        except Exception as error:
            if _is_not_found_error(error):
                return None
            raise

        value = entry.value
        if value is None:
            return None
        if isinstance(value, str):
            return value.encode()
        return value

    @override
    async def get(self, key: bytes) -> bytes | None:
        """Return raw value for key, or None when key does not exist."""
        kv = await self._ensure_kv()
        return await self._get_subject(kv, _to_subject(key))

    @override
    async def set(self, key: bytes, value: bytes) -> None:
        """Store raw value for key."""
        kv = await self._ensure_kv()
        await kv.put(_to_subject(key), value)

    @override
    async def delete(self, key: bytes) -> None:
        """Delete key if present."""
        kv = await self._ensure_kv()
        await kv.delete(_to_subject(key))

    async def _sorted_keys(self, kv: Any) -> list[bytes]:
        try:
            subjects = await kv.keys()
        except Exception as error:
            if _is_not_found_error(error):
                return []
            raise
        return sorted(bytes.fromhex(subject) for subject in subjects or [])

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
        """Iterate pairs in ``[start, end)``; ``batch_size`` is unused."""
        kv = await self._ensure_kv()
        keys = await self._sorted_keys(kv)
        selected = keys[bisect.bisect_left(keys, start) : bisect.bisect_left(keys, end)]
        if reverse:
            selected.reverse()

        remaining = limit
        for key in selected:
            if remaining is not None and remaining <= 0:
                return
            value = await self._get_subject(kv, _to_subject(key))
            # deleted after the key listing
            if value is None:
                continue
            yield key, value
            if remaining is not None:
                remaining -= 1

    @override
    async def close(self) -> None:
        """Close NATS client resources."""
        if self._client is None:
            return
        await self._client.close()
