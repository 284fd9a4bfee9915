"""Backend interface definitions."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from collections.abc import AsyncIterator


DEFAULT_BATCH_SIZE = 256


class Backend(ABC):
    """Async ordered key-value backend over raw bytes.

    Keys compare byte-wise. ``scan`` walks the half-open range ``[start, end)``
    ascending, or descending when ``reverse`` is set, fetching ``batch_size``
    entries per round trip. Each call to ``scan`` starts a fresh iteration.
    """

    @abstractmethod
    async def get(self, key: bytes) -> bytes | None:
        """Return raw value for key, or None when key does not exist."""

    @abstractmethod
    async def set(self, key: bytes, value: bytes) -> None:
        """Store raw value for key."""

    @abstractmethod
    async def delete(self, key: bytes) -> None:
        """Delete key if present."""

    @abstractmethod
    def scan(
        self,
        start: bytes,
        end: bytes,
        *,
        reverse: bool = False,
        limit: int | None = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> AsyncIterator[tuple[bytes, bytes]]:
        """Iterate ``(key, value)`` pairs with ``start <= key < end``."""

    @abstractmethod
    async def close(self) -> None:
        """Close any backend resources."""
