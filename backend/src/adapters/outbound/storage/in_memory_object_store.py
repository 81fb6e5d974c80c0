"""In-memory implementation of ObjectStorePort for development and testing."""

from __future__ import annotations

import asyncio
import logging

logger = logging.getLogger(__name__)


class InMemoryObjectStore:
    """Implements :class:`ObjectStorePort` using a plain dict.

    Objects are lost when the process exits; intended for local development
    and as a deterministic stand-in for GCS in tests.
    """

    def __init__(self) -> None:
        self._objects: dict[str, bytes] = {}
        self._content_types: dict[str, str] = {}
        self._lock = asyncio.Lock()

    def uri(self, key: str) -> str:
        return f"memory://{key}"

    async def upload_bytes(self, key: str, data: bytes, content_type: str = "image/png") -> str:
        self._objects[key] = bytes(data)
        self._content_types[key] = content_type
        logger.debug("Stored %s (%d bytes)", key, len(data))
        return self.uri(key)

    async def create_if_absent(self, key: str, data: bytes = b"", content_type: str = "text/plain") -> bool:
        async with self._lock:
            if key in self._objects:
                return False
            self._objects[key] = bytes(data)
            self._content_types[key] = content_type
            return True

    async def list_keys(self, prefix: str) -> set[str]:
        return {k for k in self._objects if k.startswith(prefix)}

    # -- inspection helpers ------------------------------------------------------

    def get(self, key: str) -> bytes | None:
        return self._objects.get(key)

    def content_type(self, key: str) -> str | None:
        return self._content_types.get(key)

    def keys(self) -> list[str]:
        return sorted(self._objects)

    def __len__(self) -> int:
        return len(self._objects)
