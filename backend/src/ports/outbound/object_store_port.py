"""Port for the narrow object-store surface the pipeline depends on."""
from __future__ import annotations
from typing import Protocol, runtime_checkable


@runtime_checkable
class ObjectStorePort(Protocol):
    async def upload_bytes(self, key: str, data: bytes, content_type: str = "image/png") -> str: ...
    async def create_if_absent(self, key: str, data: bytes = b"", content_type: str = "text/plain") -> bool: ...
    async def list_keys(self, prefix: str) -> set[str]: ...
