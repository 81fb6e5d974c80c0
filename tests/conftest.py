"""Shared test fixtures for all tests."""
from __future__ import annotations

import asyncio
import struct
import zlib
from typing import Optional

import pytest

from backend.src.adapters.outbound.storage.in_memory_object_store import InMemoryObjectStore
from backend.src.core.exceptions import DecodeEngineError
from backend.src.core.services.label_locks import LabelLockRegistry
from backend.src.core.value_objects.frame import PNG_SIGNATURE, Frame

# Smallest container header the webm signature check accepts.
WEBM_HEADER = b"\x1a\x45\xdf\xa3"


def _chunk(chunk_type: bytes, data: bytes) -> bytes:
    crc = zlib.crc32(chunk_type + data) & 0xFFFFFFFF
    return struct.pack(">I", len(data)) + chunk_type + data + struct.pack(">I", crc)


def make_png(tag: int = 0) -> bytes:
    """Structurally valid PNG; *tag* is stored in a tEXt chunk so images differ."""
    ihdr = struct.pack(">IIBBBBB", 1, 1, 8, 0, 0, 0, 0)
    idat = zlib.compress(b"\x00\x00")
    text = b"frame\x00" + str(tag).encode("ascii")
    return (
        PNG_SIGNATURE
        + _chunk(b"IHDR", ihdr)
        + _chunk(b"tEXt", text)
        + _chunk(b"IDAT", idat)
        + _chunk(b"IEND", b"")
    )


class FakeDecoder:
    """FrameDecoderPort stand-in yielding ``frames`` PNGs, optionally failing midway."""

    input_format = "webm"
    frame_rate = 20.0

    def __init__(
        self,
        frames: int = 3,
        fail_after: Optional[int] = None,
        error: Optional[Exception] = None,
        delay: float = 0.0,
    ):
        self.frames = frames
        self.fail_after = fail_after
        self.error = error
        self.delay = delay
        self.calls = 0
        self.closed = False

    async def decode(self, video_bytes: bytes, frame_rate: Optional[float] = None):
        self.calls += 1
        try:
            for index in range(1, self.frames + 1):
                if self.fail_after is not None and index > self.fail_after:
                    raise self.error or DecodeEngineError(
                        f"Decode engine failed after {self.fail_after} frame(s)"
                    )
                if self.delay:
                    await asyncio.sleep(self.delay)
                yield Frame(index=index, image_bytes=make_png(index))
        finally:
            self.closed = True


# ── Fixtures ───────────────────────────────────────────────────────────────

@pytest.fixture
def png_factory():
    return make_png


@pytest.fixture
def frames(png_factory) -> list[Frame]:
    return [Frame(index=i, image_bytes=png_factory(i)) for i in range(1, 6)]


@pytest.fixture
def webm_bytes() -> bytes:
    return WEBM_HEADER + b"\x00" * 64


@pytest.fixture
def memory_store() -> InMemoryObjectStore:
    return InMemoryObjectStore()


@pytest.fixture
def label_locks() -> LabelLockRegistry:
    return LabelLockRegistry()


@pytest.fixture
def fake_decoder_cls():
    return FakeDecoder
