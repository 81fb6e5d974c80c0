"""Incremental splitter for a concatenated stream of PNG images.

``ffmpeg -f image2pipe -c:v png`` writes images back to back with no
framing, so image boundaries are recovered from the PNG chunk layout:
an 8-byte signature followed by ``length | type | data | crc`` chunks,
terminated by ``IEND``.
"""
from __future__ import annotations

import struct

from backend.src.core.value_objects.frame import PNG_SIGNATURE

_CHUNK_HEADER = struct.Struct(">I4s")
_CRC_SIZE = 4


class PngStreamError(ValueError):
    """Raised when the stream does not contain well-formed PNG data."""


class PngStreamSplitter:
    """Feed arbitrary byte chunks; get complete PNG images back."""

    def __init__(self) -> None:
        self._buffer = bytearray()
        self._offset = 0  # parse position inside the current image

    def feed(self, data: bytes) -> list[bytes]:
        """Append *data* and return every image it completes.

        Malformed data after complete images is reported on the next call,
        so images parsed before it are never lost. ``feed(b"")`` re-checks
        whatever is still buffered.
        """
        self._buffer.extend(data)
        images: list[bytes] = []
        while True:
            try:
                image = self._next_image()
            except PngStreamError:
                if images:
                    return images
                raise
            if image is None:
                break
            images.append(image)
        return images

    @property
    def pending(self) -> int:
        """Bytes buffered for an image that has not been completed yet."""
        return len(self._buffer)

    def _next_image(self) -> bytes | None:
        buf = self._buffer
        if self._offset == 0:
            if len(buf) < len(PNG_SIGNATURE):
                return None
            if bytes(buf[: len(PNG_SIGNATURE)]) != PNG_SIGNATURE:
                raise PngStreamError(
                    f"Expected PNG signature, got {bytes(buf[:8]).hex()}"
                )
            self._offset = len(PNG_SIGNATURE)

        while True:
            header_end = self._offset + _CHUNK_HEADER.size
            if len(buf) < header_end:
                return None
            length, chunk_type = _CHUNK_HEADER.unpack_from(buf, self._offset)
            chunk_end = header_end + length + _CRC_SIZE
            if len(buf) < chunk_end:
                return None
            self._offset = chunk_end
            if chunk_type == b"IEND":
                image = bytes(buf[:chunk_end])
                del buf[:chunk_end]
                self._offset = 0
                return image
