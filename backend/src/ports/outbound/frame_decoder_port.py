"""Port for decoding an uploaded video into a frame stream."""
from __future__ import annotations
from typing import AsyncIterator, Optional, Protocol, runtime_checkable

from backend.src.core.value_objects.frame import Frame


@runtime_checkable
class FrameDecoderPort(Protocol):
    input_format: str
    frame_rate: float

    def decode(self, video_bytes: bytes, frame_rate: Optional[float] = None) -> AsyncIterator[Frame]: ...
