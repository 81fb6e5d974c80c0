"""DTO for frame extraction requests."""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class UploadRequest:
    video_bytes: bytes = field(default=b"", repr=False)
    label: str = ""
    sequence_name: Optional[str] = None
    filename: str = ""

    @property
    def size(self) -> int:
        return len(self.video_bytes)
