"""Frame value object - one decoded still image."""

from __future__ import annotations

from dataclasses import dataclass, field

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


@dataclass(frozen=True)
class Frame:
    """A PNG-encoded frame numbered by its position in the decode stream (1-based)."""

    index: int
    image_bytes: bytes = field(repr=False)

    def __post_init__(self) -> None:
        if self.index < 1:
            raise ValueError(f"Frame index must be >= 1, got {self.index}")

    @property
    def filename(self) -> str:
        return f"image{self.index}.png"

    @property
    def size(self) -> int:
        return len(self.image_bytes)

    @property
    def is_png(self) -> bool:
        return self.image_bytes.startswith(PNG_SIGNATURE)
