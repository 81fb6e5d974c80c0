"""
Sequence naming and artifact layout - pure domain logic.
Shared by the local-directory and object-store allocators and sinks.
"""
from __future__ import annotations

import re
from typing import Iterable, Optional

from backend.src.core.value_objects.frame import Frame
from backend.src.core.value_objects.sequence_slot import SEQUENCE_PREFIX, SequenceSlot

_SEQUENCE_RE = re.compile(rf"^{SEQUENCE_PREFIX}(\d+)$")
# Labels and sequence names become a single directory / key segment.
_SAFE_SEGMENT_RE = re.compile(r"^[\w][\w\-. ]*$")

DEFAULT_VIEW_NAME = "viewA"
SOURCE_BASENAME = "input"


def parse_sequence_number(name: str) -> Optional[int]:
    """Return N for ``sequence<N>``; None for anything else (e.g. ``sequenceX``)."""
    match = _SEQUENCE_RE.match(name)
    if match is None:
        return None
    return int(match.group(1))


def next_sequence_number(existing: Iterable[str]) -> int:
    """``max(parsed) + 1`` over *existing* slot names, or 1 when none parse."""
    numbers = [n for n in (parse_sequence_number(e) for e in existing) if n is not None]
    return max(numbers, default=0) + 1


def is_safe_segment(value: str) -> bool:
    """True when *value* can be used as one path segment / key component."""
    if not value or value in (".", ".."):
        return False
    if "\x00" in value or "/" in value or "\\" in value:
        return False
    return bool(_SAFE_SEGMENT_RE.match(value)) and ".." not in value


def frame_key(
    prefix: str,
    slot: SequenceSlot,
    frame: Frame,
    view_name: str = DEFAULT_VIEW_NAME,
) -> str:
    """Object key ``{prefix}/{label}/{identifier}/{view}/image{index}.png``."""
    parts = (prefix.strip("/"), slot.label, slot.identifier, view_name, frame.filename)
    return "/".join(p for p in parts if p)


def slot_prefix(prefix: str, slot: SequenceSlot) -> str:
    return "/".join(p for p in (prefix.strip("/"), slot.label, slot.identifier) if p) + "/"


def label_prefix(prefix: str, label: str) -> str:
    return "/".join(p for p in (prefix.strip("/"), label) if p) + "/"


def source_filename(extension: str) -> str:
    return f"{SOURCE_BASENAME}.{extension.lstrip('.')}"
