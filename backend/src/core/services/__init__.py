from backend.src.core.services.label_locks import LabelLockRegistry
from backend.src.core.services.sequence_naming import (
    DEFAULT_VIEW_NAME,
    frame_key,
    is_safe_segment,
    next_sequence_number,
    parse_sequence_number,
)

__all__ = [
    "LabelLockRegistry",
    "DEFAULT_VIEW_NAME",
    "frame_key",
    "is_safe_segment",
    "next_sequence_number",
    "parse_sequence_number",
]
