"""SequenceSlot value object: one allocated destination for an upload's frames."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

SEQUENCE_PREFIX = "sequence"


@dataclass(frozen=True)
class SequenceSlot:
    """Immutable (label, sequence) pair.

    A slot is addressed either by an allocated ``sequence_number`` or by an
    explicit caller-supplied ``name``; exactly one of the two is set.
    """

    label: str
    sequence_number: Optional[int] = None
    name: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.label:
            raise ValueError("SequenceSlot requires a non-empty label")
        if (self.sequence_number is None) == (self.name is None):
            raise ValueError("SequenceSlot requires exactly one of sequence_number or name")
        if self.sequence_number is not None and self.sequence_number < 1:
            raise ValueError(
                f"sequence_number must be positive, got {self.sequence_number}"
            )
        if self.name is not None and not self.name:
            raise ValueError("SequenceSlot name must not be empty")

    @property
    def identifier(self) -> str:
        if self.name is not None:
            return self.name
        return f"{SEQUENCE_PREFIX}{self.sequence_number}"

    @property
    def is_named(self) -> bool:
        return self.name is not None

    def __str__(self) -> str:
        return f"{self.label}/{self.identifier}"
