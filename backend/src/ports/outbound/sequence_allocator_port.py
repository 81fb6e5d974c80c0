"""Port for per-label sequence allocation."""
from __future__ import annotations
from typing import Protocol, runtime_checkable

from backend.src.core.value_objects.sequence_slot import SequenceSlot


@runtime_checkable
class SequenceAllocatorPort(Protocol):
    async def next_sequence_number(self, label: str) -> int: ...
    async def allocate(self, label: str) -> SequenceSlot: ...
    async def reserve_named(self, label: str, name: str) -> SequenceSlot: ...
