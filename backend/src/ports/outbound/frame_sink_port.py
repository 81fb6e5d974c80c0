"""Ports for frame persistence targets and their per-request sessions."""
from __future__ import annotations
from typing import Optional, Protocol, runtime_checkable

from backend.src.core.entities.persisted_artifact import SinkReport
from backend.src.core.value_objects.frame import Frame
from backend.src.core.value_objects.sequence_slot import SequenceSlot


@runtime_checkable
class FrameSinkSessionPort(Protocol):
    slot: SequenceSlot

    @property
    def frames_received(self) -> int: ...
    async def write(self, frame: Frame) -> None: ...
    async def write_source(self, video_bytes: bytes, extension: str) -> str: ...
    async def close(self) -> SinkReport: ...
    async def abort(self) -> SinkReport: ...


@runtime_checkable
class FrameSinkPort(Protocol):
    def open(self, slot: SequenceSlot) -> FrameSinkSessionPort: ...
    def describe(self, slot: SequenceSlot) -> str: ...
