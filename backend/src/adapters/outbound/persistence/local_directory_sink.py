"""Local filesystem implementation of FrameSinkPort."""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import Optional

from backend.src.core.entities.persisted_artifact import FrameFailure, PersistedArtifact, SinkReport
from backend.src.core.exceptions import PersistenceError
from backend.src.core.services.sequence_naming import DEFAULT_VIEW_NAME, source_filename
from backend.src.core.value_objects.frame import Frame
from backend.src.core.value_objects.sequence_slot import SequenceSlot

logger = logging.getLogger(__name__)


def _write_durable(target: Path, content: bytes) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    with open(target, "wb") as handle:
        handle.write(content)
        handle.flush()
        os.fsync(handle.fileno())


class LocalDirectorySink:
    """Implements :class:`FrameSinkPort` using a local directory tree.

    Frames land in ``<base_dir>/<label>/<sequence>/<view>/image<k>.png``.
    """

    def __init__(self, base_dir: str | Path, view_name: str = DEFAULT_VIEW_NAME) -> None:
        self._base = Path(base_dir).resolve()
        self._base.mkdir(parents=True, exist_ok=True)
        self._view_name = view_name
        logger.info("LocalDirectorySink initialised at %s", self._base)

    def slot_dir(self, slot: SequenceSlot) -> Path:
        return self._base / slot.label / slot.identifier

    def describe(self, slot: SequenceSlot) -> str:
        return str(self.slot_dir(slot) / self._view_name)

    def open(self, slot: SequenceSlot) -> LocalDirectorySession:
        return LocalDirectorySession(slot, self.slot_dir(slot), self._view_name)


class LocalDirectorySession:
    """Per-request writer; frames are written one at a time and synced before returning.

    Each blocking write runs as a shielded task, so cancelling the caller
    never abandons a write whose file still lands on disk: ``close`` and
    ``abort`` wait for it and record its real outcome.
    """

    def __init__(self, slot: SequenceSlot, slot_dir: Path, view_name: str) -> None:
        self.slot = slot
        self._slot_dir = slot_dir
        self._view_dir = slot_dir / view_name
        self._received = 0
        self._artifacts: list[PersistedArtifact] = []
        self._failures: list[FrameFailure] = []
        self._source_location: str | None = None
        self._in_flight: Optional[asyncio.Task] = None
        self._closed = False

    @property
    def frames_received(self) -> int:
        return self._received

    async def write(self, frame: Frame) -> None:
        if self._closed:
            raise PersistenceError("Session is closed", index=frame.index)
        if frame.index != self._received + 1:
            raise PersistenceError(
                f"Out-of-order frame {frame.index}, expected {self._received + 1}",
                index=frame.index,
            )
        self._received += 1
        await self._shielded(self._write_frame(frame))

    async def write_source(self, video_bytes: bytes, extension: str) -> str:
        target = self._slot_dir / source_filename(extension)
        await self._shielded(self._write_source(target, video_bytes))
        return str(target)

    async def close(self) -> SinkReport:
        self._closed = True
        await self._settle()
        logger.info(
            "Closed %s: %d written, %d failed",
            self.slot, len(self._artifacts), len(self._failures),
        )
        return self._report()

    async def abort(self) -> SinkReport:
        # A write cannot be interrupted once handed to the executor; wait for it.
        return await self.close()

    # -- Private helpers -------------------------------------------------------

    async def _shielded(self, coro) -> None:
        self._in_flight = asyncio.ensure_future(coro)
        await asyncio.shield(self._in_flight)

    async def _settle(self) -> None:
        if self._in_flight is not None and not self._in_flight.done():
            logger.info("Waiting for in-flight write on %s", self.slot)
            await asyncio.gather(self._in_flight, return_exceptions=True)

    async def _write_frame(self, frame: Frame) -> None:
        target = self._view_dir / frame.filename
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, _write_durable, target, frame.image_bytes)
        except OSError as exc:
            self._failures.append(FrameFailure(frame.index, str(exc)))
            logger.error("Failed to write %s: %s", target, exc)
            raise PersistenceError(f"Failed to write {target}: {exc}", index=frame.index) from exc
        self._artifacts.append(PersistedArtifact(frame.index, str(target)))
        logger.debug("Saved frame %s (%d bytes)", target, frame.size)

    async def _write_source(self, target: Path, video_bytes: bytes) -> None:
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, _write_durable, target, video_bytes)
        except OSError as exc:
            raise PersistenceError(f"Failed to write source video {target}: {exc}") from exc
        self._source_location = str(target)
        logger.info("Saved source video %s (%d bytes)", target, len(video_bytes))

    def _report(self) -> SinkReport:
        return SinkReport(
            frames_received=self._received,
            artifacts=list(self._artifacts),
            failures=list(self._failures),
            source_location=self._source_location,
        )
