"""Object-store implementation of FrameSinkPort.

Each frame becomes an independent upload task. ``write`` returns as soon as
the task is scheduled (waiting only while ``max_concurrent_uploads`` are
already in flight), and ``close`` gathers the whole group so every outcome
is accounted for by frame index.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Optional

from backend.src.core.entities.persisted_artifact import FrameFailure, PersistedArtifact, SinkReport
from backend.src.core.exceptions import PersistenceError
from backend.src.core.services.sequence_naming import (
    DEFAULT_VIEW_NAME,
    frame_key,
    slot_prefix,
    source_filename,
)
from backend.src.core.value_objects.frame import Frame
from backend.src.core.value_objects.sequence_slot import SequenceSlot

logger = logging.getLogger(__name__)


class RemoteObjectSink:
    """Implements :class:`FrameSinkPort` on top of an :class:`ObjectStorePort`."""

    def __init__(
        self,
        store,  # ObjectStorePort
        key_prefix: str = "input_folder",
        view_name: str = DEFAULT_VIEW_NAME,
        max_concurrent_uploads: int = 8,
        upload_retries: int = 2,
        retry_backoff_seconds: float = 0.5,
    ) -> None:
        if max_concurrent_uploads < 1:
            raise ValueError(f"max_concurrent_uploads must be >= 1, got {max_concurrent_uploads}")
        self._store = store
        self._prefix = key_prefix
        self._view_name = view_name
        self._max_concurrent = max_concurrent_uploads
        self._retries = max(0, upload_retries)
        self._backoff = retry_backoff_seconds

    def describe(self, slot: SequenceSlot) -> str:
        return f"{slot_prefix(self._prefix, slot)}{self._view_name}/"

    def open(self, slot: SequenceSlot) -> RemoteObjectSession:
        return RemoteObjectSession(
            slot,
            self._store,
            key_prefix=self._prefix,
            view_name=self._view_name,
            max_concurrent_uploads=self._max_concurrent,
            upload_retries=self._retries,
            retry_backoff_seconds=self._backoff,
        )


class RemoteObjectSession:
    """Per-request upload group. Never shared between requests."""

    def __init__(
        self,
        slot: SequenceSlot,
        store,
        key_prefix: str,
        view_name: str,
        max_concurrent_uploads: int,
        upload_retries: int,
        retry_backoff_seconds: float,
    ) -> None:
        self.slot = slot
        self._store = store
        self._prefix = key_prefix
        self._view_name = view_name
        self._retries = upload_retries
        self._backoff = retry_backoff_seconds
        self._semaphore = asyncio.Semaphore(max_concurrent_uploads)
        self._tasks: dict[int, asyncio.Task] = {}
        self._received = 0
        self._artifacts: list[PersistedArtifact] = []
        self._failures: list[FrameFailure] = []
        self._source_location: Optional[str] = None
        self._closed = False

    @property
    def frames_received(self) -> int:
        return self._received

    @property
    def in_flight(self) -> int:
        return sum(1 for t in self._tasks.values() if not t.done())

    async def write(self, frame: Frame) -> None:
        """Schedule the upload of *frame* and return without awaiting it."""
        if self._closed:
            raise PersistenceError("Session is closed", index=frame.index)
        if frame.index != self._received + 1:
            raise PersistenceError(
                f"Out-of-order frame {frame.index}, expected {self._received + 1}",
                index=frame.index,
            )
        await self._semaphore.acquire()
        self._received += 1
        key = frame_key(self._prefix, self.slot, frame, self._view_name)
        self._tasks[frame.index] = asyncio.create_task(
            self._upload(frame.index, key, frame.image_bytes),
            name=f"upload-{self.slot}-{frame.index}",
        )

    async def write_source(self, video_bytes: bytes, extension: str) -> str:
        key = slot_prefix(self._prefix, self.slot) + source_filename(extension)
        try:
            await self._store.upload_bytes(key, video_bytes, content_type=f"video/{extension.lstrip('.')}")
        except Exception as exc:
            raise PersistenceError(f"Failed to upload source video {key}: {exc}") from exc
        self._source_location = key
        logger.info("Uploaded source video %s (%d bytes)", key, len(video_bytes))
        return key

    async def close(self) -> SinkReport:
        """Wait for every outstanding upload, then report all outcomes."""
        self._closed = True
        if self._tasks:
            await asyncio.gather(*self._tasks.values(), return_exceptions=True)
        logger.info(
            "Closed %s: %d uploaded, %d failed",
            self.slot, len(self._artifacts), len(self._failures),
        )
        return self._report()

    async def abort(self) -> SinkReport:
        """Cancel in-flight uploads; cancelled frames are reported as failed."""
        self._closed = True
        pending = {i: t for i, t in self._tasks.items() if not t.done()}
        for task in pending.values():
            task.cancel()
        await asyncio.gather(*pending.values(), return_exceptions=True)
        # A cancelled gather in close() may already have cancelled some tasks.
        for index, task in self._tasks.items():
            if task.cancelled():
                self._failures.append(FrameFailure(index, "upload cancelled"))
        if pending:
            logger.warning("Aborted %s: cancelled %d in-flight upload(s)", self.slot, len(pending))
        return self._report()

    # -- Private helpers -------------------------------------------------------

    async def _upload(self, index: int, key: str, data: bytes) -> None:
        try:
            attempt = 0
            while True:
                try:
                    await self._store.upload_bytes(key, data, content_type="image/png")
                    break
                except Exception as exc:
                    if attempt >= self._retries:
                        message = str(exc) or type(exc).__name__
                        self._failures.append(FrameFailure(index, message))
                        logger.error("Upload of %s failed after %d attempt(s): %s", key, attempt + 1, message)
                        return
                    delay = self._backoff * (2 ** attempt)
                    attempt += 1
                    logger.warning("Upload of %s failed (%s); retry %d in %.2fs", key, exc, attempt, delay)
                    await asyncio.sleep(delay)
            self._artifacts.append(PersistedArtifact(index, key))
            logger.debug("Uploaded %s (%d bytes)", key, len(data))
        finally:
            self._semaphore.release()

    def _report(self) -> SinkReport:
        return SinkReport(
            frames_received=self._received,
            artifacts=list(self._artifacts),
            failures=list(self._failures),
            source_location=self._source_location,
        )
