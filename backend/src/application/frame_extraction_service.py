"""
Frame extraction use case.
Validates an upload, allocates its sequence slot and drives decoded frames into a sink.
"""
from __future__ import annotations

import asyncio
import logging
from contextlib import aclosing
from dataclasses import dataclass
from typing import Optional

from backend.src.application.dto.pipeline_result import PipelineResult, PipelineStage
from backend.src.application.dto.upload_request import UploadRequest
from backend.src.core.entities.persisted_artifact import FrameFailure, SinkReport
from backend.src.core.exceptions import (
    AllocationError,
    ClientInputError,
    DecodeError,
    FramePersistenceError,
    PersistenceError,
    PipelineTimeoutError,
)
from backend.src.core.services.sequence_naming import is_safe_segment
from backend.src.core.value_objects.sequence_slot import SequenceSlot

logger = logging.getLogger(__name__)


@dataclass
class _RunState:
    emitted: int = 0


class FrameExtractionService:
    """Runs one upload through Validating -> Allocating -> Persisting -> Completed | Failed.

    Client input problems raise :class:`ClientInputError` before anything is
    allocated. Every later failure is reported through the returned
    :class:`PipelineResult`; frames persisted before a failure are kept.
    """

    def __init__(
        self,
        decoder,    # FrameDecoderPort
        allocator,  # SequenceAllocatorPort
        sink,       # FrameSinkPort
        timeout_seconds: Optional[float] = 300.0,
        persist_source_video: bool = False,
        frame_rate: Optional[float] = None,
    ):
        self._decoder = decoder
        self._allocator = allocator
        self._sink = sink
        self._timeout = timeout_seconds if timeout_seconds and timeout_seconds > 0 else None
        self._persist_source_video = persist_source_video
        self._frame_rate = frame_rate

    async def execute(self, request: UploadRequest) -> PipelineResult:
        self._validate(request)

        try:
            slot = await self._allocate(request)
        except AllocationError as exc:
            logger.error("Allocation failed for label %s: %s", request.label, exc)
            return PipelineResult(
                succeeded=False,
                stage=PipelineStage.FAILED,
                failed_stage=PipelineStage.ALLOCATING,
                first_error=exc,
            )

        session = self._sink.open(slot)
        location = self._sink.describe(slot)
        state = _RunState()
        logger.info("Extracting frames for %s -> %s", slot, location)

        try:
            report, error = await asyncio.wait_for(
                self._run(request, session, state), timeout=self._timeout
            )
        except asyncio.TimeoutError:
            report = await session.abort()
            error = PipelineTimeoutError(self._timeout, state.emitted)
            logger.error("Timed out on %s after %d frame(s)", slot, state.emitted)
        except Exception:
            await session.abort()
            raise

        failures = self._reconcile(report, state.emitted)
        if error is None and failures:
            error = FramePersistenceError(failures)

        result = self._build_result(slot, location, state.emitted, report, failures, error)
        if result.succeeded:
            logger.info("Completed %s: %d frame(s) in %s", slot, result.frame_count, location)
        else:
            logger.error("Failed %s after %d frame(s): %s", slot, result.frame_count, error)
        return result

    # -- stages ----------------------------------------------------------------

    def _validate(self, request: UploadRequest) -> None:
        if not request.video_bytes:
            raise ClientInputError("No file uploaded")
        if not request.label or not request.label.strip():
            raise ClientInputError("No label provided")
        if not is_safe_segment(request.label):
            raise ClientInputError(f"Invalid label '{request.label}'")
        if request.sequence_name is not None and not is_safe_segment(request.sequence_name):
            raise ClientInputError(f"Invalid sequence name '{request.sequence_name}'")

    async def _allocate(self, request: UploadRequest) -> SequenceSlot:
        if request.sequence_name is not None:
            return await self._allocator.reserve_named(request.label, request.sequence_name)
        return await self._allocator.allocate(request.label)

    async def _run(self, request: UploadRequest, session, state: _RunState) -> tuple[SinkReport, Optional[Exception]]:
        error: Optional[Exception] = None
        try:
            if self._persist_source_video:
                await session.write_source(request.video_bytes, self._decoder.input_format)
            frames = self._decoder.decode(request.video_bytes, self._frame_rate)
            async with aclosing(frames):
                async for frame in frames:
                    state.emitted = frame.index
                    await session.write(frame)
        except (DecodeError, PersistenceError) as exc:
            logger.error("Stopped %s after %d frame(s): %s", session.slot, state.emitted, exc)
            error = exc
        report = await session.close()
        return report, error

    # -- helpers ---------------------------------------------------------------

    @staticmethod
    def _reconcile(report: SinkReport, emitted: int) -> list[FrameFailure]:
        """Sink failures plus any emitted index the sink never accounted for."""
        accounted = set(report.persisted_indices) | set(report.failed_indices)
        missing = [
            FrameFailure(i, "frame was emitted but never persisted")
            for i in range(1, emitted + 1)
            if i not in accounted
        ]
        return sorted([*report.failures, *missing], key=lambda f: f.index)

    @staticmethod
    def _build_result(
        slot: SequenceSlot,
        location: str,
        emitted: int,
        report: SinkReport,
        failures: list[FrameFailure],
        error: Optional[Exception],
    ) -> PipelineResult:
        succeeded = error is None
        return PipelineResult(
            succeeded=succeeded,
            stage=PipelineStage.COMPLETED if succeeded else PipelineStage.FAILED,
            failed_stage=None if succeeded else PipelineStage.PERSISTING,
            slot=slot,
            frame_count=emitted,
            artifacts=list(report.artifacts),
            failures=failures,
            first_error=error,
            location=location,
            source_location=report.source_location,
        )
