"""Inbound port for frame extraction."""
from __future__ import annotations
from typing import TYPE_CHECKING, Protocol, runtime_checkable
if TYPE_CHECKING:
    from backend.src.application.dto.pipeline_result import PipelineResult
    from backend.src.application.dto.upload_request import UploadRequest


@runtime_checkable
class ExtractFramesUseCase(Protocol):
    async def execute(self, request: UploadRequest) -> PipelineResult: ...
