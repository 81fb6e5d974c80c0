from backend.src.application.dto.pipeline_result import PipelineResult, PipelineStage
from backend.src.application.dto.upload_request import UploadRequest
from backend.src.application.frame_extraction_service import FrameExtractionService

__all__ = [
    "FrameExtractionService",
    "PipelineResult",
    "PipelineStage",
    "UploadRequest",
]
