"""DTO for frame extraction results."""
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from backend.src.core.entities.persisted_artifact import FrameFailure, PersistedArtifact
from backend.src.core.value_objects.sequence_slot import SequenceSlot


class PipelineStage(str, Enum):
    VALIDATING = "validating"
    ALLOCATING = "allocating"
    PERSISTING = "persisting"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class PipelineResult:
    succeeded: bool
    stage: PipelineStage
    slot: Optional[SequenceSlot] = None
    frame_count: int = 0
    artifacts: list[PersistedArtifact] = field(default_factory=list)
    failures: list[FrameFailure] = field(default_factory=list)
    first_error: Optional[Exception] = None
    failed_stage: Optional[PipelineStage] = None
    location: str = ""
    source_location: Optional[str] = None

    @property
    def message(self) -> str:
        if self.succeeded:
            return (
                f"File uploaded successfully: {self.frame_count} frame(s) "
                f"saved to {self.slot}"
            )
        stage = self.failed_stage.value if self.failed_stage else "unknown"
        return f"An error occurred while slicing the video ({stage}): {self.first_error}"

    def to_dict(self) -> dict:
        return {
            "succeeded": self.succeeded,
            "stage": self.stage.value,
            "failed_stage": self.failed_stage.value if self.failed_stage else None,
            "label": self.slot.label if self.slot else None,
            "sequence": self.slot.identifier if self.slot else None,
            "frame_count": self.frame_count,
            "persisted": len(self.artifacts),
            "failed_frames": [f.index for f in self.failures],
            "error": str(self.first_error) if self.first_error else None,
            "error_type": type(self.first_error).__name__ if self.first_error else None,
            "location": self.location,
            "source_location": self.source_location,
            "message": self.message,
        }
