from backend.src.core.entities.persisted_artifact import FrameFailure, PersistedArtifact, SinkReport

__all__ = ["PersistedArtifact", "FrameFailure", "SinkReport"]
