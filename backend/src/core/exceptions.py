"""Custom exception hierarchy for FrameSlicer."""
from __future__ import annotations

from typing import Iterable, Optional


class FrameSlicerError(Exception):
    """Base exception for all FrameSlicer errors."""


class ClientInputError(FrameSlicerError):
    """Raised when an upload request is missing or carries invalid fields."""


class SequenceConflictError(ClientInputError):
    """Raised when an explicitly named sequence already exists for a label."""

    def __init__(self, label: str, name: str) -> None:
        self.label = label
        self.name = name
        super().__init__(f"Sequence '{name}' already exists for label '{label}'")


class DecodeError(FrameSlicerError):
    """Raised when the decode engine cannot turn the upload into frames."""

    def __init__(self, message: str, diagnostic: str = "") -> None:
        self.diagnostic = diagnostic
        if diagnostic:
            message = f"{message}: {diagnostic}"
        super().__init__(message)


class DecodeInputError(DecodeError):
    """Raised when the input is not a container the engine can parse."""


class DecodeEngineError(DecodeError):
    """Raised when the decode engine faults while producing frames."""


class AllocationError(FrameSlicerError):
    """Raised when a sequence slot cannot be listed or reserved."""


class PersistenceError(FrameSlicerError):
    """Raised when a frame cannot be written to its destination."""

    def __init__(self, message: str, index: Optional[int] = None) -> None:
        self.index = index
        super().__init__(message)


class FramePersistenceError(PersistenceError):
    """Aggregates every per-frame failure reported by a sink."""

    def __init__(self, failures: Iterable) -> None:
        self.failures = sorted(failures, key=lambda f: f.index)
        indices = ", ".join(str(f.index) for f in self.failures)
        detail = "; ".join(f"image{f.index}: {f.error}" for f in self.failures[:5])
        super().__init__(
            f"{len(self.failures)} frame(s) failed to persist (indices {indices}). {detail}"
        )


class PipelineTimeoutError(FrameSlicerError, TimeoutError):
    """Raised when decoding and persistence exceed the configured time budget."""

    def __init__(self, timeout_seconds: float, frames_emitted: int = 0) -> None:
        self.timeout_seconds = timeout_seconds
        self.frames_emitted = frames_emitted
        super().__init__(
            f"Frame extraction timed out after {timeout_seconds:g}s "
            f"({frames_emitted} frame(s) emitted)"
        )
