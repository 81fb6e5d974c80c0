"""Per-frame persistence outcomes and the report a sink session closes with."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class PersistedArtifact:
    """Durable record of one frame: a filesystem path or an object-store key."""

    index: int
    location: str


@dataclass(frozen=True)
class FrameFailure:
    index: int
    error: str


@dataclass
class SinkReport:
    """Outcome of one sink session, keyed by the original frame index.

    Every frame handed to the session appears in exactly one of
    ``artifacts`` or ``failures``.
    """

    frames_received: int = 0
    artifacts: list[PersistedArtifact] = field(default_factory=list)
    failures: list[FrameFailure] = field(default_factory=list)
    source_location: Optional[str] = None

    def __post_init__(self) -> None:
        self.artifacts.sort(key=lambda a: a.index)
        self.failures.sort(key=lambda f: f.index)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def persisted_indices(self) -> list[int]:
        return [a.index for a in self.artifacts]

    @property
    def failed_indices(self) -> list[int]:
        return [f.index for f in self.failures]
