"""Data model for a batch run — pairs, staged artifacts, outcomes.

A manifest is an ordered tuple of MediaPair. Each pair moves through the
PairState machine and ends in exactly one PairOutcome. BatchResult keeps
outcomes in manifest order, one per pair.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class ArtifactKind(str, Enum):
    VIDEO = "video"
    IMAGE = "image"


class Stage(str, Enum):
    RAW = "raw"
    NORMALIZED = "normalized"
    COMPOSITED = "composited"


class PairState(str, Enum):
    PENDING = "pending"
    FETCHING_VIDEO = "fetching_video"
    FETCHING_IMAGE = "fetching_image"
    NORMALIZING = "normalizing"
    COMPOSITING = "compositing"
    DONE = "done"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (PairState.DONE, PairState.FAILED)


@dataclass(frozen=True)
class MediaPair:
    """One manifest entry: a remote video and the image overlaid on it."""

    video_ref: str
    image_ref: str

    def __post_init__(self):
        if not self.video_ref or not self.video_ref.strip():
            raise ValueError("MediaPair: video reference must be non-empty")
        if not self.image_ref or not self.image_ref.strip():
            raise ValueError("MediaPair: image reference must be non-empty")


@dataclass(frozen=True)
class StagedArtifact:
    path: Path
    kind: ArtifactKind
    stage: Stage


@dataclass
class PairOutcome:
    index: int
    pair: MediaPair
    state: PairState = PairState.PENDING
    final_path: Path | None = None
    failed_stage: PairState | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.state is PairState.DONE

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "video": self.pair.video_ref,
            "image": self.pair.image_ref,
            "state": self.state.value,
            "final_path": str(self.final_path) if self.final_path else None,
            "failed_stage": self.failed_stage.value if self.failed_stage else None,
            "error": self.error,
        }


@dataclass
class BatchResult:
    outcomes: list[PairOutcome] = field(default_factory=list)
    final_path: Path | None = None
    stream_url: str | None = None

    @property
    def succeeded(self) -> list[PairOutcome]:
        return [o for o in self.outcomes if o.ok]

    @property
    def failed(self) -> list[PairOutcome]:
        return [o for o in self.outcomes if not o.ok]

    def to_dict(self) -> dict:
        return {
            "stream_url": self.stream_url,
            "final_path": str(self.final_path) if self.final_path else None,
            "succeeded": len(self.succeeded),
            "failed": len(self.failed),
            "outcomes": [o.to_dict() for o in self.outcomes],
        }
