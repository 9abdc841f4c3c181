"""
Frame and gesture records.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple

from .landmarks import Landmark
from .quality import BoundingBox, HandSize


@dataclass(frozen=True)
class LiveFrame:
    """A frame seen during recognition or practice; never stored."""
    raw_landmarks: Tuple[Landmark, ...]
    normalized_landmarks: Tuple[Landmark, ...]
    handedness: str = "Unknown"
    timestamp: float = 0.0


@dataclass(frozen=True)
class CapturedFrame:
    id: int
    timestamp: datetime
    raw_landmarks: Tuple[Landmark, ...]
    normalized_landmarks: Tuple[Landmark, ...]
    handedness: str
    sequence_index: int
    quality: float
    bounding_box: Optional[BoundingBox] = None
    hand_size: Optional[HandSize] = None


@dataclass(frozen=True)
class ConsistencyStats:
    avg_quality: float = 0.0
    avg_hand_size_area: float = 0.0
    size_variation: float = 0.0
    avg_interval_ms: float = 0.0


@dataclass(frozen=True)
class ConsistencyReport:
    issues: Tuple[str, ...] = ()
    stats: ConsistencyStats = field(default_factory=ConsistencyStats)

    @property
    def is_consistent(self) -> bool:
        return not self.issues


@dataclass(frozen=True)
class Gesture:
    """
    A named, ordered sequence of captured frames.

    Frame sequence indices start at 0 and strictly increase.
    """
    id: int
    name: str
    frames: Tuple[CapturedFrame, ...]
    created_at: datetime
    consistency_report: Optional[ConsistencyReport] = None

    def __post_init__(self):
        if not self.name:
            raise ValueError("Gesture name must not be empty")
        if not self.frames:
            raise ValueError("Gesture must have at least one frame")
        indices = [f.sequence_index for f in self.frames]
        if indices[0] != 0 or any(b <= a for a, b in zip(indices, indices[1:])):
            raise ValueError(
                f"Frames of '{self.name}' must have increasing sequence indices from 0, got {indices}"
            )

    @property
    def frame_count(self) -> int:
        return len(self.frames)

    @property
    def is_sequential(self) -> bool:
        return True
