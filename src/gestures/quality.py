"""
Frame quality assessment and derived hand geometry.
"""
import math
from dataclasses import dataclass
from typing import Sequence, Tuple

from .errors import QualityRejected
from .landmarks import HandLandmarks, Landmark, NUM_LANDMARKS


# Quality penalties
EDGE_MARGIN = 0.1
EDGE_PENALTY = 20
MIN_HAND_SIZE = 0.15
SMALL_PENALTY = 25
MAX_HAND_SIZE = 0.7
LARGE_PENALTY = 25
INVALID_POINT_PENALTY = 5

# Normalized coordinates beyond this mean the tracker returned garbage
MAX_NORMALIZED_MAGNITUDE = 2.0


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned box over raw x/y landmark coordinates."""
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    @property
    def center(self) -> Tuple[float, float]:
        return ((self.min_x + self.max_x) / 2, (self.min_y + self.max_y) / 2)


@dataclass(frozen=True)
class HandSize:
    length: float  # wrist to middle fingertip
    width: float   # thumb tip to pinky tip

    @property
    def area(self) -> float:
        return self.length * self.width


def _distance_2d(a: Landmark, b: Landmark) -> float:
    return math.sqrt((a.x - b.x) ** 2 + (a.y - b.y) ** 2)


def bounding_box(landmarks: Sequence[Landmark]) -> BoundingBox:
    xs = [p.x for p in landmarks]
    ys = [p.y for p in landmarks]
    return BoundingBox(min(xs), min(ys), max(xs), max(ys))


def hand_size(landmarks: Sequence[Landmark]) -> HandSize:
    return HandSize(
        length=_distance_2d(landmarks[HandLandmarks.WRIST], landmarks[HandLandmarks.MIDDLE_TIP]),
        width=_distance_2d(landmarks[HandLandmarks.THUMB_TIP], landmarks[HandLandmarks.PINKY_TIP]),
    )


def assess_quality(landmarks: Sequence[Landmark], box: BoundingBox) -> float:
    """
    Score a raw frame for usability, 0-100.

    Penalties are independent and additive:
    - hand within EDGE_MARGIN of any image edge
    - box narrower or shorter than MIN_HAND_SIZE (hand too far)
    - box wider or taller than MAX_HAND_SIZE (hand too close)
    - each landmark with x or y outside [0, 1]
    """
    score = 100

    if (box.min_x < EDGE_MARGIN or box.min_y < EDGE_MARGIN
            or box.max_x > 1 - EDGE_MARGIN or box.max_y > 1 - EDGE_MARGIN):
        score -= EDGE_PENALTY

    if box.width < MIN_HAND_SIZE or box.height < MIN_HAND_SIZE:
        score -= SMALL_PENALTY

    if box.width > MAX_HAND_SIZE or box.height > MAX_HAND_SIZE:
        score -= LARGE_PENALTY

    for p in landmarks:
        if not (0 <= p.x <= 1) or not (0 <= p.y <= 1):
            score -= INVALID_POINT_PENALTY

    return max(0, score)


def validate_frame(raw: Sequence[Landmark], normalized: Sequence[Landmark]) -> None:
    """
    Reject degenerate tracker results.

    Raises:
        QualityRejected: fewer than 21 raw points, a non-finite normalized
            value, or a normalized coordinate beyond MAX_NORMALIZED_MAGNITUDE.
    """
    if len(raw) < NUM_LANDMARKS:
        raise QualityRejected(
            f"Expected {NUM_LANDMARKS} landmarks, got {len(raw)}"
        )

    for p in normalized:
        for value in p:
            if not math.isfinite(value):
                raise QualityRejected("Normalized frame contains non-finite values")
            if abs(value) > MAX_NORMALIZED_MAGNITUDE:
                raise QualityRejected("Normalized frame is out of range")
