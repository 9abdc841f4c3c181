"""
Hand landmark types shared by every engine.

The hand tracker itself lives outside this package; what arrives here is one
TrackerFrame per video tick holding zero or more detected hands.
"""
from dataclasses import dataclass, field
from typing import List, NamedTuple, Optional, Tuple, Any


NUM_LANDMARKS = 21


class Landmark(NamedTuple):
    """One tracked point in image-normalized coordinates plus depth."""
    x: float
    y: float
    z: float = 0.0


@dataclass(frozen=True)
class HandLandmarks:
    """
    Landmarks for a single detected hand.

    Attributes:
        landmarks: Tuple of 21 Landmark points, x/y nominally 0-1
        handedness: 'Left' or 'Right'
        confidence: Detection confidence 0-1
    """
    landmarks: Tuple[Landmark, ...]
    handedness: str = "Unknown"
    confidence: float = 1.0

    # MediaPipe landmark indices for convenience
    WRIST = 0
    THUMB_CMC = 1
    THUMB_MCP = 2
    THUMB_IP = 3
    THUMB_TIP = 4
    INDEX_MCP = 5
    INDEX_PIP = 6
    INDEX_DIP = 7
    INDEX_TIP = 8
    MIDDLE_MCP = 9
    MIDDLE_PIP = 10
    MIDDLE_DIP = 11
    MIDDLE_TIP = 12
    RING_MCP = 13
    RING_PIP = 14
    RING_DIP = 15
    RING_TIP = 16
    PINKY_MCP = 17
    PINKY_PIP = 18
    PINKY_DIP = 19
    PINKY_TIP = 20


@dataclass(frozen=True)
class TrackerFrame:
    """Hand-tracker output for one video tick."""
    hands: Tuple[HandLandmarks, ...] = field(default_factory=tuple)

    @property
    def has_hand(self) -> bool:
        return len(self.hands) > 0

    @property
    def primary(self) -> Optional[HandLandmarks]:
        """The hand used for matching; always the first detected."""
        return self.hands[0] if self.hands else None


def to_landmark(point: Any) -> Landmark:
    """
    Coerce a point into a Landmark.

    Accepts Landmark/tuples of 2 or 3 numbers, mappings with x/y/z keys and
    objects exposing .x/.y/.z (MediaPipe NormalizedLandmark). Missing z is 0.
    """
    if isinstance(point, Landmark):
        return point
    if isinstance(point, dict):
        z = point.get('z')
        return Landmark(float(point['x']), float(point['y']), float(z or 0.0))
    if isinstance(point, (tuple, list)):
        if len(point) == 2:
            return Landmark(float(point[0]), float(point[1]), 0.0)
        z = point[2]
        return Landmark(float(point[0]), float(point[1]), float(z or 0.0))
    z = getattr(point, 'z', 0.0)
    return Landmark(float(point.x), float(point.y), float(z or 0.0))


def make_hand(points, handedness: str = "Unknown", confidence: float = 1.0) -> HandLandmarks:
    """Build a HandLandmarks from any sequence of point-like values."""
    return HandLandmarks(
        landmarks=tuple(to_landmark(p) for p in points),
        handedness=handedness,
        confidence=confidence,
    )


def frame_from_hands(hands: List, handedness: Optional[List[str]] = None) -> TrackerFrame:
    """Build a TrackerFrame from per-hand point lists and optional labels."""
    handedness = handedness or []
    built = []
    for i, points in enumerate(hands):
        label = handedness[i] if i < len(handedness) else "Unknown"
        built.append(make_hand(points, handedness=label))
    return TrackerFrame(hands=tuple(built))


def frame_from_landmarker_result(result) -> TrackerFrame:
    """
    Convert a MediaPipe Tasks HandLandmarkerResult into a TrackerFrame.

    Only the attributes the Tasks API exposes are touched, so any object with
    the same shape (hand_landmarks, handedness) works.
    """
    if not getattr(result, 'hand_landmarks', None):
        return TrackerFrame()

    hands = []
    for i, hand_landmarks in enumerate(result.hand_landmarks):
        label, score = "Unknown", 1.0
        handedness = getattr(result, 'handedness', None) or []
        if i < len(handedness) and handedness[i]:
            category = handedness[i][0]
            label, score = category.category_name, category.score
        hands.append(make_hand(hand_landmarks, handedness=label, confidence=score))
    return TrackerFrame(hands=tuple(hands))
