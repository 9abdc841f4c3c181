"""
Landmark normalization and frame similarity.

Normalization centers a hand on its x/y centroid and scales it so the point
farthest from the centroid sits at radius 1. That makes matching independent
of where the hand is in the image and of how far it is from the camera.
"""
import time
from typing import Optional, Sequence, List, Any

import numpy as np

from .landmarks import Landmark, TrackerFrame, to_landmark
from .models import LiveFrame


DEFAULT_SIMILARITY_SCALE = 1.5


def _as_array(landmarks: Sequence[Any]) -> np.ndarray:
    points = [to_landmark(p) for p in landmarks]
    return np.array(points, dtype=float).reshape(-1, 3)


def normalize(landmarks: Sequence[Any]) -> List[Landmark]:
    """
    Return landmarks translated to their x/y centroid and scaled to unit radius.

    An empty input is returned unchanged. If every point coincides with the
    centroid the translated points are returned unscaled.
    """
    if len(landmarks) == 0:
        return list(landmarks)

    pts = _as_array(landmarks)
    centroid = pts[:, :2].mean(axis=0)
    pts[:, :2] -= centroid

    max_dist = float(np.sqrt((pts[:, :2] ** 2).sum(axis=1)).max())
    if max_dist == 0:
        return [Landmark(*map(float, p)) for p in pts]

    pts /= max_dist
    return [Landmark(*map(float, p)) for p in pts]


def _comparable_landmarks(frame: Any) -> Optional[List[Optional[Landmark]]]:
    """Pick the landmarks a frame should be compared with, normalizing if needed."""
    if frame is None:
        return None

    normalized = getattr(frame, 'normalized_landmarks', None)
    if normalized:
        return list(normalized)

    raw = getattr(frame, 'raw_landmarks', None)
    if raw:
        return normalize(raw)

    if isinstance(frame, TrackerFrame):
        hand = frame.primary
        return normalize(hand.landmarks) if hand is not None else None

    # Bare sequences are compared as given
    if isinstance(frame, (list, tuple)) and frame:
        return list(frame)

    return None


class LandmarkNormalizer:
    """
    Normalizes tracker frames and scores how alike two frames are.

    The similarity is 1 - avg_distance * k clipped at 0, where avg_distance is
    the mean per-point Euclidean distance in normalized space. k is tunable.
    """

    def __init__(self, similarity_scale: float = DEFAULT_SIMILARITY_SCALE, clock=time.time):
        self.similarity_scale = similarity_scale
        self._clock = clock

    def normalize(self, landmarks: Sequence[Any]) -> List[Landmark]:
        return normalize(landmarks)

    def process_frame(self, frame: Optional[TrackerFrame]) -> Optional[LiveFrame]:
        """Build a comparison frame from the first detected hand, or None."""
        if frame is None or not frame.has_hand:
            return None

        hand = frame.primary
        return LiveFrame(
            raw_landmarks=hand.landmarks,
            normalized_landmarks=tuple(normalize(hand.landmarks)),
            handedness=hand.handedness,
            timestamp=self._clock(),
        )

    def similarity(self, a: Any, b: Any) -> float:
        """
        Similarity of two frames in [0, 1].

        Frames may be LiveFrame/CapturedFrame objects, TrackerFrames or plain
        landmark sequences; plain sequences are assumed to be normalized
        already. Returns 0 when either side has no usable landmarks or the
        landmark counts differ.
        """
        la = _comparable_landmarks(a)
        lb = _comparable_landmarks(b)
        if not la or not lb or len(la) != len(lb):
            return 0.0

        pairs = [(p, q) for p, q in zip(la, lb) if p is not None and q is not None]
        if not pairs:
            return 0.0

        pa = _as_array([p for p, _ in pairs])
        pb = _as_array([q for _, q in pairs])
        avg_distance = float(np.sqrt(((pa - pb) ** 2).sum(axis=1)).mean())

        return max(0.0, 1.0 - avg_distance * self.similarity_scale)
