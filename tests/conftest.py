from datetime import datetime, timezone

import pytest

from gestures.landmarks import Landmark, TrackerFrame, make_hand
from gestures.models import CapturedFrame, Gesture
from gestures.normalizer import normalize

# Open hand offsets (x, y) around the hand center, wrist at the bottom
OPEN_HAND = [
    (0.00, 0.50),
    (-0.15, 0.40), (-0.28, 0.28), (-0.38, 0.15), (-0.45, 0.05),
    (-0.15, 0.05), (-0.17, -0.15), (-0.18, -0.30), (-0.19, -0.45),
    (0.00, 0.00), (0.00, -0.20), (0.00, -0.35), (0.00, -0.50),
    (0.13, 0.03), (0.15, -0.15), (0.16, -0.30), (0.17, -0.42),
    (0.25, 0.10), (0.30, -0.05), (0.33, -0.17), (0.35, -0.28),
]

# Index and ring fingers hooked; extremes of the hand unchanged
HOOK = list(OPEN_HAND)
HOOK[6:9] = [(-0.17, -0.15), (-0.12, -0.05), (-0.08, 0.02)]
HOOK[14:17] = [(0.15, -0.15), (0.12, -0.05), (0.09, 0.02)]

# Fingers folded back towards the palm
FIST = [
    (0.00, 0.50),
    (-0.15, 0.40), (-0.25, 0.28), (-0.22, 0.15), (-0.12, 0.10),
    (-0.15, 0.05), (-0.17, -0.12), (-0.12, -0.02), (-0.10, 0.08),
    (0.00, 0.00), (0.00, -0.14), (0.02, -0.02), (0.02, 0.09),
    (0.13, 0.03), (0.14, -0.10), (0.12, 0.00), (0.11, 0.09),
    (0.25, 0.10), (0.27, -0.02), (0.23, 0.06), (0.21, 0.13),
]


def build_points(pose=OPEN_HAND, cx=0.5, cy=0.5, scale=0.3, scale_x=None):
    """Place a pose in image coordinates; bounding box width is 0.8 * scale_x."""
    sx = scale if scale_x is None else scale_x
    return [
        Landmark(cx + dx * sx, cy + dy * scale, -0.01 * (i % 5) * scale)
        for i, (dx, dy) in enumerate(OPEN_HAND if pose is None else pose)
    ]


def tracker_frame(points, handedness="Right"):
    return TrackerFrame(hands=(make_hand(points, handedness=handedness),))


def make_gesture(gesture_id, name, *hands, normalized=None):
    """Gesture with one frame per raw hand; normalized overrides the stored shapes."""
    frames = []
    for i, raw in enumerate(hands):
        frames.append(CapturedFrame(
            id=gesture_id * 100 + i,
            timestamp=datetime(2024, 5, 1, tzinfo=timezone.utc),
            raw_landmarks=tuple(raw),
            normalized_landmarks=tuple(normalized[i] if normalized else normalize(raw)),
            handedness="Right",
            sequence_index=i,
            quality=100,
        ))
    return Gesture(
        id=gesture_id,
        name=name,
        frames=tuple(frames),
        created_at=datetime(2024, 5, 1, tzinfo=timezone.utc),
    )


class FakeClock:
    """Manually advanced clock returning seconds."""

    def __init__(self, start=1_700_000_000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def open_hand():
    return build_points(OPEN_HAND)


@pytest.fixture
def fist_hand():
    return build_points(FIST)


@pytest.fixture
def clock():
    return FakeClock()
