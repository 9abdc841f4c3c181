import pytest

from gestures.config import PracticeConfig
from gestures.errors import GestureNotFound, InputRejected
from gestures.landmarks import Landmark, TrackerFrame
from gestures.library import GestureLibrary
from gestures.normalizer import LandmarkNormalizer, normalize
from gestures.practice import PracticeEngine, PracticeState

from conftest import FakeClock, make_gesture, tracker_frame


@pytest.fixture
def clock():
    return FakeClock(start=0.0)


@pytest.fixture
def two_step(open_hand):
    """Stored shapes sit 0.1 (x) and 1/15 (z) away from the normalized open hand."""
    base = normalize(open_hand)
    shifted_x = [Landmark(p.x + 0.1, p.y, p.z) for p in base]
    shifted_z = [Landmark(p.x, p.y, p.z + 1 / 15) for p in base]
    return make_gesture(1, "wave", open_hand, open_hand, normalized=[shifted_x, shifted_z])


@pytest.fixture
def library(two_step, fist_hand):
    return GestureLibrary([two_step, make_gesture(2, "fist", fist_hand)])


@pytest.fixture
def engine(library, clock):
    return PracticeEngine(library, LandmarkNormalizer(), PracticeConfig(), clock=clock)


def test_two_frame_practice_completes(engine, clock, open_hand):
    engine.start(1)
    frame = tracker_frame(open_hand)

    first = engine.on_frame(frame)
    clock.advance(0.2)
    second = engine.on_frame(frame)

    assert first.similarity == pytest.approx(85.0)
    assert first.advanced and not first.completed
    assert first.target_frame_index == 0
    assert second.similarity == pytest.approx(90.0)
    assert second.completed
    assert second.gesture_name == "wave"
    assert second.frame_count == 2
    assert engine.state is PracticeState.COMPLETED

    clock.advance(0.2)
    assert engine.on_frame(frame) is None


def test_below_threshold_does_not_advance(library, clock, open_hand):
    engine = PracticeEngine(
        library, LandmarkNormalizer(), PracticeConfig(similarity_threshold=90.0), clock=clock,
    )
    engine.start(1)

    update = engine.on_frame(tracker_frame(open_hand))

    assert update.similarity == pytest.approx(85.0)
    assert not update.advanced
    assert engine.target_frame_index == 0
    assert engine.is_active


def test_checks_are_rate_limited(engine, clock, open_hand):
    engine.start(1)
    frame = tracker_frame(open_hand)

    assert engine.on_frame(frame) is not None
    clock.advance(0.05)
    assert engine.on_frame(frame) is None
    assert engine.target_frame_index == 1

    clock.advance(0.05)
    assert engine.on_frame(frame).completed


def test_frames_without_hand_are_ignored(engine, open_hand):
    engine.start(1)

    assert engine.on_frame(None) is None
    assert engine.on_frame(TrackerFrame()) is None
    # Missing hands do not use up the check interval
    assert engine.on_frame(tracker_frame(open_hand)) is not None


def test_start_unknown_gesture(engine):
    with pytest.raises(GestureNotFound):
        engine.start(99)

    assert engine.state is PracticeState.INACTIVE


def test_inactive_engine_ignores_frames(engine, open_hand):
    assert engine.on_frame(tracker_frame(open_hand)) is None


def test_stop_resets_session(engine, open_hand):
    engine.start(1)
    engine.on_frame(tracker_frame(open_hand))

    engine.stop()

    assert engine.state is PracticeState.INACTIVE
    assert engine.target_gesture is None
    assert engine.target_frame_index == 0


def test_restart_after_completion(engine, clock, open_hand):
    engine.start(1)
    frame = tracker_frame(open_hand)
    engine.on_frame(frame)
    clock.advance(0.2)
    engine.on_frame(frame)

    gesture = engine.restart()

    assert gesture.name == "wave"
    assert engine.is_active
    assert engine.target_frame_index == 0


def test_restart_without_gesture(engine):
    with pytest.raises(InputRejected):
        engine.restart()


def test_next_gesture_wraps_around(engine):
    assert engine.next_gesture() is None

    engine.start(1)
    assert engine.next_gesture().name == "fist"

    engine.start(2)
    assert engine.next_gesture().name == "wave"


def test_next_gesture_with_single_gesture(two_step, clock):
    engine = PracticeEngine(GestureLibrary([two_step]), LandmarkNormalizer(), clock=clock)
    engine.start(1)

    assert engine.next_gesture() is None


def test_threshold_is_validated(engine):
    with pytest.raises(InputRejected):
        engine.similarity_threshold = 120

    engine.similarity_threshold = 60
    assert engine.similarity_threshold == 60
