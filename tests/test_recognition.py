import pytest

from gestures.config import RecognitionConfig
from gestures.errors import InputRejected
from gestures.landmarks import TrackerFrame
from gestures.library import GestureLibrary
from gestures.normalizer import LandmarkNormalizer
from gestures.recognition import UNRECOGNIZED, RecognitionEngine

from conftest import make_gesture, tracker_frame


@pytest.fixture
def engine(open_hand, fist_hand):
    library = GestureLibrary([
        make_gesture(1, "open", open_hand),
        make_gesture(2, "fist", fist_hand),
    ])
    return RecognitionEngine(library, LandmarkNormalizer(), RecognitionConfig())


def test_start_requires_gestures():
    engine = RecognitionEngine(GestureLibrary(), LandmarkNormalizer())

    with pytest.raises(InputRejected):
        engine.start()

    assert not engine.is_recognizing


def test_matches_after_buffer_warms_up(engine, fist_hand):
    engine.start()
    frame = tracker_frame(fist_hand)

    assert engine.on_frame(frame) is None
    assert engine.on_frame(frame) is None
    result = engine.on_frame(frame)

    assert result.name == "fist"
    assert result.confidence == 100.0
    assert result.gesture_id == 2
    assert result.recognized
    assert engine.last_result == result


def test_ignores_frames_when_stopped(engine, fist_hand):
    for _ in range(5):
        assert engine.on_frame(tracker_frame(fist_hand)) is None

    assert engine.buffer_size == 0


def test_frames_without_hand_are_not_buffered(engine):
    engine.start()

    assert engine.on_frame(TrackerFrame()) is None
    assert engine.on_frame(None) is None
    assert engine.buffer_size == 0


def test_buffer_is_bounded(open_hand, fist_hand):
    library = GestureLibrary([make_gesture(1, "open", open_hand)])
    engine = RecognitionEngine(library, LandmarkNormalizer(), RecognitionConfig(buffer_capacity=4))
    engine.start()

    for _ in range(10):
        engine.on_frame(tracker_frame(fist_hand))

    assert engine.buffer_size == 4


def test_below_tolerance_is_unrecognized(open_hand, fist_hand):
    library = GestureLibrary([make_gesture(2, "fist", fist_hand)])
    engine = RecognitionEngine(library, LandmarkNormalizer(), RecognitionConfig(tolerance=0.99))
    engine.start()

    for _ in range(3):
        result = engine.on_frame(tracker_frame(open_hand))

    assert result.name == UNRECOGNIZED
    assert result.gesture_id is None
    assert not result.recognized
    assert 0.0 <= result.confidence < 99.0


def test_ties_go_to_first_gesture(open_hand):
    library = GestureLibrary([
        make_gesture(1, "first", open_hand),
        make_gesture(2, "second", open_hand),
    ])
    engine = RecognitionEngine(library, LandmarkNormalizer())

    result = engine.match(tracker_frame(open_hand))

    assert result.name == "first"


def test_best_match_checks_every_stored_frame(open_hand, fist_hand):
    library = GestureLibrary([
        make_gesture(1, "open", open_hand),
        make_gesture(2, "open-then-fist", open_hand, fist_hand),
    ])
    engine = RecognitionEngine(library, LandmarkNormalizer())

    gesture, score = engine.best_match(tracker_frame(fist_hand))

    assert gesture.name == "open-then-fist"
    assert score == 1.0


def test_stop_clears_buffer_and_result(engine, fist_hand):
    engine.start()
    for _ in range(3):
        engine.on_frame(tracker_frame(fist_hand))

    engine.stop()

    assert not engine.is_recognizing
    assert engine.buffer_size == 0
    assert engine.last_result is None


def test_tolerance_is_validated(engine):
    engine.tolerance = 0.5
    assert engine.tolerance == 0.5

    with pytest.raises(InputRejected):
        engine.tolerance = 1.5

    assert engine.tolerance == 0.5
