"""
Continuous best-match recognition against the gesture library.
"""
from collections import deque
from dataclasses import dataclass
from typing import Deque, Optional, Tuple
import logging

from .config import RecognitionConfig
from .errors import InputRejected
from .landmarks import TrackerFrame
from .library import GestureLibrary
from .models import Gesture, LiveFrame
from .normalizer import LandmarkNormalizer

logger = logging.getLogger(__name__)

UNRECOGNIZED = "unrecognized"


@dataclass(frozen=True)
class RecognitionResult:
    """Best match for one frame."""
    name: str
    confidence: float  # Percent, 0-100
    gesture_id: Optional[int] = None

    @property
    def recognized(self) -> bool:
        return self.gesture_id is not None


class RecognitionEngine:
    """
    Matches each incoming frame against every stored frame of every gesture.

    Frames are buffered; matching only starts once min_buffer_to_match frames
    are in the buffer. The buffer is not used for temporal matching.
    """

    def __init__(
        self,
        library: GestureLibrary,
        normalizer: LandmarkNormalizer,
        config: Optional[RecognitionConfig] = None,
    ):
        self._library = library
        self._normalizer = normalizer
        self._config = config or RecognitionConfig()

        self._is_recognizing = False
        self._buffer: Deque[LiveFrame] = deque(maxlen=self._config.buffer_capacity)
        self._last_result: Optional[RecognitionResult] = None

    @property
    def is_recognizing(self) -> bool:
        return self._is_recognizing

    @property
    def buffer_size(self) -> int:
        return len(self._buffer)

    @property
    def last_result(self) -> Optional[RecognitionResult]:
        return self._last_result

    @property
    def tolerance(self) -> float:
        return self._config.tolerance

    @tolerance.setter
    def tolerance(self, value: float) -> None:
        if not 0.0 <= value <= 1.0:
            raise InputRejected(f"Tolerance must be between 0 and 1, got {value}")
        self._config.tolerance = value

    def start(self) -> None:
        if not self._library:
            raise InputRejected("No saved gestures to recognize, record some first")
        self._is_recognizing = True
        self._buffer.clear()
        self._last_result = None
        logger.info("Recognition started against %d gestures", len(self._library))

    def stop(self) -> None:
        self._is_recognizing = False
        self._buffer.clear()
        self._last_result = None
        logger.info("Recognition stopped")

    def on_frame(self, frame: Optional[TrackerFrame]) -> Optional[RecognitionResult]:
        """Buffer a tracker frame and return a match once the buffer is warm."""
        if not self._is_recognizing:
            return None

        live = self._normalizer.process_frame(frame)
        if live is None:
            return None

        self._buffer.append(live)
        if len(self._buffer) < self._config.min_buffer_to_match:
            return None

        self._last_result = self.match(live)
        return self._last_result

    def best_match(self, frame) -> Tuple[Optional[Gesture], float]:
        """Highest-scoring gesture and score; ties go to the first encountered."""
        best_gesture: Optional[Gesture] = None
        best_score = 0.0

        for gesture in self._library:
            for stored in gesture.frames:
                score = self._normalizer.similarity(frame, stored)
                if score > best_score:
                    best_score = score
                    best_gesture = gesture

        return best_gesture, best_score

    def match(self, frame) -> RecognitionResult:
        gesture, score = self.best_match(frame)
        if gesture is not None and score >= self._config.tolerance:
            return RecognitionResult(gesture.name, score * 100, gesture.id)
        return RecognitionResult(UNRECOGNIZED, score * 100)
