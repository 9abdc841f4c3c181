"""
Step-through practice of a stored gesture.

The user matches the target gesture frame by frame; each time the live hand
clears the similarity threshold the session moves on to the next frame.
Holding the correct pose keeps advancing, one step per check interval.
"""
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, Optional
import logging
import time

from .config import PracticeConfig
from .errors import InputRejected
from .landmarks import TrackerFrame
from .library import GestureLibrary
from .models import Gesture
from .normalizer import LandmarkNormalizer

logger = logging.getLogger(__name__)


class PracticeState(Enum):
    INACTIVE = auto()
    ACTIVE = auto()
    COMPLETED = auto()


@dataclass(frozen=True)
class PracticeUpdate:
    """Outcome of one practice check."""
    gesture_name: str
    similarity: float          # Percent, 0-100
    target_frame_index: int    # Frame the similarity was measured against
    frame_count: int
    advanced: bool = False
    completed: bool = False


class PracticeEngine:

    def __init__(
        self,
        library: GestureLibrary,
        normalizer: LandmarkNormalizer,
        config: Optional[PracticeConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._library = library
        self._normalizer = normalizer
        self._config = config or PracticeConfig()
        self._clock = clock

        self._state = PracticeState.INACTIVE
        self._gesture: Optional[Gesture] = None
        self._frame_index = 0
        self._last_check: Optional[float] = None

    @property
    def state(self) -> PracticeState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state is PracticeState.ACTIVE

    @property
    def target_gesture(self) -> Optional[Gesture]:
        return self._gesture

    @property
    def target_frame_index(self) -> int:
        return self._frame_index

    @property
    def similarity_threshold(self) -> float:
        return self._config.similarity_threshold

    @similarity_threshold.setter
    def similarity_threshold(self, value: float) -> None:
        if not 0.0 <= value <= 100.0:
            raise InputRejected(f"Similarity threshold must be between 0 and 100, got {value}")
        self._config.similarity_threshold = value

    def start(self, gesture_id) -> Gesture:
        """
        Begin practicing a gesture from its first frame.

        Raises:
            GestureNotFound: no gesture with that id in the library
        """
        gesture = self._library.require(gesture_id)
        self._begin(gesture)
        return gesture

    def restart(self) -> Gesture:
        """Practice the current (or just completed) gesture again."""
        if self._gesture is None:
            raise InputRejected("No gesture to restart")
        return self.start(self._gesture.id)

    def next_gesture(self) -> Optional[Gesture]:
        """The gesture after the target in library order, wrapping around."""
        if self._gesture is None:
            return None
        gestures = self._library.gestures
        current = self._library.index_of(self._gesture.id)
        if current < 0:
            return gestures[0] if gestures else None
        for offset in range(1, len(gestures)):
            candidate = gestures[(current + offset) % len(gestures)]
            if candidate.id != self._gesture.id:
                return candidate
        return None

    def stop(self) -> None:
        if self._state is not PracticeState.INACTIVE:
            logger.info("Practice stopped")
        self._state = PracticeState.INACTIVE
        self._gesture = None
        self._frame_index = 0
        self._last_check = None

    def on_frame(self, frame: Optional[TrackerFrame]) -> Optional[PracticeUpdate]:
        """
        Compare the live hand with the current target frame.

        Returns None when nothing was evaluated: no active session, no hand,
        or the previous check was less than check_interval_ms ago.
        """
        if not self.is_active or self._gesture is None:
            return None
        if frame is None or not frame.has_hand:
            return None
        if self._frame_index >= self._gesture.frame_count:
            return None

        now = self._clock()
        interval = self._config.check_interval_ms / 1000.0
        if self._last_check is not None and now - self._last_check < interval:
            return None
        self._last_check = now

        live = self._normalizer.process_frame(frame)
        if live is None:
            return None

        target_index = self._frame_index
        target = self._gesture.frames[target_index]
        similarity = self._normalizer.similarity(live, target) * 100

        if similarity < self._config.similarity_threshold:
            return PracticeUpdate(
                gesture_name=self._gesture.name,
                similarity=similarity,
                target_frame_index=target_index,
                frame_count=self._gesture.frame_count,
            )

        self._frame_index += 1
        completed = self._frame_index >= self._gesture.frame_count
        if completed:
            self._state = PracticeState.COMPLETED
            logger.info(
                "Practice of '%s' completed (%d frames)",
                self._gesture.name, self._gesture.frame_count,
            )
        else:
            logger.debug("Practice frame %d matched (%.1f%%)", target_index + 1, similarity)

        return PracticeUpdate(
            gesture_name=self._gesture.name,
            similarity=similarity,
            target_frame_index=target_index,
            frame_count=self._gesture.frame_count,
            advanced=True,
            completed=completed,
        )

    def _begin(self, gesture: Gesture) -> None:
        self._state = PracticeState.ACTIVE
        self._gesture = gesture
        self._frame_index = 0
        self._last_check = None
        logger.info("Practice started for '%s'", gesture.name)
