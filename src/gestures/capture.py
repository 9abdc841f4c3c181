"""
Sequential gesture capture.

A sequence is recorded frame by frame under a gesture name, then committed to
the library as one Gesture. Frames that fail the quality gates are rejected
without touching the sequence.
"""
from datetime import datetime, timezone
from enum import Enum, auto
from typing import Callable, List, Optional, Sequence
import logging
import statistics
import time

from .config import CaptureConfig
from .errors import InputRejected, QualityRejected, SequenceAborted
from .landmarks import TrackerFrame
from .library import GestureLibrary
from .models import CapturedFrame, ConsistencyReport, ConsistencyStats, Gesture
from .normalizer import LandmarkNormalizer
from .quality import assess_quality, bounding_box, hand_size, validate_frame

logger = logging.getLogger(__name__)

# Consistency thresholds
SIZE_VARIATION_RATIO = 0.5
MIN_AVG_QUALITY = 70
PAUSE_RATIO = 3

ISSUE_SIZE_VARIATION = "significant hand-size variation"
ISSUE_LOW_QUALITY = "low average capture quality"
ISSUE_IRREGULAR_PAUSES = "irregular pauses during capture"


class CaptureState(Enum):
    IDLE = auto()
    RECORDING = auto()


def analyze_sequence_consistency(frames: Sequence[CapturedFrame]) -> ConsistencyReport:
    """
    Check a captured sequence for signs of an unreliable recording.

    Needs at least two frames to report issues; a shorter sequence is always
    consistent. Frames without a hand size are skipped for the size check.
    """
    if not frames:
        return ConsistencyReport()

    qualities = [float(f.quality) for f in frames]
    areas = [f.hand_size.area for f in frames if f.hand_size is not None]
    times = [f.timestamp.timestamp() * 1000 for f in frames]
    deltas = [b - a for a, b in zip(times, times[1:])]

    avg_quality = statistics.mean(qualities)
    avg_area = statistics.mean(areas) if areas else 0.0
    size_variation = (max(areas) - min(areas)) if areas else 0.0
    avg_interval = statistics.mean(deltas) if deltas else 0.0

    stats = ConsistencyStats(
        avg_quality=avg_quality,
        avg_hand_size_area=avg_area,
        size_variation=size_variation,
        avg_interval_ms=avg_interval,
    )

    if len(frames) < 2:
        return ConsistencyReport(stats=stats)

    issues = []
    if len(areas) >= 2 and size_variation > SIZE_VARIATION_RATIO * avg_area:
        issues.append(ISSUE_SIZE_VARIATION)
    if avg_quality < MIN_AVG_QUALITY:
        issues.append(ISSUE_LOW_QUALITY)
    if deltas and max(deltas) > PAUSE_RATIO * avg_interval:
        issues.append(ISSUE_IRREGULAR_PAUSES)

    return ConsistencyReport(issues=tuple(issues), stats=stats)


class SequenceCapture:
    """
    Idle -> Recording -> Idle state machine for recording gestures.

    Reaching max_frames_per_gesture stops further captures but the sequence
    stays in Recording until finish_sequence() or clear().
    """

    def __init__(
        self,
        library: GestureLibrary,
        normalizer: LandmarkNormalizer,
        config: Optional[CaptureConfig] = None,
        on_commit: Optional[Callable[[Gesture], None]] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            library: Library finished gestures are appended to
            normalizer: Normalizer used for captured frames
            config: Capture limits and quality gates
            on_commit: Called after a gesture is appended, typically to persist
                the library. If it raises, the gesture is removed again.
            clock: Wall-clock source in epoch seconds
        """
        self._library = library
        self._normalizer = normalizer
        self._config = config or CaptureConfig()
        self._on_commit = on_commit
        self._clock = clock

        self._state = CaptureState.IDLE
        self._name: Optional[str] = None
        self._frames: List[CapturedFrame] = []
        self._frame_index = 0
        self._last_id = 0

    @property
    def state(self) -> CaptureState:
        return self._state

    @property
    def is_recording(self) -> bool:
        return self._state is CaptureState.RECORDING

    @property
    def gesture_name(self) -> Optional[str]:
        return self._name

    @property
    def frames(self) -> List[CapturedFrame]:
        return list(self._frames)

    @property
    def frame_index(self) -> int:
        return self._frame_index

    @property
    def max_frames(self) -> int:
        return self._config.max_frames_per_gesture

    @property
    def can_capture(self) -> bool:
        return self.is_recording and self._frame_index < self.max_frames

    def _new_id(self) -> int:
        new_id = max(int(self._clock() * 1000), self._last_id + 1)
        self._last_id = new_id
        return new_id

    def start_sequence(self, name: str) -> None:
        name = (name or "").strip()
        if not name:
            raise InputRejected("Please enter a name for the gesture")
        if self.is_recording:
            raise InputRejected(f"A sequence for '{self._name}' is already being recorded")

        self._state = CaptureState.RECORDING
        self._name = name
        self._frames = []
        self._frame_index = 0
        logger.info("Sequence started for '%s'", name)

    def capture_frame(self, frame: Optional[TrackerFrame]) -> CapturedFrame:
        """
        Capture the first hand of the given tracker frame.

        Raises:
            InputRejected: not recording, sequence full, or no hand detected
            QualityRejected: the frame failed a validity or quality gate
        """
        if not self.is_recording:
            raise InputRejected("Start a sequence before capturing frames")
        if not self.can_capture:
            raise InputRejected(
                f"Sequence complete ({self.max_frames} frames), finish or clear it"
            )
        if frame is None or not frame.has_hand:
            raise InputRejected("No hand detected, make sure your hand is visible")

        hand = frame.primary
        raw = hand.landmarks
        normalized = tuple(self._normalizer.normalize(raw))
        validate_frame(raw, normalized)

        box = bounding_box(raw)
        quality = assess_quality(raw, box)
        if box.width < self._config.min_hand_extent or box.height < self._config.min_hand_extent:
            logger.debug("Rejected frame: hand too small (%.3f x %.3f)", box.width, box.height)
            raise QualityRejected("Hand is too small in frame, move closer", quality)
        if quality < self._config.min_quality:
            logger.debug("Rejected frame: quality %s", quality)
            raise QualityRejected(f"Frame quality too low ({quality})", quality)

        now = self._clock()
        captured = CapturedFrame(
            id=self._new_id(),
            timestamp=datetime.fromtimestamp(now, tz=timezone.utc),
            raw_landmarks=tuple(raw),
            normalized_landmarks=normalized,
            handedness=hand.handedness,
            sequence_index=self._frame_index,
            quality=quality,
            bounding_box=box,
            hand_size=hand_size(raw),
        )
        self._frames.append(captured)
        self._frame_index += 1

        logger.info(
            "Captured frame %d/%d for '%s' (quality %s)",
            self._frame_index, self.max_frames, self._name, quality,
        )
        return captured

    def analyze_sequence_consistency(self) -> ConsistencyReport:
        return analyze_sequence_consistency(self._frames)

    def finish_sequence(
        self, confirm: Optional[Callable[[ConsistencyReport], bool]] = None
    ) -> Gesture:
        """
        Commit the captured frames as a Gesture and return to Idle.

        Args:
            confirm: Asked whether to save when the sequence is inconsistent.
                Returning False aborts and keeps the sequence recording.
                Without it, inconsistent sequences are saved with a warning.
        """
        if not self.is_recording:
            raise InputRejected("No sequence is being recorded")
        if not self._frames:
            raise InputRejected("No frames to save")

        report = self.analyze_sequence_consistency()
        if not report.is_consistent:
            logger.warning(
                "Sequence '%s' is inconsistent: %s", self._name, "; ".join(report.issues)
            )
            if confirm is not None and not confirm(report):
                raise SequenceAborted("Saving cancelled", report)

        now = self._clock()
        gesture = Gesture(
            id=self._library.next_id(self._new_id()),
            name=self._name,
            frames=tuple(self._frames),
            created_at=datetime.fromtimestamp(now, tz=timezone.utc),
            consistency_report=report,
        )

        self._library.add(gesture)
        if self._on_commit is not None:
            try:
                self._on_commit(gesture)
            except Exception:
                self._library.remove(gesture.id)
                raise

        logger.info("Gesture '%s' saved with %d frames", gesture.name, gesture.frame_count)
        self._reset()
        return gesture

    def clear(self) -> None:
        """Abandon the current sequence without touching the library."""
        if self.is_recording:
            logger.info("Sequence for '%s' cleared", self._name)
        self._reset()

    def _reset(self) -> None:
        self._state = CaptureState.IDLE
        self._name = None
        self._frames = []
        self._frame_index = 0
