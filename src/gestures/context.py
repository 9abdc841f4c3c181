"""
Application context: one object that owns the library and the engines.

Built once at startup and passed to whoever needs it. Frames are handed to
on_frame() one at a time, which routes them to the engine of the active mode.
"""
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, Union
import logging
import time

from .capture import SequenceCapture
from .config import Config
from .landmarks import TrackerFrame
from .library import GestureLibrary, ImportPolicy
from .models import Gesture
from .normalizer import LandmarkNormalizer
from .practice import PracticeEngine, PracticeUpdate
from .recognition import RecognitionEngine, RecognitionResult
from .storage import GestureStore, MemoryStore, export_to_file, import_from_file

logger = logging.getLogger(__name__)


class Mode(Enum):
    CAPTURE = "capture"
    RECOGNITION = "recognition"
    PRACTICE = "practice"


class GestureApp:

    def __init__(
        self,
        config: Optional[Config] = None,
        store: Optional[GestureStore] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config or Config()
        self.store = store if store is not None else MemoryStore()
        self.library: GestureLibrary = self.store.load()

        self.normalizer = LandmarkNormalizer(self.config.matching.similarity_scale)
        self.capture = SequenceCapture(
            self.library, self.normalizer, self.config.capture,
            on_commit=lambda gesture: self.save(),
        )
        self.recognition = RecognitionEngine(self.library, self.normalizer, self.config.recognition)
        self.practice = PracticeEngine(
            self.library, self.normalizer, self.config.practice, clock=clock,
        )

        self.mode = Mode.CAPTURE
        self.last_frame: Optional[TrackerFrame] = None

    def save(self) -> None:
        self.store.save(self.library)

    def switch_mode(self, mode: Mode) -> None:
        """Change mode, stopping recognition or practice when leaving them."""
        if mode is self.mode:
            return
        if self.mode is Mode.RECOGNITION:
            self.recognition.stop()
        elif self.mode is Mode.PRACTICE:
            self.practice.stop()
        logger.info("Mode switched from %s to %s", self.mode.value, mode.value)
        self.mode = mode

    def on_frame(self, frame: Optional[TrackerFrame]) -> Union[RecognitionResult, PracticeUpdate, None]:
        """
        Process one tracker frame in the active mode.

        In capture mode the frame is only remembered; capture_frame() uses it.
        """
        self.last_frame = frame
        if self.mode is Mode.RECOGNITION:
            return self.recognition.on_frame(frame)
        if self.mode is Mode.PRACTICE:
            return self.practice.on_frame(frame)
        return None

    def capture_frame(self):
        return self.capture.capture_frame(self.last_frame)

    def delete_gesture(self, gesture_id) -> Gesture:
        previous = self.library.gestures
        gesture = self.library.remove(gesture_id)
        try:
            self.save()
        except Exception:
            self.library.replace_with(previous)
            raise
        if self.practice.target_gesture is not None and self.practice.target_gesture.id == gesture_id:
            self.practice.stop()
        logger.info("Gesture '%s' deleted", gesture.name)
        return gesture

    def clear_all_gestures(self) -> None:
        previous = self.library.gestures
        self.library.clear()
        try:
            self.save()
        except Exception:
            self.library.replace_with(previous)
            raise
        self.capture.clear()
        self.recognition.stop()
        self.practice.stop()
        logger.info("All gestures deleted")

    def export_dataset(self, path: Path) -> None:
        export_to_file(self.library, Path(path))

    def import_dataset(self, path: Path, policy: ImportPolicy = ImportPolicy.MERGE) -> int:
        previous = self.library.gestures
        count = import_from_file(self.library, Path(path), policy)
        try:
            self.save()
        except Exception:
            self.library.replace_with(previous)
            raise
        target = self.practice.target_gesture
        if target is not None and self.library.get(target.id) is not target:
            self.practice.stop()
        return count
