"""
Background worker that feeds tracker frames and UI commands to the engines.
Runs in a separate QThread so the UI never blocks on matching or saving.

Everything that touches engine state goes through this worker: frames from
the tracker thread land in a single slot (newest wins), commands from the UI
go into a queue, and one loop consumes both in order.
"""
import time
import threading
from queue import Queue, Empty
from typing import Callable, Optional

from PyQt5.QtCore import QObject, pyqtSignal

from .context import GestureApp, Mode
from .errors import GestureError, QualityRejected
from .landmarks import TrackerFrame
from .library import ImportPolicy
from .models import CapturedFrame, Gesture
from .practice import PracticeUpdate
from .recognition import RecognitionResult


class GestureWorker(QObject):
    """
    Worker class that owns the processing loop for one GestureApp.
    Emits signals for UI updates.
    """
    # Signals
    recognition_result = pyqtSignal(object)  # Emits RecognitionResult
    practice_update = pyqtSignal(object)     # Emits PracticeUpdate
    practice_completed = pyqtSignal(str, int)  # Gesture name, frame count
    frame_captured = pyqtSignal(object)      # Emits CapturedFrame
    frame_rejected = pyqtSignal(str)
    gesture_saved = pyqtSignal(object)       # Emits Gesture
    consistency_warning = pyqtSignal(object)  # Emits ConsistencyReport
    library_changed = pyqtSignal()
    error = pyqtSignal(str)

    def __init__(self, app: GestureApp, parent=None):
        super().__init__(parent)
        self._app = app
        self._is_running = False

        # Newest tracker frame; older unprocessed frames are dropped
        self._latest_frame: Optional[TrackerFrame] = None
        self._has_frame = False
        self._frame_lock = threading.Lock()

        self._commands: "Queue[Callable[[], object]]" = Queue()

    # --- producer side (any thread) ---

    def submit_frame(self, frame: Optional[TrackerFrame]) -> None:
        """Hand over the latest tracker result. Safe to call from any thread."""
        with self._frame_lock:
            self._latest_frame = frame
            self._has_frame = True

    def submit(self, command: Callable[[], object]) -> None:
        """
        Queue a callable to run on the worker thread.

        A frame submitted before the command is queued ahead of it, so the
        command sees that frame.
        """
        with self._frame_lock:
            if self._has_frame:
                frame = self._latest_frame
                self._latest_frame = None
                self._has_frame = False
                self._commands.put(lambda: self._app.on_frame(frame))
            self._commands.put(command)

    def start_sequence(self, name: str) -> None:
        self.submit(lambda: self._app.capture.start_sequence(name))

    def capture_frame(self) -> None:
        self.submit(self._app.capture_frame)

    def finish_sequence(self, save_if_inconsistent: bool = True) -> None:
        self.submit(lambda: self._finish_sequence(save_if_inconsistent))

    def clear_sequence(self) -> None:
        self.submit(self._app.capture.clear)

    def switch_mode(self, mode: Mode) -> None:
        self.submit(lambda: self._app.switch_mode(mode))

    def start_recognition(self) -> None:
        self.submit(self._app.recognition.start)

    def stop_recognition(self) -> None:
        self.submit(self._app.recognition.stop)

    def start_practice(self, gesture_id) -> None:
        self.submit(lambda: self._app.practice.start(gesture_id))

    def stop_practice(self) -> None:
        self.submit(self._app.practice.stop)

    def delete_gesture(self, gesture_id) -> None:
        self.submit(lambda: self._library_command(self._app.delete_gesture, gesture_id))

    def clear_all_gestures(self) -> None:
        self.submit(lambda: self._library_command(self._app.clear_all_gestures))

    def import_dataset(self, path, replace: bool = False) -> None:
        policy = ImportPolicy.REPLACE if replace else ImportPolicy.MERGE
        self.submit(lambda: self._library_command(self._app.import_dataset, path, policy))

    def export_dataset(self, path) -> None:
        self.submit(lambda: self._app.export_dataset(path))

    # --- consumer side (worker thread) ---

    def process_pending(self) -> int:
        """
        Run queued commands, then the newest frame. Returns work items done.
        """
        done = 0
        while True:
            try:
                command = self._commands.get_nowait()
            except Empty:
                break
            self._run(command)
            done += 1

        with self._frame_lock:
            frame = self._latest_frame
            has_frame = self._has_frame
            self._latest_frame = None  # Consume it
            self._has_frame = False

        if has_frame:
            self._run(lambda: self._app.on_frame(frame))
            done += 1
        return done

    def start_process(self):
        """Main processing loop. Runs in worker thread."""
        self._is_running = True
        idle_sleep = 0.005

        try:
            while self._is_running:
                if self.process_pending() == 0:
                    time.sleep(idle_sleep)
        except Exception as e:
            self.error.emit(f"Worker Exception: {str(e)}")
        finally:
            self._is_running = False

    def stop_process(self):
        """Signal the loop to stop."""
        self._is_running = False

    @property
    def is_running(self) -> bool:
        return self._is_running

    def _run(self, command: Callable[[], object]) -> None:
        try:
            result = command()
        except QualityRejected as e:
            self.frame_rejected.emit(str(e))
            return
        except GestureError as e:
            self.error.emit(str(e))
            return
        self._emit_result(result)

    def _emit_result(self, result) -> None:
        if isinstance(result, RecognitionResult):
            self.recognition_result.emit(result)
        elif isinstance(result, PracticeUpdate):
            self.practice_update.emit(result)
            if result.completed:
                self.practice_completed.emit(result.gesture_name, result.frame_count)
        elif isinstance(result, CapturedFrame):
            self.frame_captured.emit(result)
        elif isinstance(result, Gesture):
            self.gesture_saved.emit(result)
            self.library_changed.emit()

    def _finish_sequence(self, save_if_inconsistent: bool):
        def confirm(report):
            self.consistency_warning.emit(report)
            return save_if_inconsistent

        return self._app.capture.finish_sequence(confirm=confirm)

    def _library_command(self, fn, *args):
        fn(*args)
        self.library_changed.emit()
