"""
Background worker for the hand tracking frame loop.
Runs in a separate QThread to avoid blocking the UI.
"""
import logging
import time

from PyQt5.QtCore import QObject, pyqtSignal

from .gesture_recognizer import GestureRecognizer
from .landmarks import LandmarkFrame
from ..controls.gesture_controller import GestureController
from ..controls.target_model import TargetModel

logger = logging.getLogger(__name__)


class GestureWorker(QObject):
    """
    Pulls landmark frames, runs recognizer and controller once per frame and
    emits signals for UI updates. The target model is only touched from the
    worker thread.
    """
    # Signals
    sample_ready = pyqtSignal(object)       # Emits GestureSample
    gesture_changed = pyqtSignal(str)
    region_selected = pyqtSignal(object)    # Region id or None
    expansion_changed = pyqtSignal(int)     # Percent 0-100
    hands_changed = pyqtSignal(int)
    error = pyqtSignal(str)

    def __init__(self, config, model: TargetModel, tracker=None, parent=None):
        super().__init__(parent)
        self._config = config
        self._tracker = tracker
        self._recognizer = GestureRecognizer(config.recognizer)
        self._controller = GestureController(model, config.controller)
        self._is_running = False

        self._controller.on_gesture_change = self.gesture_changed.emit
        self._controller.on_region_select = self.region_selected.emit
        self._controller.on_explosion_change = (
            lambda amount: self.expansion_changed.emit(int(round(amount * 100)))
        )
        self._controller.on_hands_detected = self.hands_changed.emit

    @property
    def controller(self) -> GestureController:
        return self._controller

    def process_frame(self, frame: LandmarkFrame):
        """Run one landmark frame through recognizer and controller."""
        sample = self._recognizer.update(frame)
        actions = self._controller.update(sample)
        self.sample_ready.emit(sample)
        return actions

    def start_process(self):
        """Main processing loop. Runs in worker thread."""
        if self._tracker is None:
            from .hand_tracker import HandTracker
            self._tracker = HandTracker(self._config)

        if not self._tracker.start():
            self.error.emit("Could not open camera")
            return

        self._recognizer.reset()
        self._controller.reset()
        self._is_running = True
        interval = self._config.mediapipe.detect_interval

        try:
            while self._is_running:
                loop_start = time.perf_counter()

                frame = self._tracker.get_frame()
                if frame is not None:
                    self.process_frame(frame)

                # Throttle detection to the configured cadence
                elapsed = time.perf_counter() - loop_start
                sleep_time = interval - elapsed
                if sleep_time > 0:
                    time.sleep(sleep_time)

        except Exception as e:
            logger.exception("Worker loop failed")
            self.error.emit(f"Worker Exception: {str(e)}")
        finally:
            self._is_running = False
            self._tracker.stop()

    def stop_process(self):
        """Signal the loop to stop; resources are released in the worker thread."""
        self._is_running = False
