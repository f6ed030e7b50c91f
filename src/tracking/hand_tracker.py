"""
MediaPipe Hand Tracker wrapper using the Tasks API.
Handles camera capture and turns detections into LandmarkFrames.
"""
from pathlib import Path
from typing import Optional
import logging
import time

import cv2
import numpy as np
import mediapipe as mp

from .config import Config, CameraConfig, MediaPipeConfig
from .landmarks import Hand, LandmarkFrame

logger = logging.getLogger(__name__)

# MediaPipe Tasks API imports
BaseOptions = mp.tasks.BaseOptions
HandLandmarker = mp.tasks.vision.HandLandmarker
HandLandmarkerOptions = mp.tasks.vision.HandLandmarkerOptions
VisionRunningMode = mp.tasks.vision.RunningMode

MODEL_URL = ("https://storage.googleapis.com/mediapipe-models/hand_landmarker/"
             "hand_landmarker/float16/1/hand_landmarker.task")

# Hand connections for drawing (same as MediaPipe's HAND_CONNECTIONS)
HAND_CONNECTIONS = [
    (0, 1), (1, 2), (2, 3), (3, 4),      # Thumb
    (0, 5), (5, 6), (6, 7), (7, 8),      # Index
    (0, 9), (9, 10), (10, 11), (11, 12), # Middle
    (0, 13), (13, 14), (14, 15), (15, 16), # Ring
    (0, 17), (17, 18), (18, 19), (19, 20), # Pinky
    (5, 9), (9, 13), (13, 17),           # Palm
]

FINGERTIPS = (4, 8, 12, 16, 20)


def frame_from_result(result, timestamp: float, max_hands: int = 2) -> LandmarkFrame:
    """Convert a HandLandmarkerResult into a LandmarkFrame."""
    hands = []
    for i, hand_landmarks in enumerate(result.hand_landmarks or []):
        if i >= max_hands:
            break
        handedness = "Unknown"
        score = 1.0
        if result.handedness and i < len(result.handedness) and result.handedness[i]:
            category = result.handedness[i][0]
            handedness = category.category_name
            score = category.score
        hands.append(Hand.from_points(
            [(lm.x, lm.y, lm.z) for lm in hand_landmarks],
            handedness=handedness,
            score=score,
        ))
    return LandmarkFrame(timestamp=timestamp, hands=tuple(hands))


class HandTracker:
    """
    MediaPipe hand tracking wrapper with camera management.
    Uses the MediaPipe Tasks API (0.10+) in VIDEO mode, up to two hands.
    """

    DEFAULT_MODEL_PATH = Path(__file__).parent.parent.parent / "models" / "hand_landmarker.task"

    def __init__(self, config: Config, model_path: Optional[Path] = None):
        """
        Initialize hand tracker.

        Args:
            config: handorbit configuration
            model_path: Path to hand_landmarker.task model file
        """
        self._camera_config: CameraConfig = config.camera
        self._mp_config: MediaPipeConfig = config.mediapipe
        self._model_path = Path(model_path) if model_path else self.DEFAULT_MODEL_PATH

        # Lazy initialization
        self._cap: Optional[cv2.VideoCapture] = None
        self._landmarker = None

        self._is_running = False
        self._last_frame: Optional[np.ndarray] = None
        self._frame_count = 0
        self._start_perf: float = 0
        self._last_timestamp_ms: int = -1

    def start(self) -> bool:
        """
        Start camera capture and MediaPipe.

        Returns:
            True if started successfully, False otherwise.
        """
        if self._is_running:
            return True

        if not self._model_path.exists():
            logger.error("Model file not found: %s (download from %s)", self._model_path, MODEL_URL)
            return False

        self._cap = cv2.VideoCapture(self._camera_config.device_id)
        if not self._cap.isOpened():
            logger.error("Could not open camera %d", self._camera_config.device_id)
            self._cap = None
            return False

        self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, self._camera_config.width)
        self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self._camera_config.height)
        self._cap.set(cv2.CAP_PROP_FPS, self._camera_config.fps)

        options = HandLandmarkerOptions(
            base_options=BaseOptions(model_asset_path=str(self._model_path)),
            running_mode=VisionRunningMode.VIDEO,
            num_hands=self._mp_config.max_num_hands,
            min_hand_detection_confidence=self._mp_config.min_detection_confidence,
            min_hand_presence_confidence=self._mp_config.min_presence_confidence,
            min_tracking_confidence=self._mp_config.min_tracking_confidence,
        )

        self._landmarker = HandLandmarker.create_from_options(options)
        self._start_perf = time.perf_counter()
        self._last_timestamp_ms = -1
        self._is_running = True
        logger.info("Hand tracker started (camera %d, %d hands)",
                    self._camera_config.device_id, self._mp_config.max_num_hands)
        return True

    def stop(self) -> None:
        """Stop camera capture and release resources."""
        self._is_running = False

        if self._landmarker:
            self._landmarker.close()
            self._landmarker = None

        if self._cap:
            self._cap.release()
            self._cap = None

        self._last_frame = None

    def get_frame(self) -> Optional[LandmarkFrame]:
        """
        Capture one camera frame and detect hands.

        Returns:
            A LandmarkFrame (possibly with zero hands), or None if the camera
            produced nothing.
        """
        if not self._is_running or self._cap is None or self._landmarker is None:
            return None

        ret, frame = self._cap.read()
        if not ret:
            return None

        self._frame_count += 1

        if self._camera_config.mirror:
            frame = cv2.flip(frame, 1)
        self._last_frame = frame

        rgb_frame = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        rgb_frame.flags.writeable = False
        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=rgb_frame)

        # MediaPipe needs strictly monotonic timestamps
        timestamp_ms = int((time.perf_counter() - self._start_perf) * 1000)
        if timestamp_ms <= self._last_timestamp_ms:
            timestamp_ms = self._last_timestamp_ms + 1
        self._last_timestamp_ms = timestamp_ms

        result = self._landmarker.detect_for_video(mp_image, timestamp_ms)
        return frame_from_result(result, timestamp_ms / 1000.0, self._mp_config.max_num_hands)

    def get_frame_with_landmarks(
        self,
        landmarks: Optional[LandmarkFrame] = None,
        black_background: bool = False
    ) -> Optional[np.ndarray]:
        """
        Get last camera image with optional landmark overlay for debugging.

        Args:
            landmarks: If provided, draw every hand in it.
            black_background: If True, draw on black instead of camera image.
        """
        if self._last_frame is None:
            return None

        if black_background:
            image = np.zeros_like(self._last_frame)
        else:
            image = self._last_frame.copy()

        if landmarks is not None:
            h, w = image.shape[:2]
            for hand in landmarks.hands:
                points = [(int(x * w), int(y * h)) for x, y, _ in hand.landmarks]
                for start_idx, end_idx in HAND_CONNECTIONS:
                    cv2.line(image, points[start_idx], points[end_idx], (246, 92, 139), 2)
                for i, pos in enumerate(points):
                    if i in FINGERTIPS:
                        cv2.circle(image, pos, 4, (120, 200, 250), -1)
                    else:
                        cv2.circle(image, pos, 3, (250, 139, 167), -1)

        return image

    @property
    def is_running(self) -> bool:
        return self._is_running

    @property
    def frame_count(self) -> int:
        return self._frame_count
