"""
Velocity-based horizontal swipe detection over palm position history.
Independent of finger shape.
"""
from collections import deque
from typing import Deque, Optional, Tuple
import logging

from .config import RecognizerConfig

logger = logging.getLogger(__name__)

PalmEntry = Tuple[float, float, float]  # (x, y, timestamp)

SWIPE_LEFT = "swipe_left"
SWIPE_RIGHT = "swipe_right"


class SwipeDetector:
    """
    Owns the bounded palm-position ring.

    A swipe fires at most once per cooldown window; firing clears the ring so
    every swipe is a single discrete event.
    """

    def __init__(self, config: RecognizerConfig):
        self._config = config
        self.history: Deque[PalmEntry] = deque(maxlen=config.palm_history)
        self.last_swipe_time: Optional[float] = None

    def push(self, x: float, y: float, timestamp: float) -> Optional[Tuple[float, float]]:
        """
        Record a palm position.

        Returns:
            (dx, dy) against the previous entry if it is recent enough, else None.
        """
        delta = None
        if self.history:
            px, py, pt = self.history[-1]
            dt = timestamp - pt
            if 0 < dt < self._config.palm_delta_max_gap:
                delta = (x - px, y - py)
        self.history.append((x, y, timestamp))
        return delta

    def clear(self) -> None:
        """Drop position history. The cooldown survives."""
        self.history.clear()

    def _cooling_down(self, now: float) -> bool:
        # A clock that went backwards belongs to a new session
        if self.last_swipe_time is None or now < self.last_swipe_time:
            return False
        return now - self.last_swipe_time < self._config.swipe_cooldown

    def detect(self, now: float) -> Optional[str]:
        """Check for a swipe ending at `now`."""
        cfg = self._config
        if self._cooling_down(now):
            return None
        if len(self.history) < cfg.swipe_min_history:
            return None

        cutoff = now - cfg.swipe_window
        recent = [p for p in self.history if p[2] >= cutoff]
        if len(recent) < cfg.swipe_min_samples:
            return None

        first, last = recent[0], recent[-1]
        dx = last[0] - first[0]
        dy = last[1] - first[1]
        dt = last[2] - first[2]

        # A single noisy burst must not look like a swipe
        if dt < cfg.swipe_min_span:
            return None

        velocity_x = dx / dt
        if abs(velocity_x) > cfg.swipe_min_velocity and abs(dy) < abs(dx) * cfg.swipe_max_slope:
            self.last_swipe_time = now
            self.history.clear()
            direction = SWIPE_RIGHT if dx > 0 else SWIPE_LEFT
            logger.debug("Swipe %s (vx=%.2f)", direction, velocity_x)
            return direction

        return None
