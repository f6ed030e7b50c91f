"""
Landmark data model shared by the tracker adapter and the recognizer.
"""
from dataclasses import dataclass, field
from typing import Sequence, Tuple
import math
import numbers

Point = Tuple[float, float, float]

NUM_LANDMARKS = 21


@dataclass(frozen=True)
class Hand:
    """
    One tracked hand.

    Attributes:
        landmarks: 21 (x, y, z) tuples, x/y normalized to the camera frame
        handedness: 'Left', 'Right' or 'Unknown'
        score: Detection confidence 0-1
    """
    landmarks: Tuple[Point, ...]
    handedness: str = "Unknown"
    score: float = 1.0

    # MediaPipe landmark indices
    WRIST = 0
    THUMB_CMC = 1
    THUMB_MCP = 2
    THUMB_IP = 3
    THUMB_TIP = 4
    INDEX_MCP = 5
    INDEX_PIP = 6
    INDEX_DIP = 7
    INDEX_TIP = 8
    MIDDLE_MCP = 9
    MIDDLE_PIP = 10
    MIDDLE_DIP = 11
    MIDDLE_TIP = 12
    RING_MCP = 13
    RING_PIP = 14
    RING_DIP = 15
    RING_TIP = 16
    PINKY_MCP = 17
    PINKY_PIP = 18
    PINKY_DIP = 19
    PINKY_TIP = 20

    @classmethod
    def from_points(cls, points: Sequence[Sequence[float]], handedness: str = "Unknown",
                    score: float = 1.0) -> "Hand":
        """Build a hand from any sequence of (x, y, z) sequences."""
        return cls(
            landmarks=tuple(tuple(float(c) for c in p) for p in points),
            handedness=handedness,
            score=score,
        )

    def is_valid(self) -> bool:
        """True when there are exactly 21 finite 3D points."""
        if self.landmarks is None or len(self.landmarks) != NUM_LANDMARKS:
            return False
        for p in self.landmarks:
            if not isinstance(p, (tuple, list)) or len(p) != 3:
                return False
            for c in p:
                if isinstance(c, bool) or not isinstance(c, numbers.Real) or not math.isfinite(c):
                    return False
        return True

    def get(self, index: int) -> Point:
        """Get landmark by index."""
        return self.landmarks[index]

    @property
    def wrist(self) -> Point:
        return self.landmarks[self.WRIST]

    @property
    def thumb_tip(self) -> Point:
        return self.landmarks[self.THUMB_TIP]

    @property
    def index_tip(self) -> Point:
        return self.landmarks[self.INDEX_TIP]


@dataclass(frozen=True)
class LandmarkFrame:
    """All hands seen in one detection cycle. Index 0 is the primary hand."""
    timestamp: float
    hands: Tuple[Hand, ...] = field(default_factory=tuple)

    def valid_hands(self, max_hands: int = 2) -> Tuple[Hand, ...]:
        """Well-formed hands only, capped at max_hands."""
        return tuple(h for h in self.hands if h.is_valid())[:max_hands]
