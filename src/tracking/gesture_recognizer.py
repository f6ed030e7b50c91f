"""
Gesture recognition from hand landmarks.
Detects pinch, fist, point, open palm, twist pose, two-hand spread/squeeze
and swipes, and produces a filtered hand-roll signal for rotation.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Tuple
import logging

from .angle_filter import AngleDeltaFilter
from .config import RecognizerConfig
from .geometry import (
    clamp01,
    distance2,
    distance3,
    ema,
    finger_curl,
    line_angle,
    palm_centroid,
    palm_size,
    thumb_extended,
)
from .landmarks import Hand, LandmarkFrame
from .stabilizer import GestureStabilizer
from .swipe_detector import SwipeDetector

logger = logging.getLogger(__name__)


class Gesture(str, Enum):
    """Detected gesture labels."""
    NONE = "none"
    PINCH = "pinch"
    FIST = "fist"
    POINT = "point"
    OPEN_PALM = "open_palm"
    TWIST_POSE = "twist_pose"
    SPREAD = "spread"
    SQUEEZE = "squeeze"
    SWIPE_LEFT = "swipe_left"
    SWIPE_RIGHT = "swipe_right"


SWIPES = frozenset({Gesture.SWIPE_LEFT, Gesture.SWIPE_RIGHT})

# Raw labels that are allowed to interrupt an active twist pose
HIGH_PRIORITY = frozenset({
    Gesture.PINCH,
    Gesture.FIST,
    Gesture.SPREAD,
    Gesture.SQUEEZE,
    Gesture.SWIPE_LEFT,
    Gesture.SWIPE_RIGHT,
})


@dataclass(frozen=True)
class FingerCurls:
    """Per-finger curl (0 = extended, 1 = curled) and the extension flags derived from it."""
    index: float
    middle: float
    ring: float
    pinky: float
    thumb_extended: bool
    index_extended: bool
    middle_extended: bool
    ring_extended: bool
    pinky_extended: bool

    @classmethod
    def measure(cls, index: float, middle: float, ring: float, pinky: float,
                thumb_extended: bool, extended_curl: float = 0.4) -> "FingerCurls":
        """Build from raw curls; a finger curled less than `extended_curl` is extended."""
        return cls(
            index=index,
            middle=middle,
            ring=ring,
            pinky=pinky,
            thumb_extended=thumb_extended,
            index_extended=index < extended_curl,
            middle_extended=middle < extended_curl,
            ring_extended=ring < extended_curl,
            pinky_extended=pinky < extended_curl,
        )

    @property
    def extended_count(self) -> int:
        """Extended digits including the thumb (0-5)."""
        flags = [
            self.thumb_extended,
            self.index_extended,
            self.middle_extended,
            self.ring_extended,
            self.pinky_extended,
        ]
        return sum(1 for f in flags if f)


@dataclass(frozen=True)
class GestureSample:
    """Everything the recognizer knows about one frame."""
    gesture: Gesture = Gesture.NONE
    confidence: float = 0.0
    timestamp: float = 0.0
    hand_position: Optional[Tuple[float, float]] = None
    palm_delta: Optional[Tuple[float, float]] = None
    hand_angle: float = 0.0
    raw_hand_angle_delta: float = 0.0
    hand_angle_delta: float = 0.0
    twist_pose_score: float = 0.0
    twist_pose_active: bool = False
    hands_detected: int = 0
    two_hand_distance: Optional[float] = None
    two_hand_delta: float = 0.0
    finger_curls: Optional[FingerCurls] = None


@dataclass(frozen=True)
class HandFeatures:
    """Shape features of the primary hand used by the classification rules."""
    curls: FingerCurls
    pinch_distance: float
    twist_pose_score: float
    twist_pose_active: bool


Rule = Tuple[Gesture, Callable[[HandFeatures, RecognizerConfig], bool],
             Callable[[HandFeatures, RecognizerConfig], float]]


def _is_pinch(f: HandFeatures, cfg: RecognizerConfig) -> bool:
    return f.pinch_distance < cfg.pinch_threshold and f.curls.middle > cfg.pinch_middle_curl


def _is_fist(f: HandFeatures, cfg: RecognizerConfig) -> bool:
    c = f.curls
    return (c.extended_count <= 1
            and not c.index_extended and not c.middle_extended and not c.ring_extended)


def _is_twist_pose(f: HandFeatures, cfg: RecognizerConfig) -> bool:
    return f.twist_pose_active


def _is_point(f: HandFeatures, cfg: RecognizerConfig) -> bool:
    c = f.curls
    return (c.index_extended and not c.middle_extended
            and not c.ring_extended and not c.pinky_extended)


def _is_open_palm(f: HandFeatures, cfg: RecognizerConfig) -> bool:
    return f.curls.extended_count >= 3


# Single-hand rules in priority order; the first match wins.
CLASSIFICATION_RULES: Tuple[Rule, ...] = (
    (Gesture.PINCH, _is_pinch,
     lambda f, cfg: max(0.0, 1.0 - f.pinch_distance / cfg.pinch_threshold)),
    (Gesture.FIST, _is_fist,
     lambda f, cfg: 1.0 - f.curls.extended_count / 5),
    (Gesture.TWIST_POSE, _is_twist_pose,
     lambda f, cfg: f.twist_pose_score),
    (Gesture.POINT, _is_point,
     lambda f, cfg: 0.9),
    (Gesture.OPEN_PALM, _is_open_palm,
     lambda f, cfg: f.curls.extended_count / 5),
)

CLASSIFICATION_PRIORITY: Tuple[Gesture, ...] = tuple(rule[0] for rule in CLASSIFICATION_RULES)


def classify_hand(features: HandFeatures, config: RecognizerConfig) -> Tuple[Gesture, float]:
    """Run the rule table and return (label, confidence)."""
    for gesture, matches, confidence in CLASSIFICATION_RULES:
        if matches(features, config):
            return gesture, confidence(features, config)
    return Gesture.NONE, 0.0


def twist_pose_score(curls: FingerCurls, pinch_dist: float, config: RecognizerConfig) -> float:
    """
    Continuous score for the twist posture: thumb and index out (or pinching),
    middle/ring/pinky curled.
    """
    thumb_ready = curls.thumb_extended or pinch_dist < config.twist_thumb_pinch
    index_ready = curls.index_extended or curls.index < config.twist_index_curl
    curled_others = (curls.middle + curls.ring + curls.pinky) / 3
    score = ((0.34 if thumb_ready else 0.0)
             + (0.34 if index_ready else 0.0)
             + curled_others * 0.18
             + (0.18 if pinch_dist < config.twist_close_pinch else 0.0))
    return clamp01(score)


@dataclass
class RecognizerState:
    """Persistent state besides the filter, swipe ring and vote buffer."""
    twist_pose_active: bool = False
    smooth_two_hand_dist: Optional[float] = None


class GestureRecognizer:
    """
    Recognizes gestures from landmark frames, one call per frame.

    Gestures detected:
    - Two hands moving apart/together: spread / squeeze (highest priority)
    - Pinch: thumb tip close to index tip, middle finger curled
    - Fist: every finger curled
    - Twist pose: thumb + index out, others curled (hysteresis gated)
    - Point: only the index extended
    - Open palm: three or more digits extended
    - Swipe: fast horizontal palm motion, any hand shape
    """

    def __init__(self, config: RecognizerConfig, state: Optional[RecognizerState] = None):
        """
        Initialize gesture recognizer.

        Args:
            config: Gesture detection thresholds
            state: Optional pre-built state (replay / tests)
        """
        self._config = config
        self.state = state or RecognizerState()
        self.angle_filter = AngleDeltaFilter(config)
        self.swipe = SwipeDetector(config)
        self.stabilizer: GestureStabilizer[Gesture] = GestureStabilizer(
            Gesture.NONE,
            size=config.stability_buffer,
            ratio=config.stability_ratio,
            immediate=SWIPES,
            sticky=Gesture.TWIST_POSE,
            sticky_exempt=HIGH_PRIORITY,
        )

    def reset(self) -> None:
        """Forget everything learned from previous frames (swipe cooldown survives)."""
        self.state = RecognizerState()
        self.angle_filter.reset()
        self.swipe.clear()
        self.stabilizer.reset()

    def update(self, frame: Optional[LandmarkFrame]) -> GestureSample:
        """Classify one landmark frame."""
        hands = frame.valid_hands() if frame is not None else ()
        timestamp = frame.timestamp if frame is not None else 0.0

        if not hands:
            self.reset()
            return GestureSample(timestamp=timestamp)

        cfg = self._config
        hand = hands[0]

        size = palm_size(hand)
        cx, cy, _ = palm_centroid(hand)
        palm_delta = self.swipe.push(cx, cy, timestamp)

        curls = FingerCurls.measure(
            index=finger_curl(hand, Hand.INDEX_PIP, Hand.INDEX_TIP),
            middle=finger_curl(hand, Hand.MIDDLE_PIP, Hand.MIDDLE_TIP),
            ring=finger_curl(hand, Hand.RING_PIP, Hand.RING_TIP),
            pinky=finger_curl(hand, Hand.PINKY_PIP, Hand.PINKY_TIP),
            thumb_extended=thumb_extended(hand),
            extended_curl=cfg.extended_curl,
        )
        pinch_dist = distance3(hand.thumb_tip, hand.index_tip) / size

        score = twist_pose_score(curls, pinch_dist, cfg)
        self._update_twist_pose(score)

        hand_angle = line_angle(hand.get(Hand.INDEX_MCP), hand.get(Hand.PINKY_MCP))
        pinch_angle = line_angle(hand.thumb_tip, hand.index_tip)
        raw_delta, filtered_delta = self.angle_filter.update(hand_angle, pinch_angle, pinch_dist)

        base = dict(
            timestamp=timestamp,
            hand_position=(cx, cy),
            palm_delta=palm_delta,
            hand_angle=hand_angle,
            raw_hand_angle_delta=raw_delta,
            hand_angle_delta=filtered_delta,
            twist_pose_score=score,
            twist_pose_active=self.state.twist_pose_active,
            hands_detected=len(hands),
            finger_curls=curls,
        )

        # Two-hand gestures take priority over everything else
        two_hand_dist, two_hand_delta = self._update_two_hands(hands)
        base.update(two_hand_distance=two_hand_dist, two_hand_delta=two_hand_delta)
        if abs(two_hand_delta) > cfg.two_hand_min_delta:
            raw = Gesture.SPREAD if two_hand_delta > 0 else Gesture.SQUEEZE
            confidence = min(1.0, abs(two_hand_delta) * cfg.two_hand_confidence_gain)
            return self._stabilize(raw, confidence, base)

        features = HandFeatures(
            curls=curls,
            pinch_distance=pinch_dist,
            twist_pose_score=score,
            twist_pose_active=self.state.twist_pose_active,
        )
        raw, confidence = classify_hand(features, cfg)

        swipe = self.swipe.detect(timestamp)
        if swipe is not None:
            raw = Gesture(swipe)
            confidence = cfg.swipe_confidence

        return self._stabilize(raw, confidence, base)

    def _update_twist_pose(self, score: float) -> None:
        """Asymmetric enter/exit thresholds keep the flag from flickering."""
        cfg = self._config
        if not self.state.twist_pose_active and score >= cfg.twist_enter:
            self.state.twist_pose_active = True
            logger.debug("Twist pose on (score %.2f)", score)
        elif self.state.twist_pose_active and score < cfg.twist_exit:
            self.state.twist_pose_active = False
            logger.debug("Twist pose off (score %.2f)", score)

    def _update_two_hands(self, hands) -> Tuple[Optional[float], float]:
        if len(hands) < 2:
            self.state.smooth_two_hand_dist = None
            return None, 0.0

        raw = distance2(hands[0].wrist, hands[1].wrist)
        prev = self.state.smooth_two_hand_dist
        if prev is None:
            self.state.smooth_two_hand_dist = raw
            return raw, 0.0

        smooth = ema(prev, raw, self._config.two_hand_smoothing)
        self.state.smooth_two_hand_dist = smooth
        return smooth, smooth - prev

    def _stabilize(self, raw: Gesture, confidence: float, base: dict) -> GestureSample:
        gesture = self.stabilizer.push(raw, sticky_held=self.state.twist_pose_active)
        return GestureSample(gesture=gesture, confidence=confidence, **base)
