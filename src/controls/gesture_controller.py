"""
Maps recognized gestures to target model actions.

Gesture mapping:
 - Twist pose (or pinch while twisting) -> rotate (hand roll drives Y, palm
   motion drives X tilt)
 - Pinch             -> select next region (once per pinch)
 - Fist (hold 0.8s)  -> reset everything
 - Two hands apart   -> expand regions
 - Two hands together-> collapse regions
 - Swipe left/right  -> previous / next region
 - Anything else     -> rotation coasts to a stop
 - No hands          -> coast, then idle rotation after a timeout
"""
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Callable, List, Optional
import logging

from ..tracking.config import ControllerConfig
from ..tracking.geometry import clamp, ema
from ..tracking.gesture_recognizer import Gesture, GestureSample
from .debounce import DebouncedAction
from .target_model import TargetModel

logger = logging.getLogger(__name__)


class ActionKind(Enum):
    ROTATE = auto()     # value: (delta_y, delta_x)
    SELECT = auto()     # value: region id
    RESET = auto()
    EXPAND = auto()     # value: expansion delta
    IDLE = auto()       # value: bool


@dataclass(frozen=True)
class Action:
    kind: ActionKind
    value: Any = None


@dataclass
class ControllerState:
    gesture: Gesture = Gesture.NONE
    previous_gesture: Gesture = Gesture.NONE
    gesture_start: float = 0.0
    gesture_duration: float = 0.0
    hands_detected: int = 0

    rotation_velocity: float = 0.0      # Y, radians per frame
    tilt_delta: float = 0.0             # X, radians per frame
    expansion_delta: float = 0.0

    last_active_time: Optional[float] = None
    idle_requested: bool = False

    pinch: Optional[DebouncedAction] = None
    fist: Optional[DebouncedAction] = None


class GestureController:
    """
    Consumes one GestureSample per frame and issues bounded deltas against a
    TargetModel.

    Optional callbacks (informational only):
        on_gesture_change(label: str)       - stable label changed
        on_region_select(region_id)         - selection changed (None on reset)
        on_explosion_change(amount: float)  - expansion target changed
        on_hands_detected(count: int)       - hand count changed
    """

    def __init__(self, model: TargetModel, config: Optional[ControllerConfig] = None,
                 state: Optional[ControllerState] = None):
        self.model = model
        self._config = config or ControllerConfig()
        self.state = state or ControllerState()
        if self.state.pinch is None:
            self.state.pinch = DebouncedAction(hold=0.0, cooldown=self._config.pinch_cooldown)
        if self.state.fist is None:
            self.state.fist = DebouncedAction(hold=self._config.fist_hold,
                                              cooldown=self._config.fist_cooldown)

        self.on_gesture_change: Optional[Callable[[str], None]] = None
        self.on_region_select: Optional[Callable[[Optional[str]], None]] = None
        self.on_explosion_change: Optional[Callable[[float], None]] = None
        self.on_hands_detected: Optional[Callable[[int], None]] = None

    def update(self, sample: GestureSample) -> List[Action]:
        """Process one frame. Returns the actions issued to the model."""
        now = sample.timestamp
        s = self.state
        gesture = sample.gesture

        entered = gesture != s.gesture
        if entered:
            s.previous_gesture = s.gesture
            s.gesture = gesture
            s.gesture_start = now
            self._emit(self.on_gesture_change, gesture.value)
        s.gesture_duration = now - s.gesture_start

        if sample.hands_detected != s.hands_detected:
            s.hands_detected = sample.hands_detected
            self._emit(self.on_hands_detected, sample.hands_detected)

        if sample.hands_detected == 0:
            return self._handle_no_hands(now)

        s.last_active_time = now
        s.idle_requested = False

        twist_driven = (gesture == Gesture.TWIST_POSE
                        or (gesture == Gesture.PINCH and sample.twist_pose_active))
        pinch_fired = s.pinch.update(gesture == Gesture.PINCH and not twist_driven, now)
        fist_fired = s.fist.update(gesture == Gesture.FIST, now, since=s.gesture_start)

        if twist_driven:
            return self._handle_rotation(sample)
        if gesture == Gesture.PINCH:
            return self._handle_select(1) if pinch_fired else self._coast()
        if gesture == Gesture.FIST:
            return self._handle_reset() if fist_fired else self._coast()
        if gesture in (Gesture.SPREAD, Gesture.SQUEEZE):
            return self._handle_expansion(sample, 1 if gesture == Gesture.SPREAD else -1)
        if gesture in (Gesture.SWIPE_LEFT, Gesture.SWIPE_RIGHT):
            if not entered:
                return self._coast()
            return self._handle_select(1 if gesture == Gesture.SWIPE_RIGHT else -1)

        if gesture == Gesture.POINT:
            # Aiming at the object holds it still
            self.model.set_idle(False)
        return self._coast()

    def reset(self) -> None:
        """Drop gesture and momentum state; debounce cooldowns are kept."""
        pinch, fist = self.state.pinch, self.state.fist
        pinch.reset()
        fist.reset()
        self.state = ControllerState(pinch=pinch, fist=fist)

    def _handle_no_hands(self, now: float) -> List[Action]:
        s = self.state
        s.pinch.update(False, now)
        s.fist.update(False, now)
        s.expansion_delta = 0.0

        actions = self._coast()

        if s.last_active_time is None:
            s.last_active_time = now
        if not s.idle_requested and now - s.last_active_time > self._config.idle_timeout:
            s.idle_requested = True
            s.rotation_velocity = 0.0
            s.tilt_delta = 0.0
            self.model.set_idle(True)
            logger.info("No hands for %.1fs, idling", now - s.last_active_time)
            actions.append(Action(ActionKind.IDLE, True))
        return actions

    def _handle_rotation(self, sample: GestureSample) -> List[Action]:
        """
        Proportional, momentum-smoothed rotation. Y velocity ramps toward
        hand_angle_delta * sensitivity with no cap; X tilt follows vertical
        palm motion in small clamped steps.
        """
        cfg = self._config
        s = self.state

        target_velocity = sample.hand_angle_delta * cfg.twist_sensitivity
        s.rotation_velocity += (target_velocity - s.rotation_velocity) * cfg.twist_acceleration

        palm_dy = sample.palm_delta[1] if sample.palm_delta is not None else 0.0
        s.tilt_delta = ema(s.tilt_delta, palm_dy * cfg.tilt_sensitivity, cfg.tilt_smoothing)

        self.model.set_idle(False)
        return [self._apply_rotation(s.rotation_velocity, s.tilt_delta)]

    def _coast(self) -> List[Action]:
        """Bleed off rotation momentum instead of stopping dead."""
        cfg = self._config
        s = self.state

        s.rotation_velocity *= cfg.momentum_decay
        s.tilt_delta *= cfg.momentum_decay
        if abs(s.rotation_velocity) < cfg.momentum_epsilon:
            s.rotation_velocity = 0.0
        if abs(s.tilt_delta) < cfg.momentum_epsilon:
            s.tilt_delta = 0.0

        if s.rotation_velocity == 0.0 and s.tilt_delta == 0.0:
            return []
        return [self._apply_rotation(s.rotation_velocity, s.tilt_delta)]

    def _apply_rotation(self, delta_y: float, tilt: float) -> Action:
        cfg = self._config
        step = clamp(tilt, -cfg.tilt_step, cfg.tilt_step)
        current_x = self.model.rotation_x
        new_x = clamp(current_x + step, -cfg.tilt_limit, cfg.tilt_limit)
        delta_x = new_x - current_x

        self.model.adjust_rotation(delta_y, delta_x)
        # Keep the model's own easing from pulling against the hand
        self.model.set_rotation_target(self.model.rotation_y, self.model.rotation_x)
        return Action(ActionKind.ROTATE, (delta_y, delta_x))

    def _handle_select(self, direction: int) -> List[Action]:
        self.model.set_idle(False)
        region = self.model.advance_selection(direction)
        self._emit(self.on_region_select, region)
        actions = [Action(ActionKind.SELECT, region)]

        # Make sure the selected region is visible
        cfg = self._config
        explosion = self.model.explosion
        if explosion < cfg.auto_expand_below:
            delta = cfg.auto_expand_to - explosion
            self.model.adjust_expansion(delta)
            self._emit(self.on_explosion_change, self.model.explosion)
            actions.append(Action(ActionKind.EXPAND, delta))
        return actions

    def _handle_reset(self) -> List[Action]:
        s = self.state
        s.rotation_velocity = 0.0
        s.tilt_delta = 0.0
        s.expansion_delta = 0.0

        self.model.reset_view()
        self.model.set_idle(True)
        logger.info("Fist held %.2fs, view reset", s.gesture_duration)

        self._emit(self.on_region_select, None)
        self._emit(self.on_explosion_change, self.model.explosion)
        return [Action(ActionKind.RESET), Action(ActionKind.IDLE, True)]

    def _handle_expansion(self, sample: GestureSample, direction: int) -> List[Action]:
        cfg = self._config
        s = self.state

        raw = abs(sample.two_hand_delta) * direction
        s.expansion_delta = ema(s.expansion_delta, raw, cfg.expansion_smoothing)
        delta = s.expansion_delta * cfg.expansion_gain

        self.model.set_idle(False)
        self.model.adjust_expansion(delta)
        self._emit(self.on_explosion_change, self.model.explosion)

        actions = self._coast()
        actions.append(Action(ActionKind.EXPAND, delta))
        return actions

    @staticmethod
    def _emit(callback: Optional[Callable], value) -> None:
        if callback is not None:
            callback(value)
