"""
Hand-roll ("lightbulb twist") delta filter.

Two angle axes are tracked per frame:
- palm axis: index MCP -> pinky MCP
- pinch axis: thumb tip -> index tip

Their frame-to-frame deltas are blended by pinch distance, then cleaned by
median-based outlier rejection, an adaptive deadzone and a final low-pass.
"""
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Optional, Tuple

from .config import RecognizerConfig
from .geometry import clamp01, ema, median, std_dev, wrap_angle_delta


@dataclass
class AngleFilterState:
    prev_palm_angle: Optional[float] = None
    prev_pinch_angle: Optional[float] = None
    filtered_pinch_delta: float = 0.0
    filtered_delta: float = 0.0
    history: Deque[float] = field(default_factory=lambda: deque(maxlen=7))


class AngleDeltaFilter:
    """Turns raw per-frame roll angles into a smooth angular-velocity signal."""

    def __init__(self, config: RecognizerConfig, state: Optional[AngleFilterState] = None):
        self._config = config
        self.state = state or AngleFilterState(history=deque(maxlen=config.angle_history))

    def reset(self) -> None:
        self.state = AngleFilterState(history=deque(maxlen=self._config.angle_history))

    def pinch_blend(self, pinch_dist: float) -> float:
        """Weight of the pinch axis: 1 when fingers are close, 0 when apart."""
        low = self._config.blend_ramp_low
        high = self._config.blend_ramp_high
        if high <= low:
            return 1.0 if pinch_dist <= low else 0.0
        return clamp01((high - pinch_dist) / (high - low))

    def update(self, palm_angle: float, pinch_angle: float, pinch_dist: float) -> Tuple[float, float]:
        """
        Feed one frame of angles.

        Returns:
            (raw blended delta, filtered delta). Both are 0 on the first frame
            after a reset.
        """
        cfg = self._config
        s = self.state

        had_prev = s.prev_palm_angle is not None
        palm_delta = wrap_angle_delta(palm_angle - s.prev_palm_angle) if had_prev else 0.0
        s.prev_palm_angle = palm_angle

        pinch_delta = 0.0
        if s.prev_pinch_angle is not None:
            pinch_delta = wrap_angle_delta(pinch_angle - s.prev_pinch_angle)
        s.prev_pinch_angle = pinch_angle

        if not had_prev:
            return 0.0, 0.0

        s.filtered_pinch_delta = ema(s.filtered_pinch_delta, pinch_delta, cfg.pinch_axis_smoothing)

        blend = self.pinch_blend(pinch_dist)
        raw = palm_delta * (1.0 - blend) + s.filtered_pinch_delta * blend

        s.history.append(raw)
        med = median(list(s.history))
        sigma = std_dev(list(s.history))

        cleaned = raw
        if abs(cleaned - med) > max(cfg.outlier_floor, sigma * cfg.outlier_sigma):
            cleaned = med

        deadzone = cfg.deadzone_base + min(cfg.deadzone_max, sigma * cfg.deadzone_sigma)
        if abs(cleaned) <= deadzone:
            cleaned = 0.0

        s.filtered_delta = ema(s.filtered_delta, cleaned, cfg.angle_smoothing)
        return raw, s.filtered_delta
