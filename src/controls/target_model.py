"""
The object the gesture controller drives.

`TargetModel` is the action surface the controller talks to. `RegionModel`
is an in-memory implementation: an object made of named regions that can be
rotated, cycled through and exploded apart. It keeps the numbers only;
drawing them is someone else's job.
"""
from typing import List, Optional, Protocol, Sequence
import logging

from ..tracking.config import ModelConfig

logger = logging.getLogger(__name__)

# Regions of the brain model the controls were first built for
DEFAULT_REGIONS = (
    "frontal_lobe",
    "parietal_lobe",
    "temporal_lobe_left",
    "temporal_lobe_right",
    "occipital_lobe",
    "cerebellum",
    "brain_stem",
    "thalamus",
    "hypothalamus",
    "hippocampus",
    "amygdala",
    "corpus_callosum",
    "basal_ganglia",
)

X_ROTATION_LIMIT = 0.8


class TargetModel(Protocol):
    """Action surface used by GestureController."""

    rotation_y: float
    rotation_x: float

    @property
    def explosion(self) -> float: ...

    def advance_selection(self, direction: int) -> Optional[str]: ...

    def reset_view(self) -> None: ...

    def adjust_rotation(self, delta_y: float, delta_x: float) -> None: ...

    def set_rotation_target(self, y: float, x: float) -> None: ...

    def adjust_expansion(self, delta: float) -> None: ...

    def set_idle(self, idle: bool) -> None: ...


class RegionModel:
    """
    In-memory target with a cyclic region cursor and a clamped explosion amount.

    `explosion` is the target amount the controls set; `explosion_amount`
    eases toward it in `update()`.
    """

    def __init__(self, regions: Sequence[str] = DEFAULT_REGIONS,
                 config: Optional[ModelConfig] = None):
        self._config = config or ModelConfig()
        self.regions: List[str] = list(regions)
        self.selected_index = -1

        self.rotation_y = 0.0
        self.rotation_x = 0.0
        self.target_rotation_y = 0.0
        self.target_rotation_x = 0.0
        self.is_idle = True

        self._target_explosion = 0.0
        self.explosion_amount = 0.0

    @property
    def selected(self) -> Optional[str]:
        if self.selected_index < 0 or not self.regions:
            return None
        return self.regions[self.selected_index]

    @property
    def explosion(self) -> float:
        return self._target_explosion

    def set_explosion(self, amount: float) -> None:
        self._target_explosion = max(0.0, min(1.0, amount))

    def adjust_expansion(self, delta: float) -> None:
        self.set_explosion(self._target_explosion + delta)

    def advance_selection(self, direction: int) -> Optional[str]:
        """Move the cursor forward (+1) or back (-1), wrapping around."""
        if not self.regions:
            return None
        step = 1 if direction >= 0 else -1
        if self.selected_index < 0:
            self.selected_index = 0 if step > 0 else len(self.regions) - 1
        else:
            self.selected_index = (self.selected_index + step) % len(self.regions)
        logger.info("Selected region %s", self.selected)
        return self.selected

    def reset_view(self) -> None:
        """Clear selection, rotation targets and explosion."""
        self.selected_index = -1
        self._target_explosion = 0.0
        self.target_rotation_x = 0.0
        self.target_rotation_y = 0.0

    def adjust_rotation(self, delta_y: float, delta_x: float) -> None:
        self.rotation_y += delta_y
        self.rotation_x = max(-X_ROTATION_LIMIT, min(X_ROTATION_LIMIT, self.rotation_x + delta_x))

    def set_rotation_target(self, y: float, x: float) -> None:
        self.target_rotation_y = y
        self.target_rotation_x = x

    def set_idle(self, idle: bool) -> None:
        self.is_idle = idle

    def update(self, dt: float) -> None:
        """Advance animation state by dt seconds."""
        cfg = self._config

        diff = self._target_explosion - self.explosion_amount
        if abs(diff) < 0.001:
            self.explosion_amount = self._target_explosion
        else:
            self.explosion_amount += diff * min(1.0, cfg.explosion_easing * dt)

        if self.is_idle:
            self.rotation_y += cfg.idle_rotation_speed * dt
        else:
            ease = min(1.0, cfg.rotation_easing * dt)
            self.rotation_y += (self.target_rotation_y - self.rotation_y) * ease
            self.rotation_x += (self.target_rotation_x - self.rotation_x) * ease

        self.rotation_x = max(-X_ROTATION_LIMIT, min(X_ROTATION_LIMIT, self.rotation_x))
