"""
One-shot debounced actions.

Each action is a small state machine:

    IDLE --active--> ARMED --held long enough & cooled down--> FIRED
    FIRED --released--> COOLDOWN (or IDLE once the cooldown has passed)
    COOLDOWN --cooldown elapsed--> IDLE
    COOLDOWN --active--> ARMED

An action fires at most once per gesture instance (it has to be released
before it can arm again) and never twice within its cooldown.
"""
from enum import Enum, auto
from typing import Optional


class DebounceState(Enum):
    IDLE = auto()
    ARMED = auto()
    FIRED = auto()
    COOLDOWN = auto()


class DebouncedAction:
    """
    Args:
        hold: Seconds the trigger must be held before firing
        cooldown: Minimum seconds between two firings
    """

    def __init__(self, hold: float = 0.0, cooldown: float = 0.0):
        self.hold = hold
        self.cooldown = cooldown
        self.state = DebounceState.IDLE
        self.armed_at: Optional[float] = None
        self.last_fired: Optional[float] = None

    def _cooled_down(self, now: float) -> bool:
        if self.last_fired is None or now < self.last_fired:
            # Nothing fired yet, or the clock restarted
            return True
        return now - self.last_fired >= self.cooldown

    def arm(self, since: float) -> None:
        """Start a hold that began at `since` (e.g. the gesture entry time)."""
        if self.state in (DebounceState.IDLE, DebounceState.COOLDOWN):
            self.state = DebounceState.ARMED
            self.armed_at = since

    def release(self, now: float) -> None:
        """The trigger is no longer held."""
        if self.state == DebounceState.FIRED and not self._cooled_down(now):
            self.state = DebounceState.COOLDOWN
        elif self.state != DebounceState.COOLDOWN:
            self.state = DebounceState.IDLE
        self.armed_at = None

    def update(self, active: bool, now: float, since: Optional[float] = None) -> bool:
        """
        Advance the machine by one frame.

        Args:
            active: Whether the trigger gesture is held this frame
            now: Frame timestamp
            since: When the current hold started; defaults to `now` on arming

        Returns:
            True exactly on the frame the action fires.
        """
        if self.state == DebounceState.COOLDOWN and self._cooled_down(now):
            self.state = DebounceState.IDLE

        if not active:
            self.release(now)
            return False

        if self.state in (DebounceState.IDLE, DebounceState.COOLDOWN):
            self.arm(now if since is None else since)

        if self.state != DebounceState.ARMED:
            return False

        if now - self.armed_at < self.hold or not self._cooled_down(now):
            return False

        self.state = DebounceState.FIRED
        self.last_fired = now
        return True

    def reset(self) -> None:
        """Back to IDLE, keeping the cooldown clock."""
        self.state = DebounceState.IDLE
        self.armed_at = None
