"""
Majority-vote stabilization of per-frame gesture labels.
"""
from collections import Counter, deque
from typing import Deque, FrozenSet, Generic, Hashable, Optional, TypeVar
import math

Label = TypeVar("Label", bound=Hashable)


class GestureStabilizer(Generic[Label]):
    """
    Suppresses flicker by requiring a label to win a majority of the last
    `size` frames before it becomes the stable output.

    Args:
        default: Stable label before any majority has formed
        size: Vote window length
        ratio: Fraction of the window the winner needs (rounded up)
        immediate: Labels that take effect on their own frame and are never
            kept as the fallback stable label (one-shot events)
        sticky: Label forced while its latch is held, unless the raw label
            is in `sticky_exempt`
        sticky_exempt: Labels that win over the sticky label
    """

    def __init__(
        self,
        default: Label,
        size: int = 5,
        ratio: float = 0.6,
        immediate: FrozenSet[Label] = frozenset(),
        sticky: Optional[Label] = None,
        sticky_exempt: FrozenSet[Label] = frozenset(),
    ):
        self._default = default
        self._buffer: Deque[Label] = deque(maxlen=size)
        self._threshold = math.ceil(size * ratio)
        self._immediate = immediate
        self._sticky = sticky
        self._sticky_exempt = sticky_exempt
        self.last_stable: Label = default

    @property
    def threshold(self) -> int:
        return self._threshold

    @property
    def buffer(self):
        return tuple(self._buffer)

    def reset(self) -> None:
        self._buffer.clear()
        self.last_stable = self._default

    def push(self, raw: Label, sticky_held: bool = False) -> Label:
        """Add this frame's raw label and return the stable label."""
        self._buffer.append(raw)

        # Counter keeps first-seen order, so ties go to the oldest label
        best, best_count = Counter(self._buffer).most_common(1)[0]
        stable = best if best_count >= self._threshold else self.last_stable

        if raw in self._immediate:
            return self._finish(raw, remember=False)

        if sticky_held and self._sticky is not None and raw not in self._sticky_exempt:
            stable = self._sticky

        return self._finish(stable, remember=stable not in self._immediate)

    def _finish(self, label: Label, remember: bool) -> Label:
        if remember:
            self.last_stable = label
        return label
