import math

import pytest

from src.tracking.angle_filter import AngleDeltaFilter
from src.tracking.config import RecognizerConfig


@pytest.fixture
def angle_filter():
    return AngleDeltaFilter(RecognizerConfig())


FAR = 1.0    # pinch distance where only the palm axis counts
CLOSE = 0.2  # pinch distance where only the pinch axis counts


def test_first_frame_has_no_delta(angle_filter):
    assert angle_filter.update(0.5, 1.0, FAR) == (0.0, 0.0)


def test_pinch_blend_ramp(angle_filter):
    assert angle_filter.pinch_blend(0.75) == pytest.approx(0.0)
    assert angle_filter.pinch_blend(0.40) == pytest.approx(1.0)
    assert angle_filter.pinch_blend(0.575) == pytest.approx(0.5)
    assert angle_filter.pinch_blend(2.0) == 0.0
    assert angle_filter.pinch_blend(0.0) == 1.0


def test_pinch_blend_ramp_is_configurable():
    f = AngleDeltaFilter(RecognizerConfig(blend_ramp_low=0.2, blend_ramp_high=0.4))
    assert f.pinch_blend(0.3) == pytest.approx(0.5)


def test_steady_rotation_converges(angle_filter):
    angle = 0.0
    for _ in range(30):
        raw, filtered = angle_filter.update(angle, 0.0, FAR)
        angle += 0.05
    assert raw == pytest.approx(0.05)
    assert filtered == pytest.approx(0.05, abs=1e-3)


def test_rotation_across_seam_is_small(angle_filter):
    angle_filter.update(3.13, 0.0, FAR)
    raw, _ = angle_filter.update(-3.13, 0.0, FAR)
    assert abs(raw) < 0.1
    assert raw > 0


def test_pinch_axis_dominates_when_fingers_close(angle_filter):
    angle_filter.update(0.0, 0.0, CLOSE)
    raw, _ = angle_filter.update(0.0, 0.1, CLOSE)
    # Palm axis did not move; pinch axis moved 0.1 and is smoothed by 0.35
    assert raw == pytest.approx(0.035)


def test_small_jitter_is_deadzoned(angle_filter):
    angle = 0.0
    for i in range(20):
        _, filtered = angle_filter.update(angle, 0.0, FAR)
        angle += 0.001 if i % 2 == 0 else -0.001
    assert filtered == 0.0


def test_spike_is_damped(angle_filter):
    angle = 0.0
    for _ in range(7):
        angle_filter.update(angle, 0.0, FAR)
        angle += 0.01
    raw, filtered = angle_filter.update(angle + 1.0, 0.0, FAR)
    assert raw == pytest.approx(1.01)
    assert filtered < raw / 2


def test_history_is_bounded(angle_filter):
    for i in range(50):
        angle_filter.update(i * 0.01, 0.0, FAR)
    assert len(angle_filter.state.history) == 7


def test_reset_clears_state(angle_filter):
    angle_filter.update(0.0, 0.0, FAR)
    angle_filter.update(0.2, 0.0, FAR)
    angle_filter.reset()
    assert angle_filter.state.prev_palm_angle is None
    assert len(angle_filter.state.history) == 0
    assert angle_filter.state.filtered_delta == 0.0
    assert angle_filter.update(math.pi, 0.0, FAR) == (0.0, 0.0)
