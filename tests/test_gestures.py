import pytest

from src.tracking.config import RecognizerConfig
from src.tracking.gesture_recognizer import (
    CLASSIFICATION_PRIORITY,
    FingerCurls,
    Gesture,
    GestureRecognizer,
    HandFeatures,
    classify_hand,
    twist_pose_score,
)
from src.tracking.landmarks import Hand, LandmarkFrame

from conftest import frame, make_hand, pose


@pytest.fixture
def recognizer():
    return GestureRecognizer(RecognizerConfig())


def run(recognizer, hands_per_frame, t0=0.0, step=0.05):
    samples = []
    for i, hands in enumerate(hands_per_frame):
        samples.append(recognizer.update(frame(t0 + i * step, *hands)))
    return samples


def hold(name, count, **kwargs):
    hand = pose(name, **kwargs)
    return [(hand,)] * count


def test_priority_order_is_fixed():
    assert CLASSIFICATION_PRIORITY == (
        Gesture.PINCH,
        Gesture.FIST,
        Gesture.TWIST_POSE,
        Gesture.POINT,
        Gesture.OPEN_PALM,
    )


def test_first_matching_rule_wins():
    cfg = RecognizerConfig()
    # Curled hand that is also pinching: pinch outranks fist
    curls = FingerCurls.measure(index=0.9, middle=0.9, ring=0.9, pinky=0.9, thumb_extended=False)
    features = HandFeatures(curls=curls, pinch_distance=0.1,
                            twist_pose_score=0.5, twist_pose_active=False)
    gesture, confidence = classify_hand(features, cfg)
    assert gesture == Gesture.PINCH
    assert confidence == pytest.approx(1 - 0.1 / 0.35)

    features = HandFeatures(curls=curls, pinch_distance=1.0,
                            twist_pose_score=0.5, twist_pose_active=True)
    assert classify_hand(features, cfg)[0] == Gesture.FIST


def test_no_rule_matches():
    cfg = RecognizerConfig()
    curls = FingerCurls.measure(index=0.0, middle=0.0, ring=0.9, pinky=0.9, thumb_extended=False)
    features = HandFeatures(curls=curls, pinch_distance=1.0,
                            twist_pose_score=0.3, twist_pose_active=False)
    assert classify_hand(features, cfg) == (Gesture.NONE, 0.0)


def test_twist_pose_score_weights():
    cfg = RecognizerConfig()
    curls = FingerCurls.measure(index=0.0, middle=1.0, ring=1.0, pinky=1.0, thumb_extended=True)
    assert twist_pose_score(curls, 1.0, cfg) == pytest.approx(0.86)
    assert twist_pose_score(curls, 0.5, cfg) == pytest.approx(1.0)
    open_hand = FingerCurls.measure(index=0.0, middle=0.0, ring=0.0, pinky=0.0, thumb_extended=False)
    assert twist_pose_score(open_hand, 1.0, cfg) == pytest.approx(0.34)


@pytest.mark.parametrize("name, expected", [
    ("open_palm", Gesture.OPEN_PALM),
    ("fist", Gesture.FIST),
    ("point", Gesture.POINT),
    ("twist", Gesture.TWIST_POSE),
    ("pinch", Gesture.PINCH),
])
def test_static_poses(recognizer, name, expected):
    samples = run(recognizer, hold(name, 5))
    assert samples[-1].gesture == expected
    assert samples[-1].hands_detected == 1
    assert samples[-1].confidence > 0


def test_open_palm_stable_from_third_frame(recognizer):
    samples = run(recognizer, hold("open_palm", 5))
    assert [s.gesture for s in samples] == [Gesture.NONE] * 2 + [Gesture.OPEN_PALM] * 3


def test_alternating_poses_keep_previous_label(recognizer):
    sequence = hold("point", 5)
    for name in ("open_palm", "fist", "open_palm", "fist", "point"):
        sequence += hold(name, 1)
    samples = run(recognizer, sequence)
    assert all(s.gesture == Gesture.POINT for s in samples[2:])


def test_finger_curls_reported(recognizer):
    sample = run(recognizer, hold("point", 1))[0]
    curls = sample.finger_curls
    assert curls.index_extended
    assert not curls.middle_extended
    assert not curls.thumb_extended
    assert curls.extended_count == 1


def test_twist_hysteresis_band(recognizer):
    recognizer._update_twist_pose(0.57)
    assert not recognizer.state.twist_pose_active
    recognizer._update_twist_pose(0.58)
    assert recognizer.state.twist_pose_active
    for score in (0.5, 0.43, 0.57, 0.42, 0.55):
        recognizer._update_twist_pose(score)
        assert recognizer.state.twist_pose_active
    recognizer._update_twist_pose(0.41)
    assert not recognizer.state.twist_pose_active
    recognizer._update_twist_pose(0.57)
    assert not recognizer.state.twist_pose_active


def test_twist_pose_holds_over_point(recognizer):
    run(recognizer, hold("twist", 5))
    assert recognizer.state.twist_pose_active
    # Point scores ~0.51: inside the band, so the latch holds
    samples = run(recognizer, hold("point", 5), t0=1.0)
    assert all(s.gesture == Gesture.TWIST_POSE for s in samples)


def test_twist_rotation_signal(recognizer):
    frames = [(pose("twist", roll=i * 0.04),) for i in range(30)]
    samples = run(recognizer, frames)
    assert samples[0].hand_angle_delta == 0.0
    assert samples[-1].raw_hand_angle_delta == pytest.approx(0.04)
    assert samples[-1].hand_angle_delta == pytest.approx(0.04, abs=2e-3)
    assert samples[-1].gesture == Gesture.TWIST_POSE


def test_palm_delta_reported(recognizer):
    samples = run(recognizer, [
        (pose("open_palm"),),
        (pose("open_palm", offset=(0.01, 0.02)),),
    ])
    assert samples[0].palm_delta is None
    dx, dy = samples[1].palm_delta
    assert dx == pytest.approx(0.01)
    assert dy == pytest.approx(0.02)


def test_spread_and_squeeze(recognizer):
    left = lambda gap: pose("open_palm", offset=(-gap, 0.0))
    right = lambda gap: pose("open_palm", offset=(gap, 0.0))

    frames = [(left(0.1 + i * 0.02), right(0.1 + i * 0.02)) for i in range(6)]
    samples = run(recognizer, frames)
    assert samples[0].two_hand_delta == 0.0
    assert samples[-1].two_hand_delta > 0.003
    assert samples[-1].gesture == Gesture.SPREAD
    assert samples[-1].hands_detected == 2
    assert 0 < samples[-1].confidence <= 1

    frames = [(left(0.2 - i * 0.02), right(0.2 - i * 0.02)) for i in range(8)]
    samples = run(recognizer, frames, t0=1.0)
    assert samples[-1].two_hand_delta < -0.003
    assert samples[-1].gesture == Gesture.SQUEEZE


def test_two_hand_state_resets_with_one_hand(recognizer):
    run(recognizer, [(pose("open_palm"), pose("open_palm", offset=(0.3, 0.0)))] * 2)
    assert recognizer.state.smooth_two_hand_dist is not None
    run(recognizer, hold("open_palm", 1), t0=1.0)
    assert recognizer.state.smooth_two_hand_dist is None


def test_swipe_overrides_and_bypasses_vote(recognizer):
    frames = [(pose("open_palm", offset=(i * 0.06, 0.0)),) for i in range(5)]
    samples = run(recognizer, frames)
    assert samples[-1].gesture == Gesture.SWIPE_RIGHT
    assert samples[-1].confidence == pytest.approx(0.85)
    assert len(recognizer.swipe.history) == 0


def test_hand_loss_resets_state(recognizer):
    run(recognizer, hold("twist", 5))
    assert recognizer.state.twist_pose_active

    sample = recognizer.update(LandmarkFrame(timestamp=1.0, hands=()))
    assert sample.gesture == Gesture.NONE
    assert sample.confidence == 0.0
    assert sample.hands_detected == 0
    assert not recognizer.state.twist_pose_active
    assert len(recognizer.swipe.history) == 0
    assert recognizer.stabilizer.buffer == ()
    assert recognizer.angle_filter.state.prev_palm_angle is None


def test_malformed_hand_counts_as_no_hand(recognizer):
    run(recognizer, hold("open_palm", 5))
    broken = Hand.from_points([(0.5, 0.5, 0.0)] * 20)
    sample = recognizer.update(frame(1.0, broken))
    assert sample.gesture == Gesture.NONE
    assert sample.hands_detected == 0


def test_missing_landmark_counts_as_no_hand(recognizer):
    run(recognizer, hold("open_palm", 5))
    points = list(pose("open_palm").landmarks)
    points[8] = None
    sample = recognizer.update(frame(1.0, Hand(landmarks=tuple(points))))
    assert sample.gesture == Gesture.NONE
    assert sample.hands_detected == 0


@pytest.mark.parametrize("bad", [(0.5, None, 0.0), (0.5, 0.5), ("0.5", 0.5, 0.0), (float("nan"), 0.5, 0.0)])
def test_bad_coordinates_count_as_no_hand(recognizer, bad):
    points = list(pose("open_palm").landmarks)
    points[8] = bad
    hand = Hand(landmarks=tuple(points))
    assert not hand.is_valid()
    assert recognizer.update(frame(0.0, hand)).hands_detected == 0


def test_none_frame(recognizer):
    sample = recognizer.update(None)
    assert sample.gesture == Gesture.NONE
    assert sample.hands_detected == 0


def test_only_two_hands_considered(recognizer):
    hands = (pose("open_palm"), pose("open_palm", offset=(0.3, 0)), pose("fist"))
    sample = recognizer.update(frame(0.0, *hands))
    assert sample.hands_detected == 2


def test_replay_is_deterministic():
    frames = [(pose("twist", roll=i * 0.03),) for i in range(10)]
    frames += [(pose("open_palm", offset=(i * 0.06, 0.0)),) for i in range(8)]
    a = run(GestureRecognizer(RecognizerConfig()), frames)
    b = run(GestureRecognizer(RecognizerConfig()), frames)
    assert a == b


def test_swipe_after_clock_restart(recognizer):
    frames = [(pose("open_palm", offset=(i * 0.06, 0.0)),) for i in range(5)]
    assert run(recognizer, frames, t0=100.0)[-1].gesture == Gesture.SWIPE_RIGHT
    recognizer.reset()
    # A new tracker session starts its clock at zero again
    assert run(recognizer, frames, t0=0.0)[-1].gesture == Gesture.SWIPE_RIGHT


def test_curl_threshold_only_sets_flags():
    a = FingerCurls.measure(index=0.0, middle=0.9, ring=0.9, pinky=0.9,
                            thumb_extended=False, extended_curl=0.4)
    b = FingerCurls.measure(index=0.0, middle=0.9, ring=0.9, pinky=0.9,
                            thumb_extended=False, extended_curl=0.2)
    assert a == b
    c = FingerCurls.measure(index=0.3, middle=0.9, ring=0.9, pinky=0.9,
                            thumb_extended=False, extended_curl=0.2)
    assert not c.index_extended
    assert c.extended_count == 0
