"""
Geometry helpers for landmark feature extraction.
All functions are pure.
"""
from typing import Sequence
import math

import numpy as np

from .landmarks import Hand, Point

MIN_PALM_SIZE = 0.001


def distance3(a: Point, b: Point) -> float:
    """3D Euclidean distance."""
    dx = a[0] - b[0]
    dy = a[1] - b[1]
    dz = a[2] - b[2]
    return math.sqrt(dx*dx + dy*dy + dz*dz)


def distance2(a: Sequence[float], b: Sequence[float]) -> float:
    """2D distance between two points (z ignored)."""
    dx = a[0] - b[0]
    dy = a[1] - b[1]
    return math.sqrt(dx*dx + dy*dy)


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def clamp01(value: float) -> float:
    return clamp(value, 0.0, 1.0)


def palm_centroid(hand: Hand) -> Point:
    """Centroid of wrist, index MCP and pinky MCP."""
    pts = [hand.get(Hand.WRIST), hand.get(Hand.INDEX_MCP), hand.get(Hand.PINKY_MCP)]
    return (
        sum(p[0] for p in pts) / 3,
        sum(p[1] for p in pts) / 3,
        sum(p[2] for p in pts) / 3,
    )


def palm_size(hand: Hand) -> float:
    """
    Wrist to middle MCP distance, used to normalize every other measurement
    so detection works at any distance from the camera.
    """
    return max(MIN_PALM_SIZE, distance3(hand.get(Hand.WRIST), hand.get(Hand.MIDDLE_MCP)))


def finger_curl(hand: Hand, pip_index: int, tip_index: int) -> float:
    """
    Curl amount from tip/pip distances to the wrist.

    Returns:
        0 = fully extended, 1 = fully curled
    """
    wrist = hand.get(Hand.WRIST)
    tip_to_wrist = distance3(hand.get(tip_index), wrist)
    pip_to_wrist = distance3(hand.get(pip_index), wrist)
    if pip_to_wrist < MIN_PALM_SIZE:
        return 0.0
    ratio = tip_to_wrist / pip_to_wrist
    # ratio > 1.15 reads as extended, < 0.65 as fully curled
    return clamp01((1.15 - ratio) / 0.5)


def thumb_extended(hand: Hand) -> bool:
    """Thumb tip clearly farther from the palm centroid than the thumb base."""
    center = palm_centroid(hand)
    tip_dist = distance3(hand.get(Hand.THUMB_TIP), center)
    base_dist = distance3(hand.get(Hand.THUMB_CMC), center)
    return tip_dist > base_dist * 1.3


def line_angle(a: Sequence[float], b: Sequence[float]) -> float:
    """Angle of the line a -> b in image coordinates."""
    return math.atan2(b[1] - a[1], b[0] - a[0])


def wrap_angle_delta(delta: float) -> float:
    """Bring an angle difference back into (-pi, pi] across the atan2 seam."""
    if delta > math.pi:
        delta -= 2 * math.pi
    elif delta <= -math.pi:
        delta += 2 * math.pi
    return delta


def median(values: Sequence[float]) -> float:
    if len(values) == 0:
        return 0.0
    return float(np.median(values))


def std_dev(values: Sequence[float]) -> float:
    """Population standard deviation; 0 for fewer than two values."""
    if len(values) <= 1:
        return 0.0
    return float(np.std(values))


def ema(previous: float, value: float, factor: float) -> float:
    """One step of an exponential moving average (factor 1 = no memory)."""
    return previous + (value - previous) * factor
