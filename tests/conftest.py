import math

import pytest

from src.tracking.config import ControllerConfig, RecognizerConfig
from src.tracking.landmarks import Hand, LandmarkFrame

WRIST = (0.5, 0.8)
# MCP joints for index, middle, ring, pinky
MCPS = [(0.45, 0.6), (0.5, 0.58), (0.55, 0.6), (0.6, 0.62)]
THUMB_DIR = (-0.981, -0.196)
FOLDED_THUMB_TIP = (0.6, 0.74)


def _along(origin, direction, dist):
    return (origin[0] + direction[0] * dist, origin[1] + direction[1] * dist)


def _unit(a, b):
    dx, dy = b[0] - a[0], b[1] - a[1]
    n = math.hypot(dx, dy)
    return (dx / n, dy / n), n


def make_hand(thumb="folded", index=False, middle=False, ring=False, pinky=False,
              roll=0.0, offset=(0.0, 0.0)):
    """
    Build a synthetic 21-point hand.

    thumb: 'extended', 'folded' or 'pinch' (tip on the index tip)
    index..pinky: True for an extended finger, False for a curled one
    roll: rotation in radians around the wrist (image plane)
    offset: translation applied after the roll
    """
    points = [None] * 21
    points[0] = WRIST

    flags = [index, middle, ring, pinky]
    for finger, (mcp, extended) in enumerate(zip(MCPS, flags)):
        base = 5 + finger * 4
        direction, r = _unit(WRIST, mcp)
        if extended:
            dists = (r, r + 0.05, r + 0.08, r + 0.11)
        else:
            dists = (r, r + 0.03, r + 0.01, r - 0.05)
        for j, d in enumerate(dists):
            points[base + j] = _along(WRIST, direction, d)

    for j, d in enumerate((0.03, 0.08, 0.13, 0.18)):
        points[1 + j] = _along(WRIST, THUMB_DIR, d)
    if thumb == "folded":
        points[2] = (0.54, 0.77)
        points[3] = (0.57, 0.75)
        points[4] = FOLDED_THUMB_TIP
    elif thumb == "pinch":
        tip = points[8]
        points[4] = (tip[0] + 0.01, tip[1])

    c, s = math.cos(roll), math.sin(roll)
    out = []
    for x, y in points:
        dx, dy = x - WRIST[0], y - WRIST[1]
        rx = WRIST[0] + dx * c - dy * s + offset[0]
        ry = WRIST[1] + dx * s + dy * c + offset[1]
        out.append((rx, ry, 0.0))
    return Hand.from_points(out)


POSES = {
    "open_palm": dict(thumb="folded", index=True, middle=True, ring=True, pinky=True),
    "fist": dict(thumb="folded"),
    "point": dict(thumb="folded", index=True),
    "twist": dict(thumb="extended", index=True),
    "pinch": dict(thumb="pinch", index=False),
}


def pose(name, **kwargs):
    params = dict(POSES[name])
    params.update(kwargs)
    return make_hand(**params)


def frame(t, *hands):
    return LandmarkFrame(timestamp=t, hands=tuple(hands))


@pytest.fixture
def recognizer_config():
    return RecognizerConfig()


@pytest.fixture
def controller_config():
    return ControllerConfig()
