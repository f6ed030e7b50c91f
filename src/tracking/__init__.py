"""
handorbit Tracking Module

Landmark data model and gesture recognition. The MediaPipe tracker and the
Qt worker live in `hand_tracker` and `worker` and are imported on demand.
"""
from .config import Config, load_config
from .landmarks import Hand, LandmarkFrame
from .gesture_recognizer import GestureRecognizer, GestureSample, Gesture

__all__ = [
    'Config',
    'load_config',
    'Hand',
    'LandmarkFrame',
    'GestureRecognizer',
    'GestureSample',
    'Gesture',
]
