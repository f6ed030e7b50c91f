"""
handorbit Controls Module

Turns gesture samples into rotation, selection and expansion actions.
"""
from .debounce import DebouncedAction, DebounceState
from .target_model import TargetModel, RegionModel
from .gesture_controller import GestureController, Action, ActionKind

__all__ = [
    'DebouncedAction',
    'DebounceState',
    'TargetModel',
    'RegionModel',
    'GestureController',
    'Action',
    'ActionKind',
]
