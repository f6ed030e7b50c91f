"""
Config loader for handorbit.
Loads YAML configuration with dataclass validation.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
import yaml


@dataclass
class CameraConfig:
    device_id: int = 0
    width: int = 640
    height: int = 480
    fps: int = 30
    mirror: bool = True


@dataclass
class MediaPipeConfig:
    max_num_hands: int = 2
    min_detection_confidence: float = 0.65
    min_presence_confidence: float = 0.6
    min_tracking_confidence: float = 0.6
    detect_interval: float = 0.05   # Seconds between detections (~20Hz)


@dataclass
class RecognizerConfig:
    # Finger shape
    extended_curl: float = 0.4          # Curl below this = finger extended
    pinch_threshold: float = 0.35       # Normalized thumb-index distance
    pinch_middle_curl: float = 0.3      # Middle must be at least this curled to pinch

    # Twist pose scoring + hysteresis
    twist_enter: float = 0.58
    twist_exit: float = 0.42
    twist_thumb_pinch: float = 0.72     # Thumb counts as "ready" below this pinch distance
    twist_index_curl: float = 0.55      # Index counts as "ready" below this curl
    twist_close_pinch: float = 0.55     # Bonus when thumb and index are this close

    # Hand roll filter
    pinch_axis_smoothing: float = 0.35
    blend_ramp_low: float = 0.40        # Pinch distance where pinch axis fully wins
    blend_ramp_high: float = 0.75       # Pinch distance where palm axis fully wins
    angle_history: int = 7
    outlier_floor: float = 0.08
    outlier_sigma: float = 3.0
    deadzone_base: float = 0.002
    deadzone_max: float = 0.02
    deadzone_sigma: float = 1.6
    angle_smoothing: float = 0.34

    # Two hands
    two_hand_smoothing: float = 0.3
    two_hand_min_delta: float = 0.003
    two_hand_confidence_gain: float = 15.0

    # Palm history / swipe
    palm_history: int = 20
    palm_delta_max_gap: float = 0.2     # Seconds; older previous samples give no delta
    swipe_cooldown: float = 0.7
    swipe_window: float = 0.25
    swipe_min_history: int = 5
    swipe_min_samples: int = 4
    swipe_min_span: float = 0.05
    swipe_min_velocity: float = 0.8     # Normalized units per second
    swipe_max_slope: float = 0.5        # |dy| must stay below this * |dx|
    swipe_confidence: float = 0.85

    # Stabilization
    stability_buffer: int = 5
    stability_ratio: float = 0.6


@dataclass
class ControllerConfig:
    twist_sensitivity: float = 2.5
    twist_acceleration: float = 0.45
    tilt_sensitivity: float = 1.0        # 1.0 = palm delta Y used as is
    tilt_smoothing: float = 0.18
    tilt_step: float = 0.01             # Max tilt added per frame (radians)
    tilt_limit: float = 0.8             # Max absolute X rotation (radians)
    momentum_decay: float = 0.9
    momentum_epsilon: float = 1e-5

    pinch_cooldown: float = 0.7
    fist_hold: float = 0.8
    fist_cooldown: float = 1.5

    expansion_smoothing: float = 0.3
    expansion_gain: float = 3.0
    auto_expand_below: float = 0.15
    auto_expand_to: float = 0.2

    idle_timeout: float = 2.5


@dataclass
class ModelConfig:
    idle_rotation_speed: float = 0.15   # Radians per second
    rotation_easing: float = 5.0
    explosion_easing: float = 6.0


@dataclass
class Config:
    camera: CameraConfig = field(default_factory=CameraConfig)
    mediapipe: MediaPipeConfig = field(default_factory=MediaPipeConfig)
    recognizer: RecognizerConfig = field(default_factory=RecognizerConfig)
    controller: ControllerConfig = field(default_factory=ControllerConfig)
    model: ModelConfig = field(default_factory=ModelConfig)


def _dict_to_dataclass(cls, data: dict):
    """Convert a dict to a dataclass, ignoring unknown keys."""
    if data is None:
        return cls()
    field_names = {f.name for f in cls.__dataclass_fields__.values()}
    filtered = {k: v for k, v in data.items() if k in field_names}
    return cls(**filtered)


def load_config(config_path: Optional[Path] = None) -> Config:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to config file. If None, uses default config.yaml
                    in project root.

    Returns:
        Config dataclass with all settings.
    """
    if config_path is None:
        config_path = Path(__file__).parent.parent.parent / "config.yaml"

    config_path = Path(config_path)

    if not config_path.exists():
        return Config()

    with open(config_path, 'r') as f:
        data = yaml.safe_load(f) or {}

    return Config(
        camera=_dict_to_dataclass(CameraConfig, data.get('camera')),
        mediapipe=_dict_to_dataclass(MediaPipeConfig, data.get('mediapipe')),
        recognizer=_dict_to_dataclass(RecognizerConfig, data.get('recognizer')),
        controller=_dict_to_dataclass(ControllerConfig, data.get('controller')),
        model=_dict_to_dataclass(ModelConfig, data.get('model')),
    )
