"""
Configuration management for the holistic webcam overlay.
"""
import os
import yaml
from pathlib import Path
from typing import Optional, Dict, Any
from dataclasses import dataclass

from dotenv import load_dotenv


@dataclass
class CameraConfig:
    """Camera configuration settings."""
    index: int
    width: int
    height: int
    fps: int


@dataclass
class HolisticConfig:
    """MediaPipe Holistic configuration settings."""
    model_complexity: int
    smooth_landmarks: bool
    enable_segmentation: bool
    refine_face_landmarks: bool
    min_detection_confidence: float
    min_tracking_confidence: float


@dataclass
class ThresholdsConfig:
    """Heuristic thresholds, all in normalized image coordinates."""
    ear_threshold: float
    mouth_buffer_size: int
    mouth_avg_threshold: float
    mouth_diff_threshold: float
    movement_speed_threshold: float
    thumb_margin: float


@dataclass
class DisplayConfig:
    """Display configuration settings."""
    window_name: str
    width: int
    height: int
    mirror: bool
    theme: str
    pulse_step: float
    jpeg_quality: int


@dataclass
class ServerConfig:
    """Web server configuration settings."""
    host: str
    port: int


@dataclass
class Cfg:
    """Main configuration class."""
    camera: CameraConfig
    holistic: HolisticConfig
    thresholds: ThresholdsConfig
    display: DisplayConfig
    server: ServerConfig


ENV_CONFIG_PATH = "HOLISTIC_OVERLAY_CONFIG"
ENV_CAMERA_INDEX = "HOLISTIC_OVERLAY_CAMERA_INDEX"
ENV_HOST = "HOLISTIC_OVERLAY_HOST"
ENV_PORT = "HOLISTIC_OVERLAY_PORT"


def load_config(path: Optional[str] = None) -> Cfg:
    """
    Load configuration from YAML file.

    Environment variables (optionally from a .env file) can point at another
    config file and override the camera index and server address.

    Args:
        path: Path to config file. If None, uses $HOLISTIC_OVERLAY_CONFIG or
            config.default.yaml in the project root

    Returns:
        Configuration object with all settings
    """
    load_dotenv()

    if path is None:
        path = os.getenv(ENV_CONFIG_PATH)
    if path is None:
        project_root = Path(__file__).parent.parent
        path = project_root / "config.default.yaml"

    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, 'r') as f:
        data = yaml.safe_load(f)

    cfg = _dict_to_config(data)
    _apply_env_overrides(cfg)
    _validate(cfg)
    return cfg


def _dict_to_config(data: Dict[str, Any]) -> Cfg:
    """Convert dictionary to configuration object."""
    camera_data = data['camera']
    camera = CameraConfig(
        index=int(camera_data['index']),
        width=int(camera_data['width']),
        height=int(camera_data['height']),
        fps=int(camera_data['fps'])
    )

    hol_data = data['holistic']
    holistic = HolisticConfig(
        model_complexity=int(hol_data['model_complexity']),
        smooth_landmarks=bool(hol_data['smooth_landmarks']),
        enable_segmentation=bool(hol_data['enable_segmentation']),
        refine_face_landmarks=bool(hol_data['refine_face_landmarks']),
        min_detection_confidence=float(hol_data['min_detection_confidence']),
        min_tracking_confidence=float(hol_data['min_tracking_confidence'])
    )

    th_data = data['thresholds']
    thresholds = ThresholdsConfig(
        ear_threshold=float(th_data['ear_threshold']),
        mouth_buffer_size=int(th_data['mouth_buffer_size']),
        mouth_avg_threshold=float(th_data['mouth_avg_threshold']),
        mouth_diff_threshold=float(th_data['mouth_diff_threshold']),
        movement_speed_threshold=float(th_data['movement_speed_threshold']),
        thumb_margin=float(th_data['thumb_margin'])
    )

    display_data = data['display']
    display = DisplayConfig(
        window_name=display_data['window_name'],
        width=int(display_data['width']),
        height=int(display_data['height']),
        mirror=bool(display_data['mirror']),
        theme=display_data['theme'],
        pulse_step=float(display_data['pulse_step']),
        jpeg_quality=int(display_data['jpeg_quality'])
    )

    server_data = data['server']
    server = ServerConfig(
        host=server_data['host'],
        port=int(server_data['port'])
    )

    return Cfg(
        camera=camera,
        holistic=holistic,
        thresholds=thresholds,
        display=display,
        server=server
    )


def _apply_env_overrides(cfg: Cfg) -> None:
    """Override selected keys from the environment."""
    camera_index = os.getenv(ENV_CAMERA_INDEX)
    if camera_index:
        cfg.camera.index = int(camera_index)

    host = os.getenv(ENV_HOST)
    if host:
        cfg.server.host = host

    port = os.getenv(ENV_PORT)
    if port:
        cfg.server.port = int(port)


def _validate(cfg: Cfg) -> None:
    if cfg.display.theme not in ("dark", "light"):
        raise ValueError(f"Unknown theme: {cfg.display.theme!r}")
    if cfg.thresholds.mouth_buffer_size < 2:
        raise ValueError("mouth_buffer_size must be at least 2")
    if not 0 <= cfg.holistic.model_complexity <= 2:
        raise ValueError("model_complexity must be 0, 1 or 2")
