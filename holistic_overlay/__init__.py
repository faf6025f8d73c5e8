"""
Holistic Webcam Overlay

A Python service that reads webcam frames, detects face, pose and hand
landmarks with MediaPipe Holistic, and annotates the feed with finger count,
eye state, speaking and head-movement signals.
"""

__version__ = "0.1.0"

from .types import HolisticLandmarks, MouthSample, OverlayStatus, StatusSinkProto
from .config import load_config, Cfg
from .status_sink import LoggingStatusSink
from .landmarks import (
    HolisticTracker,
    count_fingers,
    eye_aspect_ratio,
    finger_states,
    mouth_openness,
    nose_point,
    select_hand,
)
from .signals import SpeakingDetector, MovementDetector, SignalProcessor
from .overlay import OverlayRenderer

__all__ = [
    "HolisticLandmarks",
    "MouthSample",
    "OverlayStatus",
    "StatusSinkProto",
    "load_config",
    "Cfg",
    "LoggingStatusSink",
    "HolisticTracker",
    "count_fingers",
    "eye_aspect_ratio",
    "finger_states",
    "mouth_openness",
    "nose_point",
    "select_hand",
    "SpeakingDetector",
    "MovementDetector",
    "SignalProcessor",
    "OverlayRenderer",
]
