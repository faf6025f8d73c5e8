"""
Type definitions for the holistic webcam overlay.
"""
from dataclasses import dataclass, asdict
from typing import List, Literal, Optional, Protocol, Tuple, runtime_checkable


Point = Tuple[float, float]
Theme = Literal["dark", "light"]


@dataclass
class HolisticLandmarks:
    """Normalized (x, y) landmarks for one frame. Missing parts are None."""
    face: Optional[List[Point]] = None
    pose: Optional[List[Point]] = None
    left_hand: Optional[List[Point]] = None
    right_hand: Optional[List[Point]] = None


@dataclass
class MouthSample:
    """Mouth openness measured at a specific time."""
    timestamp: float
    openness: float


@dataclass
class OverlayStatus:
    """Per-frame heuristic signals shown in the HUD."""
    finger_count: int = 0
    left_eye_open: bool = True
    right_eye_open: bool = True
    speaking: bool = False
    moving: bool = False
    face_detected: bool = False
    hand_detected: bool = False
    left_ear: float = 0.0
    right_ear: float = 0.0
    mouth_openness: float = 0.0

    @property
    def eyes_closed(self) -> bool:
        return not self.left_eye_open or not self.right_eye_open

    def to_dict(self) -> dict:
        return asdict(self)


@runtime_checkable
class StatusSinkProto(Protocol):
    """Receives the status computed for each frame."""

    def publish(self, status: OverlayStatus) -> None:
        ...
