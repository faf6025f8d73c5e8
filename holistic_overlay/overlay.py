"""
Animated overlay and HUD drawing on webcam frames.
"""
import math
import cv2
import numpy as np
from typing import List, Optional, Sequence, Tuple

from .types import HolisticLandmarks, OverlayStatus, Point, Theme
from .config import Cfg
from .landmarks import (
    FINGER_TIPS,
    HAND_CONNECTIONS,
    LEFT_EYE,
    MOUTH_DOWN,
    MOUTH_RING,
    MOUTH_UP,
    RIGHT_EYE,
    fingertip_up,
    has_face,
    has_hand,
    select_hand,
)

# BGR colors
EYE_OPEN_COLOR = (120, 220, 0)
EYE_CLOSED_COLOR = (60, 60, 220)
MOUTH_SPEAKING_COLOR = (140, 255, 0)
MOUTH_IDLE_COLOR = (0, 200, 255)
MOUTH_RING_COLOR = (150, 255, 0)
EYE_RING_COLOR = (60, 60, 255)
HAND_SKELETON_COLOR = (120, 200, 0)
FINGERTIP_UP_COLOR = (140, 255, 0)
FINGERTIP_DOWN_COLOR = (200, 200, 200)

HUD_GREEN = (95, 191, 15)
HUD_RED = (80, 83, 239)
HUD_GREY = (136, 136, 136)

HUD_WIDTH = 280
HUD_HEIGHT = 110
HUD_PAD = 12
HUD_RADIUS = 10

THEMES = {
    "dark": {"panel": (0, 0, 0), "alpha": 0.75, "text": (255, 255, 255)},
    "light": {"panel": (255, 255, 255), "alpha": 0.95, "text": (17, 17, 17)},
}


class OverlayRenderer:
    """Draws landmarks, animations and the status HUD onto frames."""

    def __init__(self, cfg: Cfg):
        self.width = cfg.display.width
        self.height = cfg.display.height
        self.mirror = cfg.display.mirror
        self.pulse_step = cfg.display.pulse_step
        self.jpeg_quality = cfg.display.jpeg_quality
        self.theme: Theme = cfg.display.theme
        self.pulse = 0.0

    def set_theme(self, theme: str) -> str:
        if not isinstance(theme, str) or theme not in THEMES:
            raise ValueError(f"Unknown theme: {theme!r}")
        self.theme = theme
        return self.theme

    def toggle_theme(self) -> str:
        return self.set_theme("light" if self.theme == "dark" else "dark")

    def render(self, frame_bgr: np.ndarray, landmarks: HolisticLandmarks,
               status: OverlayStatus) -> np.ndarray:
        """
        Draw the overlay for one frame.

        Args:
            frame_bgr: Camera frame in BGR format
            landmarks: Landmarks detected on the unmirrored frame
            status: Signals computed for the frame

        Returns:
            New frame at display size with overlay drawn
        """
        self.pulse += self.pulse_step

        frame = cv2.resize(frame_bgr, (self.width, self.height))
        if self.mirror:
            frame = cv2.flip(frame, 1)

        if has_face(landmarks.face):
            self._draw_face(frame, landmarks.face, status)

        hand = select_hand(landmarks)
        if has_hand(hand):
            self._draw_hand(frame, hand)

        self._draw_hud(frame, status)
        return frame

    def encode_jpeg(self, frame: np.ndarray, quality: Optional[int] = None) -> bytes:
        ok, buf = cv2.imencode(".jpg", frame, [cv2.IMWRITE_JPEG_QUALITY, quality or self.jpeg_quality])
        if not ok:
            raise RuntimeError("Failed to encode frame as JPEG")
        return buf.tobytes()

    @property
    def pulse_scale(self) -> float:
        return 1 + math.sin(self.pulse) * 0.35

    def to_px(self, point: Point) -> Tuple[int, int]:
        x = (1 - point[0]) if self.mirror else point[0]
        return int(x * self.width), int(point[1] * self.height)

    def _draw_face(self, frame: np.ndarray, face: Sequence[Point], status: OverlayStatus) -> None:
        radius_scale = self.pulse_scale

        right_color = EYE_OPEN_COLOR if status.right_eye_open else EYE_CLOSED_COLOR
        left_color = EYE_OPEN_COLOR if status.left_eye_open else EYE_CLOSED_COLOR
        for idx in RIGHT_EYE:
            self._dot(frame, face[idx], right_color, 3 * radius_scale)
        for idx in LEFT_EYE:
            self._dot(frame, face[idx], left_color, 3 * radius_scale)

        mouth_color = MOUTH_SPEAKING_COLOR if status.speaking else MOUTH_IDLE_COLOR
        self._dot(frame, face[MOUTH_UP], mouth_color, 4 * radius_scale)
        self._dot(frame, face[MOUTH_DOWN], mouth_color, 4 * radius_scale)

        if status.speaking:
            ring = self._polygon(face, MOUTH_RING)
            glow = frame.copy()
            cv2.polylines(glow, [ring], True, MOUTH_RING_COLOR, max(1, int(18 * radius_scale)), cv2.LINE_AA)
            cv2.addWeighted(glow, 0.15, frame, 0.85, 0, frame)
            cv2.polylines(frame, [ring], True, MOUTH_RING_COLOR, 2, cv2.LINE_AA)

        if status.eyes_closed:
            cv2.polylines(frame, [self._polygon(face, RIGHT_EYE)], True, EYE_RING_COLOR, 3, cv2.LINE_AA)
            cv2.polylines(frame, [self._polygon(face, LEFT_EYE)], True, EYE_RING_COLOR, 3, cv2.LINE_AA)

    def _draw_hand(self, frame: np.ndarray, hand: Sequence[Point]) -> None:
        for a, b in HAND_CONNECTIONS:
            cv2.line(frame, self.to_px(hand[a]), self.to_px(hand[b]), HAND_SKELETON_COLOR, 2, cv2.LINE_AA)

        tip_radius = 7 * (1 + math.sin(self.pulse) / 6)
        for tip_idx, is_up in zip(FINGER_TIPS, fingertip_up(hand)):
            if is_up:
                self._dot(frame, hand[tip_idx], FINGERTIP_UP_COLOR, tip_radius)
            else:
                self._dot(frame, hand[tip_idx], FINGERTIP_DOWN_COLOR, 5)

    def _draw_hud(self, frame: np.ndarray, status: OverlayStatus) -> None:
        theme = THEMES[self.theme]
        x = frame.shape[1] - HUD_WIDTH - HUD_PAD
        y = HUD_PAD

        panel = frame.copy()
        _rounded_rect(panel, x, y, HUD_WIDTH, HUD_HEIGHT, HUD_RADIUS, theme["panel"])
        cv2.addWeighted(panel, theme["alpha"], frame, 1 - theme["alpha"], 0, frame)

        for text, color, pos in hud_lines(status, theme["text"]):
            cv2.putText(frame, text, (x + pos[0], y + pos[1]),
                        cv2.FONT_HERSHEY_SIMPLEX, 0.45, color, 1, cv2.LINE_AA)

    def _dot(self, frame: np.ndarray, point: Point, color, radius: float) -> None:
        cv2.circle(frame, self.to_px(point), max(1, int(round(radius))), color, -1, cv2.LINE_AA)

    def _polygon(self, points: Sequence[Point], indices: Sequence[int]) -> np.ndarray:
        return np.array([self.to_px(points[i]) for i in indices], dtype=np.int32)


def hud_lines(status: OverlayStatus, text_color) -> List[Tuple[str, tuple, Tuple[int, int]]]:
    """HUD text, color and offset inside the panel for each line."""
    return [
        (f"Fingers: {status.finger_count}", text_color, (14, 28)),
        (f"Left eye: {'Open' if status.left_eye_open else 'Closed'}",
         HUD_GREEN if status.left_eye_open else HUD_RED, (14, 50)),
        (f"Right eye: {'Open' if status.right_eye_open else 'Closed'}",
         HUD_GREEN if status.right_eye_open else HUD_RED, (14, 72)),
        (f"Speaking: {'Yes' if status.speaking else 'No'}",
         HUD_GREEN if status.speaking else HUD_GREY, (140, 28)),
        (f"Moving: {'Yes' if status.moving else 'No'}",
         HUD_GREEN if status.moving else HUD_GREY, (140, 50)),
    ]


def _rounded_rect(img: np.ndarray, x: int, y: int, w: int, h: int, r: int, color) -> None:
    cv2.rectangle(img, (x + r, y), (x + w - r, y + h), color, -1)
    cv2.rectangle(img, (x, y + r), (x + w, y + h - r), color, -1)
    for cx, cy in ((x + r, y + r), (x + w - r, y + r), (x + r, y + h - r), (x + w - r, y + h - r)):
        cv2.circle(img, (cx, cy), r, color, -1)
