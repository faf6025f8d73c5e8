"""
Synthetic landmark builders shared by the tests.
"""
from typing import List, Sequence, Tuple

from holistic_overlay.landmarks import (
    FACE_LEFT,
    FACE_RIGHT,
    LEFT_EYE,
    MOUTH_DOWN,
    MOUTH_UP,
    RIGHT_EYE,
)

Point = Tuple[float, float]


def _set_eye(face: List[Point], indices: Sequence[int], cx: float, cy: float, half_open: float) -> None:
    # Eye 0.1 wide, EAR == 20 * half_open
    p1, p2, p3, p4, p5, p6 = indices
    face[p1] = (cx - 0.05, cy)
    face[p4] = (cx + 0.05, cy)
    face[p2] = (cx - 0.02, cy - half_open)
    face[p6] = (cx - 0.02, cy + half_open)
    face[p3] = (cx + 0.02, cy - half_open)
    face[p5] = (cx + 0.02, cy + half_open)


def make_face(left_half_open: float = 0.02, right_half_open: float = 0.02,
              mouth_gap: float = 0.0, n_points: int = 478) -> List[Point]:
    """Face mesh with controllable eye openness and mouth gap (face width 0.4)."""
    face = [(0.5, 0.5)] * n_points
    _set_eye(face, RIGHT_EYE, 0.4, 0.4, right_half_open)
    _set_eye(face, LEFT_EYE, 0.6, 0.4, left_half_open)
    face[FACE_LEFT] = (0.3, 0.5)
    face[FACE_RIGHT] = (0.7, 0.5)
    face[MOUTH_UP] = (0.5, 0.6)
    face[MOUTH_DOWN] = (0.5, 0.6 + mouth_gap)
    return face


def make_hand(fingers_up: Sequence[bool] = (True, True, True, True),
              thumb_out: bool = True) -> List[Point]:
    """
    Hand with the wrist at the bottom center.

    Args:
        fingers_up: Extension of index, middle, ring and pinky
        thumb_out: Thumb pointing left, away from the wrist
    """
    hand = [(0.5, 0.8)] * 21
    hand[0] = (0.5, 0.9)

    if thumb_out:
        hand[2] = (0.42, 0.75)
        hand[3] = (0.4, 0.7)
        hand[4] = (0.35, 0.65)
    else:
        hand[2] = (0.48, 0.75)
        hand[3] = (0.47, 0.8)
        hand[4] = (0.49, 0.8)

    for finger, up in enumerate(fingers_up):
        x = 0.45 + finger * 0.04
        pip = 6 + finger * 4
        tip = 8 + finger * 4
        hand[pip] = (x, 0.6)
        hand[tip] = (x, 0.4 if up else 0.7)
    return hand
