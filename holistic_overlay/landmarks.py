"""
Holistic landmark detection and geometric heuristics using MediaPipe.
"""
import math
import cv2
import mediapipe as mp
import numpy as np
from typing import Optional, List, Sequence

from .types import HolisticLandmarks, Point


# Face mesh indices, eye order is [p1, p2, p3, p4, p5, p6] for the aspect ratio
RIGHT_EYE = [33, 160, 158, 133, 153, 144]
LEFT_EYE = [362, 385, 387, 263, 373, 380]

# Upper and lower inner lip
MOUTH_UP = 13
MOUTH_DOWN = 14

# Cheek to cheek, used as the face width reference
FACE_LEFT = 234
FACE_RIGHT = 454

MOUTH_RING = [61, 146, 91, 181, 84, 17, 314, 405, 321, 375, 291, 308]

FACE_MESH_POINTS = 468
HAND_POINTS = 21

# Thumb, index, middle, ring, pinky
FINGER_TIPS = [4, 8, 12, 16, 20]
FINGER_PIPS = [2, 6, 10, 14, 18]
THUMB_IP = 3
WRIST = 0

HAND_CONNECTIONS = [
    (0, 1), (1, 2), (2, 3), (3, 4),
    (0, 5), (5, 6), (6, 7), (7, 8),
    (0, 9), (9, 10), (10, 11), (11, 12),
    (0, 13), (13, 14), (14, 15), (15, 16),
    (0, 17), (17, 18), (18, 19), (19, 20),
]

POSE_NOSE = 0
FACE_NOSE = 1

DEFAULT_OPEN_EAR = 0.3
EPSILON = 1e-6


class HolisticTracker:
    """Face, pose and hand landmark tracker using MediaPipe Holistic."""

    def __init__(self, model_complexity: int = 1, smooth_landmarks: bool = True,
                 enable_segmentation: bool = False, refine_face_landmarks: bool = True,
                 min_detection_conf: float = 0.6, min_tracking_conf: float = 0.6):
        """
        Initialize the holistic tracker.

        Args:
            model_complexity: Pose model complexity (0, 1 or 2)
            smooth_landmarks: Filter landmarks across frames
            enable_segmentation: Also produce a segmentation mask
            refine_face_landmarks: Refine eye and lip landmarks
            min_detection_conf: Minimum confidence for person detection
            min_tracking_conf: Minimum confidence for landmark tracking
        """
        self.mp_holistic = mp.solutions.holistic
        self.holistic = self.mp_holistic.Holistic(
            static_image_mode=False,
            model_complexity=model_complexity,
            smooth_landmarks=smooth_landmarks,
            enable_segmentation=enable_segmentation,
            refine_face_landmarks=refine_face_landmarks,
            min_detection_confidence=min_detection_conf,
            min_tracking_confidence=min_tracking_conf
        )

    @classmethod
    def from_config(cls, holistic_cfg) -> "HolisticTracker":
        return cls(
            model_complexity=holistic_cfg.model_complexity,
            smooth_landmarks=holistic_cfg.smooth_landmarks,
            enable_segmentation=holistic_cfg.enable_segmentation,
            refine_face_landmarks=holistic_cfg.refine_face_landmarks,
            min_detection_conf=holistic_cfg.min_detection_confidence,
            min_tracking_conf=holistic_cfg.min_tracking_confidence
        )

    def process(self, frame_bgr: np.ndarray) -> HolisticLandmarks:
        """
        Process a frame and return the detected landmarks.

        Args:
            frame_bgr: Input frame in BGR format

        Returns:
            HolisticLandmarks with (x, y) coordinates in [0..1] range
        """
        frame_rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
        frame_rgb.flags.writeable = False
        results = self.holistic.process(frame_rgb)

        return HolisticLandmarks(
            face=_to_points(results.face_landmarks),
            pose=_to_points(results.pose_landmarks),
            left_hand=_to_points(results.left_hand_landmarks),
            right_hand=_to_points(results.right_hand_landmarks)
        )

    def close(self) -> None:
        self.holistic.close()


def _to_points(landmark_list) -> Optional[List[Point]]:
    if landmark_list is None:
        return None
    return [(lm.x, lm.y) for lm in landmark_list.landmark]


def distance(a: Point, b: Point) -> float:
    """Euclidean distance in normalized coordinates."""
    return math.hypot(a[0] - b[0], a[1] - b[1])


def eye_aspect_ratio(face: Sequence[Point], indices: Sequence[int]) -> float:
    """
    Eye aspect ratio from six eye landmarks.

    Args:
        face: Face mesh landmarks
        indices: [p1, p2, p3, p4, p5, p6] where p1/p4 are the eye corners

    Returns:
        (|p2-p6| + |p3-p5|) / (2 * |p1-p4|), or the default open value when
        the landmarks are unavailable
    """
    try:
        p1, p2, p3, p4, p5, p6 = (face[i] for i in indices)
    except (IndexError, TypeError, ValueError):
        return DEFAULT_OPEN_EAR

    vertical_a = distance(p2, p6)
    vertical_b = distance(p3, p5)
    horizontal = distance(p1, p4)
    return (vertical_a + vertical_b) / (2.0 * max(EPSILON, horizontal))


def mouth_openness(face: Sequence[Point]) -> float:
    """Inner lip gap normalized by face width."""
    gap = distance(face[MOUTH_UP], face[MOUTH_DOWN])
    face_width = distance(face[FACE_LEFT], face[FACE_RIGHT])
    return gap / max(EPSILON, face_width)


def has_face(face: Optional[Sequence[Point]]) -> bool:
    return face is not None and len(face) >= FACE_MESH_POINTS


def has_hand(hand: Optional[Sequence[Point]]) -> bool:
    return hand is not None and len(hand) == HAND_POINTS


def thumb_extended(hand: Sequence[Point], thumb_margin: float = 0.03) -> bool:
    """
    Check if the thumb points away from the palm.

    The tip must be more than thumb_margin away from the wrist horizontally,
    and the tip and IP joint must be on the same side of the wrist.
    """
    tip_x = hand[FINGER_TIPS[0]][0]
    ip_x = hand[THUMB_IP][0]
    wrist_x = hand[WRIST][0]

    if abs(tip_x - wrist_x) <= thumb_margin:
        return False
    return (tip_x < wrist_x and ip_x < wrist_x) or (tip_x > wrist_x and ip_x > wrist_x)


def finger_states(hand: Sequence[Point], thumb_margin: float = 0.03) -> List[bool]:
    """
    Extension state of each finger.

    Args:
        hand: List of 21 hand landmarks
        thumb_margin: Minimum horizontal thumb tip offset from the wrist

    Returns:
        [thumb, index, middle, ring, pinky] booleans
    """
    states = [thumb_extended(hand, thumb_margin)]
    for tip_idx, pip_idx in zip(FINGER_TIPS[1:], FINGER_PIPS[1:]):
        states.append(hand[tip_idx][1] < hand[pip_idx][1])  # inverted y-axis
    return states


def count_fingers(hand: Optional[Sequence[Point]], thumb_margin: float = 0.03) -> int:
    """
    Count the number of extended fingers.

    Returns:
        Number of extended fingers (0-5), 0 unless exactly 21 landmarks are given
    """
    if not has_hand(hand):
        return 0
    return sum(finger_states(hand, thumb_margin))


def fingertip_up(hand: Sequence[Point]) -> List[bool]:
    """Tip above PIP joint for all five fingers, used for highlighting."""
    return [hand[tip][1] < hand[pip][1] for tip, pip in zip(FINGER_TIPS, FINGER_PIPS)]


def select_hand(landmarks: HolisticLandmarks) -> Optional[List[Point]]:
    """Pick the hand to count, preferring the right hand."""
    if landmarks.right_hand:
        return landmarks.right_hand
    if landmarks.left_hand:
        return landmarks.left_hand
    return None


def nose_point(landmarks: HolisticLandmarks) -> Optional[Point]:
    """Pose nose if available, otherwise the face mesh nose tip."""
    if landmarks.pose:
        return landmarks.pose[POSE_NOSE]
    if landmarks.face and len(landmarks.face) > FACE_NOSE:
        return landmarks.face[FACE_NOSE]
    return None
