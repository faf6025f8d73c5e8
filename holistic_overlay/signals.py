"""
Per-frame signal detection from holistic landmarks.
"""
from collections import deque
from typing import Deque, Optional

from .types import HolisticLandmarks, MouthSample, OverlayStatus, Point
from .config import Cfg
from .landmarks import (
    LEFT_EYE,
    RIGHT_EYE,
    count_fingers,
    distance,
    eye_aspect_ratio,
    has_face,
    mouth_openness,
    nose_point,
    select_hand,
)


class SpeakingDetector:
    """
    Detects speech from mouth opening over a short window.

    Speaking requires both a mouth that is open on average and a mouth that
    keeps changing between frames, so a held-open mouth does not count.
    """

    def __init__(self, buffer_size: int = 30, avg_threshold: float = 0.03,
                 diff_threshold: float = 0.008):
        self.avg_threshold = avg_threshold
        self.diff_threshold = diff_threshold
        self.buffer: Deque[MouthSample] = deque(maxlen=buffer_size)

    def update(self, openness: float, t_now: float) -> bool:
        """
        Add a mouth openness sample and return whether the user is speaking.

        Args:
            openness: Inner lip gap normalized by face width
            t_now: Current timestamp in seconds

        Returns:
            True if mean openness and mean frame-to-frame change both exceed
            their thresholds
        """
        self.buffer.append(MouthSample(timestamp=t_now, openness=openness))
        return self.mean_openness() > self.avg_threshold and self.mean_change() > self.diff_threshold

    def mean_openness(self) -> float:
        if not self.buffer:
            return 0.0
        return sum(s.openness for s in self.buffer) / len(self.buffer)

    def mean_change(self) -> float:
        if len(self.buffer) < 2:
            return 0.0
        samples = list(self.buffer)
        diffs = [abs(cur.openness - prev.openness) for prev, cur in zip(samples, samples[1:])]
        return sum(diffs) / len(diffs)

    def reset(self) -> None:
        self.buffer.clear()


class MovementDetector:
    """Detects head movement from the nose displacement between frames."""

    def __init__(self, speed_threshold: float = 0.003):
        self.speed_threshold = speed_threshold
        self.last_nose: Optional[Point] = None
        self.moving = False

    def update(self, nose: Optional[Point]) -> bool:
        """
        Process the current nose position.

        Args:
            nose: Normalized nose position, None if not detected

        Returns:
            True if the nose moved more than the threshold since the last
            observation. The first observation keeps the previous state.
        """
        if nose is None:
            # last_nose is kept so movement resumes against it
            self.moving = False
            return self.moving

        if self.last_nose is not None:
            self.moving = distance(nose, self.last_nose) > self.speed_threshold

        self.last_nose = (nose[0], nose[1])
        return self.moving

    def reset(self) -> None:
        self.last_nose = None
        self.moving = False


class SignalProcessor:
    """
    Main signal processor that turns landmarks into an OverlayStatus.
    """

    def __init__(self, cfg: Cfg):
        """Initialize signal processor with configuration."""
        self.cfg = cfg
        th = cfg.thresholds
        self.speaking_detector = SpeakingDetector(
            buffer_size=th.mouth_buffer_size,
            avg_threshold=th.mouth_avg_threshold,
            diff_threshold=th.mouth_diff_threshold
        )
        self.movement_detector = MovementDetector(speed_threshold=th.movement_speed_threshold)

    def process_frame(self, landmarks: HolisticLandmarks, t_now: float) -> OverlayStatus:
        """
        Process a frame and return the detected signals.

        Args:
            landmarks: Holistic landmarks for the frame
            t_now: Current timestamp in seconds

        Returns:
            OverlayStatus for the frame
        """
        th = self.cfg.thresholds
        status = OverlayStatus()

        hand = select_hand(landmarks)
        status.hand_detected = hand is not None
        status.finger_count = count_fingers(hand, th.thumb_margin)

        face = landmarks.face
        if has_face(face):
            status.face_detected = True
            status.right_ear = eye_aspect_ratio(face, RIGHT_EYE)
            status.left_ear = eye_aspect_ratio(face, LEFT_EYE)
            status.right_eye_open = status.right_ear > th.ear_threshold
            status.left_eye_open = status.left_ear > th.ear_threshold

            status.mouth_openness = mouth_openness(face)
            status.speaking = self.speaking_detector.update(status.mouth_openness, t_now)

        status.moving = self.movement_detector.update(nose_point(landmarks))
        return status

    def reset(self) -> None:
        self.speaking_detector.reset()
        self.movement_detector.reset()
