"""
Status sink that logs signal changes instead of forwarding them anywhere.
"""
import logging
from typing import Optional

from .types import OverlayStatus, StatusSinkProto

logger = logging.getLogger(__name__)

WATCHED_FIELDS = ("finger_count", "left_eye_open", "right_eye_open", "speaking", "moving")


class LoggingStatusSink:
    """Logs a line whenever one of the HUD signals changes."""

    def __init__(self):
        self.last_status: Optional[OverlayStatus] = None
        self.change_count = 0

    def publish(self, status: OverlayStatus) -> None:
        changed = [
            name for name in WATCHED_FIELDS
            if self.last_status is None or getattr(self.last_status, name) != getattr(status, name)
        ]
        if changed and self.last_status is not None:
            self.change_count += 1
            logger.info(
                "Status changed (%s): fingers=%d left_eye=%s right_eye=%s speaking=%s moving=%s",
                ", ".join(changed), status.finger_count,
                "open" if status.left_eye_open else "closed",
                "open" if status.right_eye_open else "closed",
                status.speaking, status.moving
            )
        self.last_status = status

    def reset_counters(self) -> None:
        """Reset change counter for testing."""
        self.change_count = 0
