"""
Test cases for the overlay web server with a fake landmark tracker.
"""
import base64
import unittest
import sys
from pathlib import Path

import cv2
import numpy as np
from fastapi.testclient import TestClient

# Add project root and tests dir to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))
sys.path.insert(0, str(Path(__file__).parent))

from holistic_overlay.config import load_config
from holistic_overlay.server import create_app, decode_frame
from holistic_overlay.types import HolisticLandmarks
from synthetic_landmarks import make_face, make_hand


class FakeTracker:
    """Returns fixed landmarks instead of running MediaPipe."""

    def __init__(self, landmarks=None):
        self.landmarks = landmarks or HolisticLandmarks()
        self.frames = 0
        self.closed = False

    def process(self, frame_bgr):
        self.frames += 1
        return self.landmarks

    def close(self):
        self.closed = True


def encode_frame(width=320, height=240, data_url=True) -> str:
    frame = np.zeros((height, width, 3), dtype=np.uint8)
    ok, buf = cv2.imencode(".jpg", frame)
    encoded = base64.b64encode(buf.tobytes()).decode("ascii")
    return "data:image/jpeg;base64," + encoded if data_url else encoded


class TestDecodeFrame(unittest.TestCase):
    """Test browser frame decoding."""

    def test_data_url(self):
        frame = decode_frame(encode_frame())
        self.assertEqual(frame.shape, (240, 320, 3))

    def test_bare_base64(self):
        frame = decode_frame(encode_frame(data_url=False))
        self.assertEqual(frame.shape, (240, 320, 3))

    def test_garbage(self):
        self.assertIsNone(decode_frame(""))
        self.assertIsNone(decode_frame("data:image/jpeg;base64,aGVsbG8="))


class TestServer(unittest.TestCase):
    """Test HTTP and WebSocket endpoints."""

    def setUp(self):
        self.cfg = load_config()
        self.trackers = []
        landmarks = HolisticLandmarks(face=make_face(), right_hand=make_hand())

        def factory(cfg):
            tracker = FakeTracker(landmarks)
            self.trackers.append(tracker)
            return tracker

        self.app = create_app(self.cfg, tracker_factory=factory)
        self.client = TestClient(self.app)

    def test_index(self):
        response = self.client.get("/")
        self.assertEqual(response.status_code, 200)
        self.assertIn("Holistic Vision", response.text)

    def test_health(self):
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "healthy", "active_sessions": 0})

    def test_config(self):
        data = self.client.get("/config").json()
        self.assertEqual(data["width"], 640)
        self.assertEqual(data["theme"], "dark")
        self.assertAlmostEqual(data["ear_threshold"], 0.2)

    def test_frame_roundtrip(self):
        with self.client.websocket_connect("/ws/overlay") as ws:
            ws.send_json({"type": "frame", "data": encode_frame()})
            message = ws.receive_json()

        self.assertEqual(message["type"], "overlay")
        status = message["data"]["status"]
        self.assertEqual(status["finger_count"], 5)
        self.assertTrue(status["face_detected"])
        self.assertTrue(status["left_eye_open"])
        self.assertEqual(message["data"]["theme"], "dark")

        image = decode_frame(message["data"]["image"])
        self.assertEqual(image.shape, (480, 640, 3))
        self.assertEqual(self.trackers[0].frames, 1)

    def test_invalid_frame(self):
        with self.client.websocket_connect("/ws/overlay") as ws:
            ws.send_json({"type": "frame", "data": "not an image"})
            message = ws.receive_json()
        self.assertEqual(message["type"], "error")
        self.assertEqual(message["data"]["message"], "Invalid frame")

    def test_theme_messages(self):
        with self.client.websocket_connect("/ws/overlay") as ws:
            ws.send_json({"type": "toggle_theme"})
            self.assertEqual(ws.receive_json()["data"]["theme"], "light")

            ws.send_json({"type": "theme", "theme": "dark"})
            self.assertEqual(ws.receive_json()["data"]["theme"], "dark")

            ws.send_json({"type": "theme", "theme": "neon"})
            self.assertEqual(ws.receive_json()["type"], "error")

    def test_reset_and_unknown(self):
        with self.client.websocket_connect("/ws/overlay") as ws:
            ws.send_json({"type": "reset"})
            self.assertEqual(ws.receive_json(), {"type": "reset", "data": {"ok": True}})

            ws.send_json({"type": "wave"})
            message = ws.receive_json()
            self.assertEqual(message["type"], "error")
            self.assertIn("wave", message["data"]["message"])

            ws.send_text("{not json")
            self.assertEqual(ws.receive_json()["data"]["message"], "Invalid JSON")

    def test_non_object_message_keeps_session(self):
        """A JSON array gets an error reply and the connection stays usable."""
        with self.client.websocket_connect("/ws/overlay") as ws:
            ws.send_text("[1, 2]")
            message = ws.receive_json()
            self.assertEqual(message, {"type": "error", "data": {"message": "Invalid message"}})

            ws.send_json({"type": "toggle_theme"})
            self.assertEqual(ws.receive_json()["data"]["theme"], "light")

    def test_non_string_theme_keeps_session(self):
        with self.client.websocket_connect("/ws/overlay") as ws:
            ws.send_json({"type": "theme", "theme": ["dark"]})
            self.assertEqual(ws.receive_json()["type"], "error")

            ws.send_json({"type": "frame", "data": 42})
            self.assertEqual(ws.receive_json()["data"]["message"], "Invalid frame")

            ws.send_json({"type": "reset"})
            self.assertEqual(ws.receive_json()["type"], "reset")

    def test_session_cleanup_on_disconnect(self):
        with self.client.websocket_connect("/ws/overlay") as ws:
            ws.send_json({"type": "reset"})
            ws.receive_json()
            self.assertEqual(self.client.get("/health").json()["active_sessions"], 1)
            self.assertFalse(self.trackers[0].closed)

        self.assertTrue(self.trackers[0].closed)
        self.assertEqual(self.client.get("/health").json()["active_sessions"], 0)

    def test_sessions_are_independent(self):
        with self.client.websocket_connect("/ws/overlay") as first:
            with self.client.websocket_connect("/ws/overlay") as second:
                first.send_json({"type": "toggle_theme"})
                self.assertEqual(first.receive_json()["data"]["theme"], "light")
                second.send_json({"type": "frame", "data": encode_frame()})
                self.assertEqual(second.receive_json()["data"]["theme"], "dark")
        self.assertEqual(len(self.trackers), 2)


if __name__ == '__main__':
    unittest.main()
