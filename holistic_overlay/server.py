"""
FastAPI server for the browser overlay.

The browser captures the webcam, sends JPEG frames over a WebSocket and draws
the annotated frames it gets back together with the status chips.
"""
import base64
import json
import logging
import time
from pathlib import Path
from typing import Callable, Dict, Optional

import cv2
import numpy as np
from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
from pydantic import BaseModel

from .config import Cfg, load_config
from .landmarks import HolisticTracker
from .overlay import OverlayRenderer
from .signals import SignalProcessor

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).parent / "static"

TrackerFactory = Callable[[Cfg], HolisticTracker]


class HealthResponse(BaseModel):
    status: str
    active_sessions: int


class ConfigResponse(BaseModel):
    width: int
    height: int
    mirror: bool
    theme: str
    ear_threshold: float
    mouth_avg_threshold: float
    mouth_diff_threshold: float
    movement_speed_threshold: float


def default_tracker_factory(cfg: Cfg) -> HolisticTracker:
    return HolisticTracker.from_config(cfg.holistic)


def decode_frame(frame_data: str) -> Optional[np.ndarray]:
    """Decode a data URL or bare base64 JPEG/PNG into a BGR frame."""
    if not isinstance(frame_data, str):
        return None
    try:
        img_bytes = base64.b64decode(frame_data.split(',')[1] if ',' in frame_data else frame_data)
    except (ValueError, TypeError):
        return None
    nparr = np.frombuffer(img_bytes, np.uint8)
    if nparr.size == 0:
        return None
    return cv2.imdecode(nparr, cv2.IMREAD_COLOR)


class OverlaySession:
    """Per-connection tracker, signal state and renderer."""

    def __init__(self, session_id: str, cfg: Cfg, tracker_factory: TrackerFactory):
        self.session_id = session_id
        self.cfg = cfg
        self.tracker = tracker_factory(cfg)
        self.processor = SignalProcessor(cfg)
        self.renderer = OverlayRenderer(cfg)
        self.frame_count = 0
        self.last_frame_time: Optional[float] = None

    def process_frame(self, frame_data: str) -> Optional[dict]:
        """
        Run detection and drawing on one browser frame.

        Returns:
            Payload with the annotated JPEG as a data URL and the status, or
            None if the frame could not be decoded
        """
        frame = decode_frame(frame_data)
        if frame is None:
            return None

        t_now = time.time()
        fps = 0.0
        if self.last_frame_time is not None and t_now > self.last_frame_time:
            fps = 1.0 / (t_now - self.last_frame_time)
        self.last_frame_time = t_now
        self.frame_count += 1

        landmarks = self.tracker.process(frame)
        status = self.processor.process_frame(landmarks, t_now)
        annotated = self.renderer.render(frame, landmarks, status)
        jpeg = self.renderer.encode_jpeg(annotated)

        return {
            'image': "data:image/jpeg;base64," + base64.b64encode(jpeg).decode("ascii"),
            'status': status.to_dict(),
            'theme': self.renderer.theme,
            'fps': round(fps, 1),
            'frame': self.frame_count
        }

    def reset(self) -> None:
        self.processor.reset()
        self.renderer.pulse = 0.0

    def cleanup(self) -> None:
        self.tracker.close()


def create_app(cfg: Optional[Cfg] = None, tracker_factory: Optional[TrackerFactory] = None) -> FastAPI:
    """Build the FastAPI application."""
    cfg = cfg or load_config()
    tracker_factory = tracker_factory or default_tracker_factory

    app = FastAPI(title="Holistic Overlay")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    active_sessions: Dict[str, OverlaySession] = {}
    app.state.cfg = cfg
    app.state.active_sessions = active_sessions

    @app.get("/", response_class=HTMLResponse)
    async def root():
        index_path = STATIC_DIR / "index.html"
        try:
            return HTMLResponse(content=index_path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return HTMLResponse(content="<h1>Error: index.html not found</h1>", status_code=404)

    @app.get("/health", response_model=HealthResponse)
    async def health():
        return HealthResponse(status="healthy", active_sessions=len(active_sessions))

    @app.get("/config", response_model=ConfigResponse)
    async def config():
        return ConfigResponse(
            width=cfg.display.width,
            height=cfg.display.height,
            mirror=cfg.display.mirror,
            theme=cfg.display.theme,
            ear_threshold=cfg.thresholds.ear_threshold,
            mouth_avg_threshold=cfg.thresholds.mouth_avg_threshold,
            mouth_diff_threshold=cfg.thresholds.mouth_diff_threshold,
            movement_speed_threshold=cfg.thresholds.movement_speed_threshold
        )

    @app.websocket("/ws/overlay")
    async def websocket_overlay_endpoint(websocket: WebSocket):
        """WebSocket endpoint for real-time frame annotation."""
        await websocket.accept()

        session_id = f"{id(websocket):x}"
        session = OverlaySession(session_id, cfg, tracker_factory)
        active_sessions[session_id] = session
        logger.info(f"🔌 Client connected: {session_id} ({len(active_sessions)} active)")

        try:
            while True:
                data = await websocket.receive_text()
                try:
                    message = json.loads(data)
                except json.JSONDecodeError:
                    await _send_error(websocket, "Invalid JSON")
                    continue
                if not isinstance(message, dict):
                    await _send_error(websocket, "Invalid message")
                    continue

                msg_type = message.get('type')

                if msg_type == 'frame':
                    result = session.process_frame(message.get('data') or "")
                    if result is None:
                        await _send_error(websocket, "Invalid frame")
                        continue
                    await websocket.send_json({'type': 'overlay', 'data': result})

                elif msg_type == 'theme':
                    try:
                        theme = session.renderer.set_theme(message.get('theme'))
                    except ValueError as e:
                        await _send_error(websocket, str(e))
                        continue
                    await websocket.send_json({'type': 'theme', 'data': {'theme': theme}})

                elif msg_type == 'toggle_theme':
                    theme = session.renderer.toggle_theme()
                    await websocket.send_json({'type': 'theme', 'data': {'theme': theme}})

                elif msg_type == 'reset':
                    session.reset()
                    await websocket.send_json({'type': 'reset', 'data': {'ok': True}})

                else:
                    logger.warning(f"Unknown message type: {msg_type}")
                    await _send_error(websocket, f"Unknown message type: {msg_type}")

        except WebSocketDisconnect:
            logger.info(f"🔌 Client disconnected: {session_id}")
        except Exception as e:
            logger.exception(f"WebSocket error: {e}")
            await websocket.close(code=1011)
        finally:
            active_sessions.pop(session_id, None)
            session.cleanup()

    return app


async def _send_error(websocket: WebSocket, message: str) -> None:
    await websocket.send_json({'type': 'error', 'data': {'message': message}})
