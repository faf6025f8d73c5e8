"""
Main application for the holistic webcam overlay.
"""
import argparse
import cv2
import logging
import sys
import time
from typing import Optional

from .config import load_config
from .landmarks import HolisticTracker
from .overlay import OverlayRenderer
from .signals import SignalProcessor
from .status_sink import LoggingStatusSink
from .types import StatusSinkProto

logger = logging.getLogger(__name__)


class OverlayApp:
    """Desktop application that shows the overlay in an OpenCV window."""

    def __init__(self, config_path: Optional[str] = None, sink: Optional[StatusSinkProto] = None):
        """Initialize the application with configuration."""
        self.config = load_config(config_path)
        self.tracker = HolisticTracker.from_config(self.config.holistic)
        self.processor = SignalProcessor(self.config)
        self.renderer = OverlayRenderer(self.config)
        self.sink = sink or LoggingStatusSink()

        # Initialize camera
        self.cap = cv2.VideoCapture(self.config.camera.index)
        self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.config.camera.width)
        self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.config.camera.height)
        self.cap.set(cv2.CAP_PROP_FPS, self.config.camera.fps)

        if not self.cap.isOpened():
            self.tracker.close()
            raise RuntimeError(f"Failed to open camera {self.config.camera.index}")

    def run(self):
        """Run the main application loop."""
        logger.info(f"Starting {self.config.display.window_name}")
        logger.info("Keys: 't' toggle theme, 'r' reset detectors, 'q' quit")

        try:
            while True:
                ret, frame = self.cap.read()
                if not ret:
                    logger.error("Failed to read frame from camera")
                    break

                landmarks = self.tracker.process(frame)
                status = self.processor.process_frame(landmarks, time.time())
                self.sink.publish(status)

                annotated = self.renderer.render(frame, landmarks, status)
                cv2.imshow(self.config.display.window_name, annotated)

                key = cv2.waitKey(1) & 0xFF
                if key == ord('q'):
                    break
                if key == ord('t'):
                    logger.info(f"Theme: {self.renderer.toggle_theme()}")
                elif key == ord('r'):
                    self.processor.reset()
                    logger.info("Detectors reset")
        finally:
            self.close()

    def close(self):
        """Cleanup resources."""
        if self.cap.isOpened():
            self.cap.release()
        self.tracker.close()
        cv2.destroyAllWindows()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Live webcam overlay with finger count, eye, speaking and movement signals"
    )
    parser.add_argument("--config", default=None, help="Path to a YAML config file")
    parser.add_argument("--serve", action="store_true",
                        help="Serve the browser overlay instead of opening a desktop window")
    return parser


def main(argv=None):
    """Entry point for the application."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO)

    config_path = args.config

    if args.serve:
        import uvicorn
        from .server import create_app

        cfg = load_config(config_path)
        logger.info(f"🌐 Serving overlay at http://{cfg.server.host}:{cfg.server.port}")
        uvicorn.run(create_app(cfg), host=cfg.server.host, port=cfg.server.port)
        return

    try:
        app = OverlayApp(config_path=config_path)
    except RuntimeError as e:
        logger.error(f"❌ {e}")
        sys.exit(1)

    try:
        app.run()
    except KeyboardInterrupt:
        logger.info("Application interrupted by user")


if __name__ == "__main__":
    main()
