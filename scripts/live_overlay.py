
"""Run the detector in a local OpenCV window.

Usage:
    uvicorn api.main:app --reload  # (separate, for the HTTP UI)
    python scripts/live_overlay.py  # (to see camera overlay window)

Keys:
    space  start/stop camera
    c      capture snapshot
    s      save snapshot to OUTPUT_DIR
    r      reset
    + / -  confidence threshold up / down
    q      quit
"""
from __future__ import annotations
import logging
import cv2

from core.app import FaceDetectorApp
from core.config import Settings
from core.errors import CameraError, StateError

logger = logging.getLogger(__name__)

WINDOW = "Face Detector (q to quit)"


def handle_key(app: FaceDetectorApp, key: int) -> bool:
    """Apply one keypress; returns False when the window should close."""
    if key == ord("q"):
        return False
    try:
        if key == ord(" "):
            app.toggle_camera()
        elif key == ord("c"):
            app.capture()
        elif key == ord("s"):
            path = app.download()
            if path:
                print(f"✅ Snapshot written to {path}")
        elif key == ord("r"):
            app.reset()
        elif key in (ord("+"), ord("=")):
            app.update_settings(confidence=min(0.9, app.state.settings.confidence + 0.1))
        elif key == ord("-"):
            app.update_settings(confidence=max(0.1, app.state.settings.confidence - 0.1))
    except (StateError, CameraError) as e:
        logger.warning(f"[overlay] {e}")
    return True


def run_live_overlay(settings: Settings, app: FaceDetectorApp | None = None) -> None:
    app = app or FaceDetectorApp(settings)
    app.start()
    try:
        while True:
            cv2.imshow(WINDOW, app.overlay_frame())
            key = cv2.waitKey(max(1, int(settings.DETECT_INTERVAL * 1000) // 2)) & 0xFF
            if key != 0xFF and not handle_key(app, key):
                break
    finally:
        app.shutdown()
        cv2.destroyAllWindows()


if __name__ == '__main__':
    s = Settings()
    logging.basicConfig(level=s.LOG_LEVEL)
    run_live_overlay(s)
