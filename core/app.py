"""
FaceDetectorApp: the single controller wiring loader, camera, loop and state.

Both front-ends (the FastAPI routes and the local OpenCV window) drive the
detector only through this class.
"""
from __future__ import annotations

import logging
import threading
from typing import Optional

import numpy as np

from core.camera import CaptureController
from core.config import Settings
from core.errors import CameraError, StateError
from core.loader import ModelLoader
from core.loop import DetectionLoop
from core.models import AppState, AppStatus, DetectionSettings
from core.snapshot import capture_snapshot, save_snapshot
from core.state import MODEL_LOAD_ERROR, AppStateMachine
from core.visual import draw_detections, draw_status, placeholder_frame

logger = logging.getLogger(__name__)


class FaceDetectorApp:
    def __init__(self, settings: Settings,
                 camera: Optional[CaptureController] = None,
                 state: Optional[AppStateMachine] = None,
                 loader: Optional[ModelLoader] = None,
                 loop: Optional[DetectionLoop] = None):
        self.s = settings
        self.state = state or AppStateMachine(confidence=settings.CONFIDENCE_THRESHOLD)
        self.camera = camera or CaptureController(settings)
        self.loader = loader or ModelLoader(settings, self.state)
        self.loop = loop or DetectionLoop(settings, self.state, self.camera.latest)
        # camera, loop and state change together; toggle re-enters start/stop
        self._lock = threading.RLock()

    # ---- startup ----
    def start(self, background: bool = True) -> None:
        """Kick off model loading (one-shot)."""
        if background:
            self.loader.load_async()
        else:
            self.loader.load()

    # ---- camera ----
    def start_camera(self) -> AppStatus:
        with self._lock:
            if not self.state.models_ready:
                raise StateError("models are not ready")
            if self.state.camera_on:
                return self.status()
            try:
                self.camera.open()
            except CameraError as e:
                logger.exception("[app] camera open failed")
                self.state.report_error(str(e))
                raise
            self.state.camera_started()
            self.loop.start()
            return self.status()

    def stop_camera(self) -> AppStatus:
        with self._lock:
            self.loop.stop()
            self.camera.close()
            self.state.camera_stopped()
            return self.status()

    def toggle_camera(self) -> AppStatus:
        with self._lock:
            if self.state.camera_on:
                return self.stop_camera()
            return self.start_camera()

    def reset(self) -> AppStatus:
        with self._lock:
            self.loop.stop()
            self.camera.close()
            self.state.reset()
            return self.status()

    # ---- snapshot ----
    def capture(self) -> Optional[bytes]:
        """Snapshot the current frame; no-op (None) without a live frame."""
        if not self.state.camera_on:
            return None
        frame = self.camera.latest()
        if frame is None:
            return None
        data = capture_snapshot(frame, self.s.JPEG_QUALITY)
        if not self.state.set_snapshot(data):
            return None
        logger.debug(f"[app] snapshot captured bytes={len(data)}")
        return data

    def download(self, directory: Optional[str] = None) -> Optional[str]:
        data = self.state.snapshot
        if data is None:
            return None
        path = save_snapshot(data, directory or self.s.OUTPUT_DIR, self.s.SNAPSHOT_FILENAME)
        logger.info(f"[app] snapshot saved to {path}")
        return path

    # ---- settings ----
    def update_settings(self, confidence: Optional[float] = None,
                        show_settings: Optional[bool] = None) -> DetectionSettings:
        return self.state.update_settings(confidence=confidence, show_settings=show_settings)

    def toggle_settings(self) -> DetectionSettings:
        return self.state.toggle_settings()

    # ---- views ----
    def status(self) -> AppStatus:
        return self.state.status()

    def overlay_frame(self) -> np.ndarray:
        """Latest camera frame with the current detections drawn over it."""
        st = self.state.status()
        frame = self.camera.latest() if st.camera_on else None
        if frame is None:
            if st.error:
                text = st.error
            elif st.state == AppState.ERROR:
                text = MODEL_LOAD_ERROR
            elif not st.models_ready:
                text = "Loading AI models..."
            elif st.camera_on:
                text = "Waiting for camera..."
            else:
                text = "Start the camera to begin face detection"
            return placeholder_frame(self.s.CAPTURE_WIDTH // 2, self.s.CAPTURE_HEIGHT // 2, text)

        out = draw_detections(frame, st.detections.faces)
        if st.processing:
            draw_status(out, "Processing...", (0, 200, 255))
        return out

    def shutdown(self) -> None:
        with self._lock:
            self.loop.stop()
            self.camera.close()
