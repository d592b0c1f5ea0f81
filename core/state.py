"""
Application state machine.

States: IDLE -> LOADING -> READY_CAMERA_OFF <-> READY_CAMERA_ON, and ERROR
(fatal, entered when model loading fails). All mutation goes through one lock
so the detection worker, the camera reader and the request handlers never see
a half-updated state.

Every camera on/off/reset bumps ``generation``. Detection results carry the
generation they were started under; results from an older camera session are
discarded, so a slow inference that finishes after the camera was toggled can
never resurface.
"""
from __future__ import annotations

import logging
import threading
import time
from typing import List, Optional, Tuple

from core.errors import StateError
from core.models import (
    AppState,
    AppStatus,
    DetectionFrame,
    DetectionSettings,
    FaceDetection,
)

logger = logging.getLogger(__name__)

MODEL_LOAD_ERROR = "Failed to load AI models. Please restart the application."


class AppStateMachine:
    """Thread-safe holder of UI state for the detector."""

    def __init__(self, confidence: float = 0.5):
        self._lock = threading.Lock()
        self._state = AppState.IDLE
        self._error: Optional[str] = None
        self._detections = DetectionFrame()
        self._snapshot: Optional[bytes] = None
        self._settings = DetectionSettings(confidence=confidence)
        self._processing = False
        self._generation = 0
        self._dropped_ticks = 0

    # ---- read side ----
    @property
    def state(self) -> AppState:
        return self._state

    @property
    def models_ready(self) -> bool:
        return self._state in (AppState.READY_CAMERA_OFF, AppState.READY_CAMERA_ON)

    @property
    def camera_on(self) -> bool:
        return self._state == AppState.READY_CAMERA_ON

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def detections(self) -> DetectionFrame:
        return self._detections

    @property
    def snapshot(self) -> Optional[bytes]:
        return self._snapshot

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def settings(self) -> DetectionSettings:
        return self._settings

    def status(self) -> AppStatus:
        with self._lock:
            return AppStatus(
                state=self._state,
                models_ready=self.models_ready,
                camera_on=self.camera_on,
                processing=self._processing,
                error=self._error,
                detections=self._detections,
                has_snapshot=self._snapshot is not None,
                settings=self._settings,
                dropped_ticks=self._dropped_ticks,
            )

    # ---- model loading ----
    def begin_loading(self) -> None:
        with self._lock:
            if self._state != AppState.IDLE:
                raise StateError(f"cannot load models from state {self._state.value}")
            self._state = AppState.LOADING

    def models_loaded(self) -> None:
        with self._lock:
            if self._state != AppState.LOADING:
                raise StateError(f"models_loaded in state {self._state.value}")
            self._state = AppState.READY_CAMERA_OFF
        logger.info("[state] models ready")

    def models_failed(self, message: str = MODEL_LOAD_ERROR) -> None:
        with self._lock:
            self._state = AppState.ERROR
            self._error = message
        logger.error(f"[state] fatal: {message}")

    # ---- camera ----
    def _clear_session(self) -> None:
        self._detections = DetectionFrame()
        self._snapshot = None
        self._error = None
        self._processing = False
        self._generation += 1

    def camera_started(self) -> int:
        """Enter READY_CAMERA_ON; returns the new session generation."""
        with self._lock:
            if self._state != AppState.READY_CAMERA_OFF:
                raise StateError(f"cannot start camera in state {self._state.value}")
            self._clear_session()
            self._state = AppState.READY_CAMERA_ON
            return self._generation

    def camera_stopped(self) -> None:
        with self._lock:
            if self._state == AppState.READY_CAMERA_ON:
                self._state = AppState.READY_CAMERA_OFF
            self._clear_session()

    def reset(self) -> None:
        with self._lock:
            if self._state == AppState.READY_CAMERA_ON:
                self._state = AppState.READY_CAMERA_OFF
            self._clear_session()
            self._dropped_ticks = 0

    def report_error(self, message: str) -> None:
        with self._lock:
            self._error = message

    # ---- detection ----
    def set_processing(self, flag: bool) -> None:
        with self._lock:
            self._processing = flag

    def tick_dropped(self) -> None:
        with self._lock:
            self._dropped_ticks += 1

    def publish(self, generation: int, seq: int,
                faces: List[FaceDetection],
                display_size: Tuple[int, int]) -> bool:
        """Replace the detection set if the result is still current.

        Rejected when the camera session changed since the inference started,
        or when a newer tick already published.
        """
        with self._lock:
            if generation != self._generation or self._state != AppState.READY_CAMERA_ON:
                return False
            if seq <= self._detections.seq:
                return False
            self._detections = DetectionFrame(
                seq=seq,
                ts=time.time(),
                display_size=display_size,
                faces=list(faces),
            )
            return True

    # ---- snapshot ----
    def set_snapshot(self, data: bytes) -> bool:
        with self._lock:
            if self._state != AppState.READY_CAMERA_ON:
                return False
            self._snapshot = data
            return True

    # ---- settings ----
    def update_settings(self, confidence: Optional[float] = None,
                        show_settings: Optional[bool] = None) -> DetectionSettings:
        with self._lock:
            data = self._settings.model_dump()
            if confidence is not None:
                data["confidence"] = confidence
            if show_settings is not None:
                data["show_settings"] = show_settings
            # re-validate so an out-of-range slider value raises
            self._settings = DetectionSettings(**data)
            return self._settings

    def toggle_settings(self) -> DetectionSettings:
        with self._lock:
            self._settings = self._settings.model_copy(
                update={"show_settings": not self._settings.show_settings}
            )
            return self._settings
