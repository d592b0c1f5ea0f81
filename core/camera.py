"""
Capture controller: owns the webcam and keeps the most recent frame.
"""
from __future__ import annotations

import logging
import threading
import time
from typing import Optional

import cv2
import numpy as np

from core.config import Settings
from core.errors import CameraError

logger = logging.getLogger(__name__)


class CaptureController:
    """Reads frames on a background thread; ``latest()`` never blocks on the device."""

    join_timeout = 2.0

    def __init__(self, settings: Settings):
        self.s = settings
        self._cap = None
        self._thread: Optional[threading.Thread] = None
        self._stop: Optional[threading.Event] = None
        self._lock = threading.Lock()
        self._frame: Optional[np.ndarray] = None

    @property
    def is_open(self) -> bool:
        return self._cap is not None

    def open(self) -> None:
        if self._cap is not None:
            return
        idx = self.s.CAMERA_INDEX
        cap = cv2.VideoCapture(idx)
        if not cap.isOpened():
            cap.release()
            raise CameraError(f"Could not open camera index {idx}")
        # ideal resolution; the driver may pick the closest mode it supports
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.s.CAPTURE_WIDTH)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.s.CAPTURE_HEIGHT)
        logger.info(
            f"[camera] opened index={idx} facing={self.s.FACING_MODE} "
            f"requested={self.s.CAPTURE_WIDTH}x{self.s.CAPTURE_HEIGHT}"
        )

        self._cap = cap
        self._frame = None
        # each reader gets its own stop event; a reader stuck in read() from a
        # previous session must not be revived by this open
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._reader, args=(cap, self._stop), name="camera-reader", daemon=True)
        self._thread.start()

    def _reader(self, cap, stop: threading.Event) -> None:
        while not stop.is_set():
            ok, frame = cap.read()
            if not ok or frame is None:
                time.sleep(0.01)
                continue
            with self._lock:
                if stop.is_set():
                    break
                self._frame = frame
        cap.release()
        logger.debug("[camera] reader stopped, device released")

    def latest(self) -> Optional[np.ndarray]:
        """Copy of the newest frame, or None while no frame is ready."""
        with self._lock:
            return None if self._frame is None else self._frame.copy()

    def close(self) -> None:
        if self._cap is None:
            return
        with self._lock:
            self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=self.join_timeout)
            if self._thread.is_alive():
                logger.warning("[camera] reader did not stop in time; it will release the device when read() returns")
        self._cap = None
        self._thread = None
        with self._lock:
            self._frame = None
