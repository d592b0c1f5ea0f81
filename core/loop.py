"""
Fixed-period detection loop with a single inference slot.

A ticker thread fires every DETECT_INTERVAL seconds. Each tick grabs the
latest camera frame and hands it to a worker thread, but only when no other
inference is in flight; otherwise the tick is dropped and counted. Inference
errors are logged and ignored for that tick only.
"""
from __future__ import annotations

import logging
import threading
from typing import Callable, List, Optional

import numpy as np

from core.config import Settings
from core.detector import analyze_frame
from core.models import FaceDetection
from core.state import AppStateMachine

logger = logging.getLogger(__name__)

InferenceFn = Callable[[np.ndarray, Settings, float], List[FaceDetection]]


class DetectionLoop:
    def __init__(self, settings: Settings, state: AppStateMachine,
                 frame_source: Callable[[], Optional[np.ndarray]],
                 infer: InferenceFn = analyze_frame):
        self.s = settings
        self.state = state
        self.frame_source = frame_source
        self.infer = infer
        self._slot = threading.Lock()
        self._stop = threading.Event()
        self._ticker: Optional[threading.Thread] = None
        self._seq = 0

    @property
    def running(self) -> bool:
        return self._ticker is not None and self._ticker.is_alive()

    # ---- lifecycle ----
    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._ticker = threading.Thread(target=self._tick_loop, name="detection-ticker", daemon=True)
        self._ticker.start()
        logger.debug(f"[loop] started period={self.s.DETECT_INTERVAL}s")

    def stop(self) -> None:
        """Stop re-arming the tick. An in-flight inference finishes on its own."""
        self._stop.set()
        if self._ticker is not None and self._ticker is not threading.current_thread():
            self._ticker.join(timeout=2.0)
        self._ticker = None

    def _tick_loop(self) -> None:
        while not self._stop.wait(self.s.DETECT_INTERVAL):
            self.tick()

    # ---- one tick ----
    def tick(self, background: bool = True) -> bool:
        """Schedule one inference. Returns True when a job was started."""
        if not self.state.camera_on:
            return False
        frame = self.frame_source()
        if frame is None:
            return False

        if not self._slot.acquire(blocking=False):
            self.state.tick_dropped()
            logger.debug("[loop] previous inference still running; tick dropped")
            return False

        self._seq += 1
        args = (self.state.generation, self._seq, frame, self.state.settings.confidence)
        if background:
            threading.Thread(target=self._run, args=args, name="detection-worker", daemon=True).start()
        else:
            self._run(*args)
        return True

    def _run(self, generation: int, seq: int, frame: np.ndarray, confidence: float) -> None:
        self.state.set_processing(True)
        try:
            faces = self.infer(frame, self.s, confidence)
            h, w = frame.shape[:2]
            if not self.state.publish(generation, seq, faces, (w, h)):
                logger.debug(f"[loop] seq={seq} result discarded (stale)")
        except Exception:
            logger.exception(f"[loop] inference failed at seq={seq}; skipping tick")
        finally:
            self.state.set_processing(False)
            self._slot.release()
