"""
One-shot loading of the pretrained model bundles.

Four bundles are built through DeepFace before the camera may start:
the face detector (boxes + eye landmarks), Emotion, Age and Gender.
Weights are resolved under ``Settings.MODELS_DIR`` (exported as DEEPFACE_HOME).
Any failure is fatal: the state machine moves to ERROR and nothing is retried.
"""
from __future__ import annotations

import logging
import os
import threading
from typing import List, Optional, Tuple

from core.config import Settings
from core.errors import ModelLoadError
from core.state import AppStateMachine

logger = logging.getLogger(__name__)

ATTRIBUTE_MODELS = ("Emotion", "Age", "Gender")


def model_bundles(settings: Settings) -> List[Tuple[str, str]]:
    """(task, model_name) pairs in load order."""
    bundles = [("face_detector", settings.DETECTOR_BACKEND)]
    bundles += [("facial_attribute", name) for name in ATTRIBUTE_MODELS]
    return bundles


class ModelLoader:
    def __init__(self, settings: Settings, state: AppStateMachine):
        self.s = settings
        self.state = state
        self._attempted = False
        self._thread: Optional[threading.Thread] = None

    def _build_all(self) -> None:
        os.environ["DEEPFACE_HOME"] = os.path.abspath(self.s.MODELS_DIR)
        # Lazy import so tests can inject a fake deepface module
        try:
            from deepface import DeepFace
        except Exception as e:
            raise ModelLoadError("DeepFace import failed. Install deepface and its tensorflow stack.") from e

        for task, name in model_bundles(self.s):
            logger.debug(f"[loader] building {task}/{name}")
            try:
                DeepFace.build_model(task=task, model_name=name)
            except Exception as e:
                raise ModelLoadError(f"could not load {task}/{name}") from e

    def load(self) -> bool:
        """Load every bundle once. Returns True when models are ready."""
        if self._attempted:
            return self.state.models_ready
        self._attempted = True

        self.state.begin_loading()
        try:
            self._build_all()
        except ModelLoadError:
            logger.exception("[loader] model loading failed")
            self.state.models_failed()
            return False
        self.state.models_loaded()
        logger.info(f"[loader] models loaded from {self.s.MODELS_DIR}")
        return True

    def load_async(self) -> threading.Thread:
        if self._thread is None:
            self._thread = threading.Thread(target=self.load, name="model-loader", daemon=True)
            self._thread.start()
        return self._thread
