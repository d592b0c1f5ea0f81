import sys, types
import numpy as np
import pytest

from core.config import Settings
from core.errors import CameraError


def face_result(x=10, y=20, w=40, h=40, conf=0.9, age=31.4, gender="Man"):
    """One DeepFace.analyze entry as returned by deepface >= 0.0.90."""
    other = "Woman" if gender == "Man" else "Man"
    return {
        "region": {"x": x, "y": y, "w": w, "h": h,
                   "left_eye": (x + 28, y + 12), "right_eye": (x + 12, y + 12)},
        "face_confidence": conf,
        "age": age,
        "gender": {gender: 97.0, other: 3.0},
        "dominant_gender": gender,
        "emotion": {"happy": 80.0, "neutral": 20.0},
        "dominant_emotion": "happy",
    }


class FakeDeepFace:
    def __init__(self):
        self.built = []
        self.fail_on = None
        self.results = [face_result()]
        self.analyze_calls = []

    def build_model(self, task, model_name):
        if model_name == self.fail_on:
            raise ValueError(f"weights for {model_name} missing")
        self.built.append((task, model_name))
        return object()

    def analyze(self, img, actions, enforce_detection, detector_backend, silent=False):
        self.analyze_calls.append({"shape": img.shape, "actions": actions, "backend": detector_backend})
        return [dict(r) for r in self.results]


class FakeCamera:
    """Stands in for CaptureController without touching a device."""
    def __init__(self, frame=None, fail=False):
        self.frame = np.full((72, 128, 3), 90, dtype=np.uint8) if frame is None else frame
        self.fail = fail
        self.opened = False

    @property
    def is_open(self):
        return self.opened

    def open(self):
        if self.fail:
            raise CameraError("Could not open camera index 0")
        self.opened = True

    def close(self):
        self.opened = False

    def latest(self):
        if not self.opened or self.frame is None:
            return None
        return self.frame.copy()


@pytest.fixture
def fake_deepface(monkeypatch):
    df = FakeDeepFace()
    monkeypatch.setitem(sys.modules, "deepface", types.SimpleNamespace(DeepFace=df))
    return df


@pytest.fixture
def settings(tmp_path):
    # long tick period: tests drive loop.tick() by hand
    return Settings(DETECT_INTERVAL=10, OUTPUT_DIR=str(tmp_path), MODELS_DIR=str(tmp_path / "models"))


@pytest.fixture
def fake_camera():
    return FakeCamera()
