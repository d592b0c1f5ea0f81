import os

from core.loader import ModelLoader, model_bundles
from core.models import AppState
from core.state import AppStateMachine


def test_model_bundles(settings):
    bundles = model_bundles(settings)
    assert len(bundles) == 4
    assert bundles[0] == ("face_detector", "opencv")
    assert [name for _, name in bundles[1:]] == ["Emotion", "Age", "Gender"]


def test_load_success(settings, fake_deepface, monkeypatch):
    monkeypatch.delenv("DEEPFACE_HOME", raising=False)
    sm = AppStateMachine()
    loader = ModelLoader(settings, sm)
    assert loader.load() is True
    assert sm.state == AppState.READY_CAMERA_OFF
    assert len(fake_deepface.built) == 4
    assert os.environ["DEEPFACE_HOME"] == os.path.abspath(settings.MODELS_DIR)


def test_load_failure_is_fatal_and_not_retried(settings, fake_deepface):
    fake_deepface.fail_on = "Age"
    sm = AppStateMachine()
    loader = ModelLoader(settings, sm)
    assert loader.load() is False
    assert sm.state == AppState.ERROR
    assert sm.error

    fake_deepface.fail_on = None
    assert loader.load() is False
    assert sm.state == AppState.ERROR
    # Emotion built, Age failed, nothing after
    assert fake_deepface.built == [("face_detector", "opencv"), ("facial_attribute", "Emotion")]


def test_load_async(settings, fake_deepface):
    sm = AppStateMachine()
    loader = ModelLoader(settings, sm)
    t = loader.load_async()
    t.join(timeout=5)
    assert loader.load_async() is t
    assert sm.models_ready
