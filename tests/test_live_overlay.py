
from conftest import FakeCamera
from core.app import FaceDetectorApp
import scripts.live_overlay as live


def test_run_live_overlay_keys(monkeypatch, settings, fake_deepface):
    app = FaceDetectorApp(settings, camera=FakeCamera())
    app.start(background=False)

    keys = iter([ord(" "), -1, ord("c"), ord("+"), ord("q")])
    shown = []
    monkeypatch.setattr(live.cv2, "imshow", lambda name, frame: shown.append(frame.shape))
    monkeypatch.setattr(live.cv2, "waitKey", lambda delay: next(keys))
    monkeypatch.setattr(live.cv2, "destroyAllWindows", lambda: None)

    live.run_live_overlay(settings, app=app)

    assert len(shown) == 5
    assert app.state.snapshot is not None
    assert app.state.settings.confidence == 0.6
    assert not app.loop.running


def test_handle_key(settings, fake_deepface):
    app = FaceDetectorApp(settings, camera=FakeCamera())
    app.start(background=False)
    try:
        assert live.handle_key(app, ord("q")) is False
        # capture before camera start: no-op, no exception
        assert live.handle_key(app, ord("c")) is True
        assert app.state.snapshot is None
        assert live.handle_key(app, ord("s")) is True
        assert live.handle_key(app, ord(" ")) is True
        assert app.state.camera_on
        assert live.handle_key(app, ord("c")) is True
        assert live.handle_key(app, ord("s")) is True
        assert live.handle_key(app, ord("-")) is True
        assert app.state.settings.confidence == 0.4
        assert live.handle_key(app, ord("r")) is True
        assert not app.state.camera_on
    finally:
        app.shutdown()


def test_handle_key_swallows_state_errors(settings, fake_deepface):
    fake_deepface.fail_on = "Age"
    app = FaceDetectorApp(settings, camera=FakeCamera())
    app.start(background=False)
    assert live.handle_key(app, ord(" ")) is True
    assert not app.state.camera_on
