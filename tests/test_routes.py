import pytest
from fastapi.testclient import TestClient

from conftest import FakeCamera
from api.main import app
import api.routes as routes
from core.app import FaceDetectorApp


@pytest.fixture
def detector(monkeypatch, settings, fake_deepface):
    d = FaceDetectorApp(settings, camera=FakeCamera())
    d.start(background=False)
    monkeypatch.setattr(routes, "detector", d)
    yield d
    d.shutdown()


@pytest.fixture
def client(detector):
    return TestClient(app)


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_index_page(client):
    r = client.get("/")
    assert r.status_code == 200
    assert "AI Face Detector" in r.text


def test_status(client):
    r = client.get("/status")
    assert r.status_code == 200
    body = r.json()
    assert body["state"] == "ready_camera_off"
    assert body["models_ready"] is True
    assert body["camera_on"] is False


def test_camera_toggle_capture_download_reset(client, detector):
    assert client.post("/capture").status_code == 409

    r = client.post("/camera/toggle")
    assert r.status_code == 200
    assert r.json()["camera_on"] is True

    detector.loop.tick(background=False)
    d = client.get("/detections").json()
    assert len(d["faces"]) == 1
    assert d["faces"][0]["gender"] == "male"

    r = client.post("/capture")
    assert r.status_code == 200
    assert r.json()["image"].startswith("data:image/jpeg;base64,")

    r = client.get("/capture/download")
    assert r.status_code == 200
    assert r.headers["content-type"] == "image/jpeg"
    assert 'filename="face-detection.jpg"' in r.headers["content-disposition"]

    r = client.post("/reset")
    assert r.json()["camera_on"] is False
    assert client.get("/capture/download").status_code == 404


def test_camera_start_stop(client):
    assert client.post("/camera/start").json()["camera_on"] is True
    assert client.post("/camera/stop").json()["camera_on"] is False


def test_camera_rejected_when_models_failed(monkeypatch, settings, fake_deepface):
    fake_deepface.fail_on = "Emotion"
    d = FaceDetectorApp(settings, camera=FakeCamera())
    d.start(background=False)
    monkeypatch.setattr(routes, "detector", d)
    client = TestClient(app)
    r = client.post("/camera/toggle")
    assert r.status_code == 409
    assert client.get("/status").json()["state"] == "error"


def test_camera_open_failure(monkeypatch, settings, fake_deepface):
    d = FaceDetectorApp(settings, camera=FakeCamera(fail=True))
    d.start(background=False)
    monkeypatch.setattr(routes, "detector", d)
    r = TestClient(app).post("/camera/start")
    assert r.status_code == 503


def test_settings(client):
    assert client.get("/settings").json() == {"confidence": 0.5, "show_settings": False}
    r = client.put("/settings", json={"confidence": 0.7})
    assert r.status_code == 200
    assert r.json()["confidence"] == 0.7
    assert client.put("/settings", json={"confidence": 0.95}).status_code == 422
    assert client.post("/settings/toggle").json()["show_settings"] is True


def test_stream_single_frame(client):
    r = client.get("/stream", params={"frames": 1})
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("multipart/x-mixed-replace")
    assert r.content.startswith(b"--frame\r\nContent-Type: image/jpeg")


def test_stream_waits_between_failed_encodes(monkeypatch, detector):
    results = iter([(False, None), (False, None)])
    real_imencode = routes.cv2.imencode

    def flaky_imencode(ext, img, params):
        return next(results, None) or real_imencode(ext, img, params)

    sleeps = []
    monkeypatch.setattr(routes.cv2, "imencode", flaky_imencode)
    monkeypatch.setattr(routes.time, "sleep", lambda s: sleeps.append(s))

    chunks = list(routes._mjpeg_frames(1))
    assert len(chunks) == 1
    # one pause after each failed encode, none after the final frame
    assert len(sleeps) == 2
    assert all(s > 0 for s in sleeps)
