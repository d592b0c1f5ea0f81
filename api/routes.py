"""
REST endpoints for the live face detector.
"""
import logging
import time

import cv2
from fastapi import APIRouter, HTTPException
from fastapi.responses import HTMLResponse, Response, StreamingResponse
from pydantic import ValidationError

from core.app import FaceDetectorApp
from core.config import Settings
from core.errors import CameraError, SnapshotError, StateError
from core.models import AppStatus, DetectionFrame, DetectionSettings, SettingsUpdate
from core.snapshot import to_data_url

router = APIRouter()
settings = Settings()
detector = FaceDetectorApp(settings)
logger = logging.getLogger(__name__)

STREAM_BOUNDARY = "frame"

INDEX_HTML = """<!doctype html>
<html>
<head><title>AI Face Detector</title></head>
<body style="font-family: sans-serif; background: #111; color: #eee">
  <h1>AI Face Detector</h1>
  <p>Real-time face detection, age estimation, and gender recognition</p>
  <div>
    <button onclick="post('/camera/toggle')">Start / Stop Camera</button>
    <button onclick="post('/capture')">Capture</button>
    <button onclick="post('/reset')">Reset</button>
    <a href="/capture/download"><button>Download</button></a>
  </div>
  <div>
    <label>Confidence Threshold
      <input type="range" min="0.1" max="0.9" step="0.1" value="0.5"
             onchange="fetch('/settings', {method: 'PUT', headers: {'Content-Type': 'application/json'},
                                           body: JSON.stringify({confidence: parseFloat(this.value)})})">
    </label>
  </div>
  <img src="/stream" style="max-width: 100%">
  <pre id="status"></pre>
  <script>
    async function post(url) { await fetch(url, {method: 'POST'}); }
    setInterval(async () => {
      const r = await fetch('/status');
      document.getElementById('status').textContent = JSON.stringify(await r.json(), null, 2);
    }, 1000);
  </script>
</body>
</html>
"""


@router.get("/", response_class=HTMLResponse)
def index() -> str:
    return INDEX_HTML


@router.get("/status", response_model=AppStatus)
def status() -> AppStatus:
    return detector.status()


@router.get("/detections", response_model=DetectionFrame)
def detections() -> DetectionFrame:
    return detector.status().detections


def _camera_action(action, name: str) -> AppStatus:
    try:
        return action()
    except StateError as e:
        logger.debug(f"[api] {name} rejected: {e}")
        raise HTTPException(status_code=409, detail=str(e))
    except CameraError as e:
        raise HTTPException(status_code=503, detail=str(e))


@router.post("/camera/toggle", response_model=AppStatus)
def camera_toggle() -> AppStatus:
    return _camera_action(detector.toggle_camera, "camera/toggle")


@router.post("/camera/start", response_model=AppStatus)
def camera_start() -> AppStatus:
    return _camera_action(detector.start_camera, "camera/start")


@router.post("/camera/stop", response_model=AppStatus)
def camera_stop() -> AppStatus:
    return detector.stop_camera()


@router.post("/reset", response_model=AppStatus)
def reset() -> AppStatus:
    return detector.reset()


@router.post("/capture")
def capture() -> dict:
    """
    Take a JPEG snapshot of the current camera frame.

    Returns:
        dict: data URL of the snapshot.
    """
    try:
        data = detector.capture()
    except SnapshotError as e:
        logger.exception("[api] snapshot encoding failed")
        raise HTTPException(status_code=500, detail=str(e))
    if data is None:
        raise HTTPException(status_code=409, detail="Camera is not running")
    return {"image": to_data_url(data), "bytes": len(data)}


@router.get("/capture/download")
def capture_download() -> Response:
    data = detector.state.snapshot
    if data is None:
        raise HTTPException(status_code=404, detail="No captured image")
    return Response(
        content=data,
        media_type="image/jpeg",
        headers={"Content-Disposition": f'attachment; filename="{settings.SNAPSHOT_FILENAME}"'},
    )


@router.get("/settings", response_model=DetectionSettings)
def get_settings() -> DetectionSettings:
    return detector.status().settings


@router.put("/settings", response_model=DetectionSettings)
def put_settings(update: SettingsUpdate) -> DetectionSettings:
    try:
        return detector.update_settings(confidence=update.confidence, show_settings=update.show_settings)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=[err["msg"] for err in e.errors()])


@router.post("/settings/toggle", response_model=DetectionSettings)
def toggle_settings() -> DetectionSettings:
    return detector.toggle_settings()


def _mjpeg_frames(max_frames: int | None = None):
    n = 0
    while max_frames is None or n < max_frames:
        frame = detector.overlay_frame()
        ok, buf = cv2.imencode(".jpg", frame, [int(cv2.IMWRITE_JPEG_QUALITY), 70])
        if ok:
            yield (b"--" + STREAM_BOUNDARY.encode() + b"\r\n"
                   b"Content-Type: image/jpeg\r\n\r\n" + buf.tobytes() + b"\r\n")
            n += 1
            if max_frames is not None and n >= max_frames:
                break
        else:
            logger.warning("[api] stream frame encoding failed")
        time.sleep(settings.DETECT_INTERVAL / 2)


@router.get("/stream")
def stream(frames: int | None = None) -> StreamingResponse:
    """MJPEG stream of the camera with the detection overlay."""
    return StreamingResponse(
        _mjpeg_frames(frames),
        media_type=f"multipart/x-mixed-replace; boundary={STREAM_BOUNDARY}",
    )
