import base64
import os

import cv2
import numpy as np

from core.snapshot import capture_snapshot, save_snapshot, to_data_url


def test_capture_roundtrip_shape():
    frame = np.full((48, 64, 3), 127, dtype=np.uint8)
    data = capture_snapshot(frame, quality=80)
    assert data[:2] == b"\xff\xd8"
    decoded = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_COLOR)
    assert decoded.shape == frame.shape


def test_data_url():
    url = to_data_url(b"abc")
    assert url == "data:image/jpeg;base64," + base64.b64encode(b"abc").decode()


def test_save_snapshot(tmp_path):
    path = save_snapshot(b"jpegbytes", str(tmp_path / "out"))
    assert os.path.basename(path) == "face-detection.jpg"
    with open(path, "rb") as f:
        assert f.read() == b"jpegbytes"
