"""
Still-frame capture and export.
"""
from __future__ import annotations
import base64
import os
import cv2
import numpy as np

from core.errors import SnapshotError

DEFAULT_FILENAME = "face-detection.jpg"


def capture_snapshot(frame: np.ndarray, quality: int = 92) -> bytes:
    """Encode a BGR frame as JPEG bytes."""
    ok, buf = cv2.imencode(".jpg", frame, [int(cv2.IMWRITE_JPEG_QUALITY), int(quality)])
    if not ok:
        raise SnapshotError("JPEG encoding failed")
    return buf.tobytes()


def to_data_url(data: bytes) -> str:
    return "data:image/jpeg;base64," + base64.b64encode(data).decode("ascii")


def save_snapshot(data: bytes, directory: str, filename: str = DEFAULT_FILENAME) -> str:
    """Write the snapshot to ``directory/filename`` and return the path."""
    os.makedirs(directory, exist_ok=True)
    path = os.path.join(directory, filename)
    with open(path, "wb") as f:
        f.write(data)
    return path
