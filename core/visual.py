
"""Overlay drawing helpers.

- draw_detections: clear-and-redraw of the overlay on a copy of the frame
  (one box + "Age | Gender | Confidence" label per face, eye landmarks)
- draw_status: small text banner (processing, errors, camera off)
"""
from __future__ import annotations
import cv2
import numpy as np
from typing import List, Optional, Tuple

from core.models import FaceDetection

BOX_COLOR = (255, 144, 30)   # BGR, face-api style blue
TEXT_COLOR = (255, 255, 255)
LANDMARK_COLOR = (0, 255, 255)
FONT = cv2.FONT_HERSHEY_SIMPLEX


def _draw_label(out: np.ndarray, text: str, x: int, y: int,
                color: Tuple[int, int, int], scale: float = 0.5) -> None:
    (tw, th), base = cv2.getTextSize(text, FONT, scale, 1)
    # label sits above the box, or inside it when the box touches the top edge
    top = y - th - base - 4
    if top < 0:
        top = y
    cv2.rectangle(out, (x, top), (x + tw + 6, top + th + base + 4), color, -1)
    cv2.putText(out, text, (x + 3, top + th + 2), FONT, scale, TEXT_COLOR, 1, cv2.LINE_AA)


def draw_detections(frame: np.ndarray,
                    faces: List[FaceDetection] | None = None,
                    color: Tuple[int, int, int] = BOX_COLOR,
                    show_landmarks: bool = True) -> np.ndarray:
    """Draw bounding boxes and labels on a copy of a frame.

    Args:
        frame: BGR image
        faces: detections in the frame's coordinates
        color: BGR color for rectangles and label backgrounds
        show_landmarks: draw landmark points when the detector supplied them

    Returns:
        Annotated copy; the input frame is left untouched
    """
    out = frame.copy()
    h, w = out.shape[:2]

    for face in faces or []:
        b = face.box
        x, y, fw, fh = int(b.x), int(b.y), int(b.w), int(b.h)
        # clamp to image bounds
        x = max(0, min(x, w-1)); y = max(0, min(y, h-1))
        fw = max(0, min(fw, w-x)); fh = max(0, min(fh, h-y))

        cv2.rectangle(out, (x, y), (x+fw, y+fh), color, 2)
        _draw_label(out, face.label(), x, y, color)

        if show_landmarks:
            for px, py in face.landmarks.values():
                cv2.circle(out, (int(px), int(py)), 3, LANDMARK_COLOR, -1, cv2.LINE_AA)

    return out


def draw_status(frame: np.ndarray, text: Optional[str],
                color: Tuple[int, int, int] = (0, 0, 255)) -> np.ndarray:
    """Put a one-line banner in the top-left corner (in place)."""
    if text:
        cv2.putText(frame, text, (10, 30), FONT, 0.8, color, 2, cv2.LINE_AA)
    return frame


def placeholder_frame(width: int, height: int, text: str) -> np.ndarray:
    """Dark frame shown while the camera is off."""
    out = np.full((height, width, 3), 32, dtype=np.uint8)
    (tw, th), _ = cv2.getTextSize(text, FONT, 0.8, 2)
    org = (max(10, (width - tw) // 2), (height + th) // 2)
    cv2.putText(out, text, org, FONT, 0.8, (200, 200, 200), 2, cv2.LINE_AA)
    return out
