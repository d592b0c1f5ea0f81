"""
Per-frame inference with DeepFace.

One DeepFace.analyze call covers the whole pipeline: face boxes (+ eye
landmarks from the detector), expressions, age and gender. The frame is
downscaled to DETECT_WIDTH before inference and results are mapped back to
the display size with resize_results.
"""
# core/detector.py
from __future__ import annotations
from typing import Dict, List, Optional, Tuple
import logging
import cv2
import numpy as np

from core.config import Settings
from core.models import FaceBox, FaceDetection

logger = logging.getLogger(__name__)

ACTIONS = ["emotion", "age", "gender"]
LANDMARK_KEYS = ("left_eye", "right_eye", "nose", "mouth_left", "mouth_right")
# DeepFace labels -> labels shown on the overlay
GENDER_LABELS = {"Man": "male", "Woman": "female"}


def resize_for_detect(img: np.ndarray, target_w: int) -> Tuple[np.ndarray, float]:
    H, W = img.shape[:2]
    if target_w <= 0 or W <= target_w:
        return img, 1.0
    scale = target_w / float(W)
    small = cv2.resize(img, (target_w, max(1, int(H * scale))), interpolation=cv2.INTER_AREA)
    return small, scale


def resize_results(faces: List[FaceDetection],
                   from_size: Tuple[int, int],
                   to_size: Tuple[int, int]) -> List[FaceDetection]:
    """Rescale boxes and landmarks from model input size (w, h) to display size (w, h)."""
    fw, fh = from_size
    tw, th = to_size
    if fw <= 0 or fh <= 0:
        return list(faces)
    sx, sy = tw / float(fw), th / float(fh)
    out = []
    for f in faces:
        out.append(f.model_copy(update={
            "box": f.box.scaled(sx, sy),
            "landmarks": {k: (p[0] * sx, p[1] * sy) for k, p in f.landmarks.items()},
        }))
    return out


def _landmarks(region: Dict) -> Dict[str, Tuple[float, float]]:
    points = {}
    for key in LANDMARK_KEYS:
        p = region.get(key)
        if p is None:
            continue
        try:
            points[key] = (float(p[0]), float(p[1]))
        except (TypeError, IndexError, ValueError):
            continue
    return points


def _gender(r: Dict) -> Tuple[str, float]:
    probs = r.get("gender")
    dom = r.get("dominant_gender")
    if isinstance(probs, dict) and probs:
        if not dom or dom not in probs:
            dom = max(probs, key=probs.get)
        p = float(probs[dom]) / 100.0
    else:
        # older deepface: "gender" is already the label
        dom = dom or (probs if isinstance(probs, str) else "")
        p = 1.0 if dom else 0.0
    return GENDER_LABELS.get(dom, (dom or "unknown").lower()), max(0.0, min(1.0, p))


def parse_result(r: Dict) -> Optional[FaceDetection]:
    """Convert one DeepFace.analyze entry into a FaceDetection (None if unusable)."""
    if not isinstance(r, dict):
        return None
    reg = r.get("region") or {}
    w, h = float(reg.get("w", 0) or 0), float(reg.get("h", 0) or 0)
    if w <= 0 or h <= 0:
        return None

    emotions = r.get("emotion") if isinstance(r.get("emotion"), dict) else {}
    expressions = {k: float(v) / 100.0 for k, v in emotions.items()}
    dominant = r.get("dominant_emotion")
    if not dominant and expressions:
        dominant = max(expressions, key=expressions.get)

    gender, gender_p = _gender(r)
    try:
        score = float(r.get("face_confidence", 1.0))
    except (TypeError, ValueError):
        score = 1.0

    return FaceDetection(
        box=FaceBox(x=float(reg.get("x", 0) or 0), y=float(reg.get("y", 0) or 0), w=w, h=h),
        score=score,
        landmarks=_landmarks(reg),
        expressions=expressions,
        dominant_expression=dominant,
        age=float(r.get("age", 0) or 0),
        gender=gender,
        gender_probability=gender_p,
    )


def analyze_frame(frame: np.ndarray,
                  settings: Settings,
                  min_confidence: float = 0.0) -> List[FaceDetection]:
    """Run the inference pipeline on a BGR frame.

    Returns detections in the frame's own coordinates. Faces whose detector
    score is below ``min_confidence`` are dropped; with enforce_detection off
    DeepFace reports "no face" as a full-frame region with confidence 0, which
    this filter also removes.

    Exceptions from DeepFace propagate; the caller decides whether to swallow.
    """
    # Lazy import for easier testing and to avoid loading heavy stacks too early
    from deepface import DeepFace

    H, W = frame.shape[:2]
    small, scale = resize_for_detect(frame, settings.DETECT_WIDTH)
    sh, sw = small.shape[:2]

    result = DeepFace.analyze(
        small,
        actions=ACTIONS,
        enforce_detection=False,
        detector_backend=settings.DETECTOR_BACKEND,
        silent=True,
    )
    # DeepFace returns list[dict] or dict depending on version; normalize to list
    if isinstance(result, dict):
        result = [result]

    faces = []
    for r in result or []:
        face = parse_result(r)
        if face is None:
            continue
        if face.score < min_confidence:
            logger.debug(f"[detector] drop face score={face.score:.2f} < {min_confidence:.2f}")
            continue
        faces.append(face)

    if scale != 1.0:
        faces = resize_results(faces, (sw, sh), (W, H))
    return faces
