"""
Configuration for the live face detector.
"""
from pydantic import BaseModel
import os

class Settings(BaseModel):
    """
    Runtime settings with environment-variable overrides.
    """
    CAMERA_INDEX: int = int(os.getenv("CAMERA_INDEX", "0"))
    CAPTURE_WIDTH: int = int(os.getenv("CAPTURE_WIDTH", "1280"))
    CAPTURE_HEIGHT: int = int(os.getenv("CAPTURE_HEIGHT", "720"))
    FACING_MODE: str = os.getenv("FACING_MODE", "user")

    DETECT_INTERVAL: float = float(os.getenv("DETECT_INTERVAL", "0.1"))
    DETECT_WIDTH: int = int(os.getenv("DETECT_WIDTH", "480"))
    DETECTOR_BACKEND: str = os.getenv("DETECTOR_BACKEND", "opencv")
    MODELS_DIR: str = os.getenv("MODELS_DIR", "models")
    CONFIDENCE_THRESHOLD: float = float(os.getenv("CONFIDENCE_THRESHOLD", "0.5"))

    JPEG_QUALITY: int = int(os.getenv("JPEG_QUALITY", "92"))
    SNAPSHOT_FILENAME: str = os.getenv("SNAPSHOT_FILENAME", "face-detection.jpg")
    OUTPUT_DIR: str = os.getenv("OUTPUT_DIR", "output")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    def __init__(self, **data):
        super().__init__(**data)
        # Normalize: clamp to slider range, keep tick period sane
        conf = round(min(0.9, max(0.1, float(self.CONFIDENCE_THRESHOLD))), 1)
        object.__setattr__(self, "CONFIDENCE_THRESHOLD", conf)
        object.__setattr__(self, "DETECT_INTERVAL", max(0.01, float(self.DETECT_INTERVAL)))
        object.__setattr__(self, "JPEG_QUALITY", min(100, max(1, int(self.JPEG_QUALITY))))
        object.__setattr__(self, "LOG_LEVEL", (self.LOG_LEVEL or "INFO").strip().upper())
