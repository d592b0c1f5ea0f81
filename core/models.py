"""
Pydantic data models for detections, app state and API IO.
"""
from __future__ import annotations
from enum import Enum
from pydantic import BaseModel, Field, field_validator
from typing import Dict, List, Optional, Tuple


class FaceBox(BaseModel):
    x: float
    y: float
    w: float
    h: float

    def scaled(self, sx: float, sy: float) -> "FaceBox":
        return FaceBox(x=self.x * sx, y=self.y * sy, w=self.w * sx, h=self.h * sy)


class FaceDetection(BaseModel):
    box: FaceBox
    score: float = 1.0
    landmarks: Dict[str, Tuple[float, float]] = Field(default_factory=dict)
    expressions: Dict[str, float] = Field(default_factory=dict)
    dominant_expression: Optional[str] = None
    age: float
    gender: str
    gender_probability: float

    def label(self) -> str:
        return (
            f"Age: {round(self.age)} | Gender: {self.gender} | "
            f"Confidence: {round(self.gender_probability * 100)}%"
        )


class DetectionFrame(BaseModel):
    seq: int = 0
    ts: float = 0.0
    display_size: Tuple[int, int] = (0, 0)
    faces: List[FaceDetection] = Field(default_factory=list)


# app state


class AppState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY_CAMERA_OFF = "ready_camera_off"
    READY_CAMERA_ON = "ready_camera_on"
    ERROR = "error"


class DetectionSettings(BaseModel):
    confidence: float = 0.5
    show_settings: bool = False

    @field_validator("confidence")
    @classmethod
    def _slider_range(cls, v: float) -> float:
        if not 0.1 <= v <= 0.9:
            raise ValueError("confidence must be between 0.1 and 0.9")
        return round(v, 1)


class SettingsUpdate(BaseModel):
    confidence: Optional[float] = None
    show_settings: Optional[bool] = None


class AppStatus(BaseModel):
    state: AppState
    models_ready: bool
    camera_on: bool
    processing: bool
    error: Optional[str] = None
    detections: DetectionFrame
    has_snapshot: bool
    settings: DetectionSettings
    dropped_ticks: int = 0
