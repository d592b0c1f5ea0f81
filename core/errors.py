"""
Exceptions raised by the detector core.
"""


class FaceDetectorError(Exception):
    """Base class for detector errors."""


class ModelLoadError(FaceDetectorError):
    """One of the model bundles could not be loaded."""


class CameraError(FaceDetectorError):
    """The capture device could not be opened or read."""


class SnapshotError(FaceDetectorError):
    """A frame could not be encoded to JPEG."""


class StateError(FaceDetectorError):
    """A transition was requested that the current state does not allow."""
