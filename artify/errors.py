"""Error types for the Artify application.

Every failure the pipeline can surface to a user is one of these exceptions.
They carry a short ``title`` and a user-facing ``message`` so the UI layers can
turn them into notifications without inspecting the exception type.
"""

from enum import Enum
from typing import Optional


class ArtifyError(Exception):
    """Base class for all Artify errors."""

    title = "Something Went Wrong"

    def __init__(self, message: str, title: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if title is not None:
            self.title = title


class ValidationError(ArtifyError):
    """Raised when an acquired photo fails size or type validation."""

    title = "Invalid Photo"


class FileTooLarge(ValidationError):
    """The payload is larger than the upload limit."""

    title = "File Too Large"

    def __init__(self, size: int, limit: int):
        super().__init__(f"Please upload an image smaller than {limit // (1024 * 1024)}MB.")
        self.size = size
        self.limit = limit


class UnsupportedType(ValidationError):
    """The declared mime type is not one of the accepted image types."""

    title = "Unsupported File Type"

    def __init__(self, mime_type: Optional[str]):
        super().__init__(
            f"'{mime_type or 'unknown'}' is not supported. Please use a JPG, PNG or WEBP image."
        )
        self.mime_type = mime_type


class CameraErrorReason(Enum):
    """Categorised reasons a camera operation can fail."""
    PERMISSION_DENIED = "permission_denied"
    DEVICE_NOT_FOUND = "device_not_found"
    TIMEOUT = "timeout"
    SINK_NOT_READY = "sink_not_ready"
    UNKNOWN = "unknown"


# User-facing text for each camera failure
CAMERA_ERROR_MESSAGES = {
    CameraErrorReason.PERMISSION_DENIED: "Camera permission denied. Please allow camera access and try again.",
    CameraErrorReason.DEVICE_NOT_FOUND: "No camera found on this device.",
    CameraErrorReason.TIMEOUT: "Camera took too long to start. Please try again.",
    CameraErrorReason.SINK_NOT_READY: "Please wait for the camera to fully load and try again.",
    CameraErrorReason.UNKNOWN: "Please allow camera access in your settings to use this feature.",
}

CAMERA_ERROR_TITLES = {
    CameraErrorReason.PERMISSION_DENIED: "Camera Access Failed",
    CameraErrorReason.DEVICE_NOT_FOUND: "Camera Access Failed",
    CameraErrorReason.TIMEOUT: "Camera Access Failed",
    CameraErrorReason.SINK_NOT_READY: "Camera Not Ready",
    CameraErrorReason.UNKNOWN: "Camera Access Failed",
}


class CameraError(ArtifyError):
    """Raised when the capture session cannot acquire or read the camera."""

    def __init__(self, reason: CameraErrorReason, message: Optional[str] = None,
                 title: Optional[str] = None):
        super().__init__(
            message or CAMERA_ERROR_MESSAGES[reason],
            title=title or CAMERA_ERROR_TITLES[reason],
        )
        self.reason = reason


class SinkNotReady(CameraError):
    """Raised when a capture is attempted before the preview is active."""

    def __init__(self, message: Optional[str] = None):
        super().__init__(CameraErrorReason.SINK_NOT_READY, message)


class TransformError(ArtifyError):
    """Raised when the art transform service fails.

    The message is the service's own, shown to the user verbatim.
    """

    title = "Transform Failed"


def categorize_camera_error(error: BaseException) -> CameraErrorReason:
    """Map an arbitrary device error onto a camera failure reason.

    Args:
        error: The exception raised while opening or reading a device

    Returns:
        The matching reason, ``UNKNOWN`` when nothing matches
    """
    if isinstance(error, CameraError):
        return error.reason

    text = f"{type(error).__name__}: {error}".lower()

    if isinstance(error, PermissionError) or "permission denied" in text or "notallowed" in text:
        return CameraErrorReason.PERMISSION_DENIED
    if isinstance(error, FileNotFoundError) or "not found" in text or "notfound" in text:
        return CameraErrorReason.DEVICE_NOT_FOUND
    if isinstance(error, TimeoutError) or "timeout" in text or "timed out" in text:
        return CameraErrorReason.TIMEOUT
    return CameraErrorReason.UNKNOWN
