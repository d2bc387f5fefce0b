"""Photo acquisition for the Artify application.

The :class:`AcquisitionController` owns the current photo. Photos come either
from an upload (file selection or drag-and-drop) or from the camera, and only
one of the two modes is active at a time.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Union

from .camera import CaptureSession, SessionState
from .codec import PhotoArtifact, SourceKind, guess_mime_type, validate_and_encode
from .errors import ArtifyError, CameraError, ValidationError
from .notifications import Notifier

# Set up logging
logger = logging.getLogger(__name__)

ArtifactListener = Callable[[Optional[PhotoArtifact]], None]


class AcquisitionMode(Enum):
    """The two ways of providing a photo."""
    UPLOAD = "upload"
    CAMERA = "camera"


class AcquisitionController:
    """Coordinates upload and camera acquisition into one current photo.

    Errors never escape the controller: they become notifications and the
    current photo is left as it was.
    """

    def __init__(self, session: CaptureSession, notifier: Optional[Notifier] = None):
        """Initialize the controller.

        Args:
            session: Capture session used in camera mode
            notifier: Where user-facing messages go
        """
        self.session = session
        self.notifier = notifier or Notifier()
        self.mode = AcquisitionMode.UPLOAD
        self._artifact: Optional[PhotoArtifact] = None
        self._listeners: List[ArtifactListener] = []

    @property
    def artifact(self) -> Optional[PhotoArtifact]:
        """The current photo, or None."""
        return self._artifact

    def subscribe(self, listener: ArtifactListener) -> None:
        """Register a callback invoked with the new photo (or None) on every change."""
        self._listeners.append(listener)

    def _set_artifact(self, artifact: Optional[PhotoArtifact]) -> None:
        self._artifact = artifact
        for listener in list(self._listeners):
            try:
                listener(artifact)
            except Exception as e:
                logger.error(f"Error in photo change listener: {e}")

    async def set_mode(self, mode: AcquisitionMode) -> None:
        """Switch between upload and camera mode.

        Leaving camera mode stops the capture session first.
        """
        if mode is not AcquisitionMode.CAMERA:
            await self.session.stop()
        if mode is not self.mode:
            logger.debug(f"Acquisition mode {self.mode.value} -> {mode.value}")
        self.mode = mode

    # -------------------- Upload --------------------

    def upload(self, raw_bytes: bytes, mime_type: str) -> Optional[PhotoArtifact]:
        """Accept a file chosen in the file dialog.

        Args:
            raw_bytes: File contents
            mime_type: Declared type of the file

        Returns:
            The new photo, or None if validation failed
        """
        try:
            artifact = validate_and_encode(raw_bytes, mime_type, SourceKind.UPLOADED)
        except ValidationError as e:
            self.notifier.error(e.title, e.message)
            return None

        self._set_artifact(artifact)
        logger.info(f"Photo uploaded ({artifact.encoding}, {artifact.size} bytes)")
        return artifact

    def drop(self, raw_bytes: bytes, mime_type: str) -> Optional[PhotoArtifact]:
        """Accept a file dropped onto the upload area. Same rules as :meth:`upload`."""
        return self.upload(raw_bytes, mime_type)

    def upload_file(self, path: Union[str, Path]) -> Optional[PhotoArtifact]:
        """Read a file from disk and upload it."""
        path = Path(path)
        try:
            raw_bytes = path.read_bytes()
        except OSError as e:
            self.notifier.error("Upload Failed", f"Could not read {path.name}: {e.strerror or e}")
            return None
        return self.upload(raw_bytes, guess_mime_type(path.name))

    def cancel_upload(self) -> None:
        """The file dialog was dismissed without choosing a file."""
        logger.debug("Upload cancelled")

    # -------------------- Camera --------------------

    async def start_camera(self) -> bool:
        """Switch to camera mode and start the capture session.

        Returns:
            True if the session is active afterwards
        """
        await self.set_mode(AcquisitionMode.CAMERA)
        try:
            await self.session.start()
        except CameraError as e:
            self.notifier.error(e.title, e.message)
            return False

        if self.session.state is SessionState.ACTIVE:
            self.notifier.notify(
                "Camera Started",
                f"Camera is now active ({self.session.facing_mode.label}). "
                "Position yourself and click capture.",
            )
            return True
        return False

    async def capture(self) -> Optional[PhotoArtifact]:
        """Capture a photo from the active camera.

        Returns:
            The captured photo, or None on failure
        """
        try:
            artifact = await self.session.capture()
        except ArtifyError as e:
            self.notifier.error(e.title, e.message)
            return None

        self._set_artifact(artifact)
        self.notifier.notify("Photo Captured!", "Your photo has been captured successfully.")
        return artifact

    async def stop_camera(self) -> None:
        await self.session.stop()

    async def switch_camera(self) -> bool:
        """Restart the camera with the opposite facing mode.

        Returns:
            True if the session is active afterwards
        """
        try:
            await self.session.switch_facing()
        except CameraError as e:
            self.notifier.error(e.title, e.message)
            return False
        return self.session.state is SessionState.ACTIVE

    # -------------------- Lifecycle --------------------

    def clear(self) -> None:
        """Discard the current photo. Listeners reset everything that depends on it."""
        self._set_artifact(None)

    async def close(self) -> None:
        """Tear down, releasing the camera."""
        await self.session.stop()
