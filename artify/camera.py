"""Camera capture session for the Artify application.

A :class:`CaptureSession` owns at most one live video stream. It moves through
``IDLE -> REQUESTING -> ACTIVE -> CAPTURING -> IDLE`` (or ``ERROR``) and turns
the current frame into a :class:`~artify.codec.PhotoArtifact` on capture.

Device access goes through :class:`MediaDevices`, so the session works the same
with OpenCV cameras and with the in-memory devices used by the tests.
"""

import asyncio
import logging
import threading
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Callable, Dict, List, Optional, Tuple

import cv2
import numpy as np

from .codec import CAPTURE_QUALITY, PhotoArtifact, SourceKind, encode_frame, validate_and_encode
from .errors import ArtifyError, CameraError, CameraErrorReason, SinkNotReady, categorize_camera_error

# Set up logging
logger = logging.getLogger(__name__)


class FacingMode(Enum):
    """Which camera to use. Values match the browser facingMode names."""
    FRONT = "user"
    REAR = "environment"

    def opposite(self) -> "FacingMode":
        return FacingMode.REAR if self is FacingMode.FRONT else FacingMode.FRONT

    @property
    def label(self) -> str:
        return "Front" if self is FacingMode.FRONT else "Rear"


class SessionState(Enum):
    """Lifecycle states of a capture session."""
    IDLE = auto()
    REQUESTING = auto()
    ACTIVE = auto()
    CAPTURING = auto()
    ERROR = auto()


@dataclass(frozen=True)
class StreamConstraints:
    """Resolution hints passed to the media backend."""
    facing_mode: FacingMode = FacingMode.FRONT
    ideal_width: int = 640
    ideal_height: int = 480
    max_width: int = 1280
    max_height: int = 720

    def clamp(self, width: int, height: int) -> Tuple[int, int]:
        """Clamp a reported size to the maximum, using the ideal size for unknowns."""
        if width <= 0 or height <= 0:
            return self.ideal_width, self.ideal_height
        return min(width, self.max_width), min(height, self.max_height)


class MediaStream:
    """A live video stream handed out by a :class:`MediaDevices` backend."""

    @property
    def dimensions(self) -> Tuple[int, int]:
        """Reported (width, height) of the stream."""
        raise NotImplementedError

    def read_frame(self) -> Optional[np.ndarray]:
        """Read the next frame as an RGB array, or None if none is available."""
        raise NotImplementedError

    def release(self) -> None:
        raise NotImplementedError


class MediaDevices:
    """Backend that opens video streams."""

    def open(self, constraints: StreamConstraints) -> MediaStream:
        """Open a stream. May block; raise on denial or missing device."""
        raise NotImplementedError

    def is_supported(self) -> bool:
        return True


class OpenCVMediaStream(MediaStream):
    """Stream backed by ``cv2.VideoCapture``."""

    def __init__(self, capture: Any, dimensions: Tuple[int, int]):
        self._capture = capture
        self._dimensions = dimensions
        # read_frame runs on worker threads while release may come from the loop
        self._lock = threading.Lock()

    @property
    def dimensions(self) -> Tuple[int, int]:
        return self._dimensions

    def read_frame(self) -> Optional[np.ndarray]:
        with self._lock:
            if self._capture is None:
                return None
            ok, frame = self._capture.read()
        if not ok or frame is None:
            return None
        return cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)

    def release(self) -> None:
        with self._lock:
            if self._capture is not None:
                self._capture.release()
                self._capture = None


class OpenCVMediaDevices(MediaDevices):
    """Opens local cameras through OpenCV."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """Initialize the device backend.

        Args:
            config: Configuration dictionary with camera device indices
        """
        self.config = config or {}
        self._validate_config()

    def _validate_config(self) -> None:
        """Validate and set default configuration parameters."""
        defaults = {
            'front_camera_index': 0,
            'rear_camera_index': 1,
        }

        for key, value in defaults.items():
            if key not in self.config:
                self.config[key] = value

    def device_index(self, facing_mode: FacingMode) -> int:
        if facing_mode is FacingMode.FRONT:
            return int(self.config['front_camera_index'])
        return int(self.config['rear_camera_index'])

    def open(self, constraints: StreamConstraints) -> MediaStream:
        index = self.device_index(constraints.facing_mode)
        logger.info(f"Opening camera {index} ({constraints.facing_mode.label})")

        capture = cv2.VideoCapture(index)
        if not capture.isOpened():
            capture.release()
            raise FileNotFoundError(f"Camera device {index} not found")

        capture.set(cv2.CAP_PROP_FRAME_WIDTH, constraints.ideal_width)
        capture.set(cv2.CAP_PROP_FRAME_HEIGHT, constraints.ideal_height)

        width = int(capture.get(cv2.CAP_PROP_FRAME_WIDTH))
        height = int(capture.get(cv2.CAP_PROP_FRAME_HEIGHT))
        dimensions = constraints.clamp(width, height)
        logger.info(f"Camera {index} opened at {dimensions[0]}x{dimensions[1]}")

        return OpenCVMediaStream(capture, dimensions)

    def is_supported(self) -> bool:
        capture = cv2.VideoCapture(self.device_index(FacingMode.FRONT))
        try:
            return bool(capture.isOpened())
        finally:
            capture.release()


def camera_supported(devices: MediaDevices) -> bool:
    """Check whether the backend can provide a camera at all."""
    try:
        return devices.is_supported()
    except Exception as e:
        logger.warning(f"Camera support check failed: {e}")
        return False


class PreviewSink:
    """Receives frames from the live stream.

    Holds the most recent frame and signals when the first one was decoded.
    """

    def __init__(self):
        self.latest_frame: Optional[np.ndarray] = None
        self.frame_count = 0
        self._first_frame = asyncio.Event()

    def push(self, frame: np.ndarray) -> None:
        self.latest_frame = frame
        self.frame_count += 1
        if not self._first_frame.is_set():
            self._first_frame.set()

    @property
    def has_frame(self) -> bool:
        return self._first_frame.is_set()

    async def wait_first_frame(self) -> None:
        await self._first_frame.wait()


class CaptureSession:
    """State machine owning one camera stream.

    The stream handle is released on every exit path: capture, stop, a failed
    start, switching cameras and leaving an ``async with`` block.
    """

    def __init__(self, devices: MediaDevices, config: Optional[Dict[str, Any]] = None):
        """Initialize the capture session.

        Args:
            devices: Media backend used to open streams
            config: Configuration dictionary
        """
        self.devices = devices
        self.config = config or {}
        self._validate_config()

        self.state = SessionState.IDLE
        self.facing_mode = FacingMode(self.config['facing_mode'])
        self.error: Optional[CameraError] = None
        self.degraded = False
        self.sink: Optional[PreviewSink] = None

        self._stream: Optional[MediaStream] = None
        self._pump_task: Optional[asyncio.Task] = None
        self._generation = 0
        self._listeners: List[Callable[[SessionState], None]] = []

    def _validate_config(self) -> None:
        """Validate and set default configuration parameters."""
        defaults = {
            'facing_mode': FacingMode.FRONT.value,
            'first_frame_timeout': 3.0,
            'open_timeout': 10.0,
            'switch_settle_delay': 0.3,
            'frame_interval': 1.0 / 30,
            'capture_quality': CAPTURE_QUALITY,
        }

        for key, value in defaults.items():
            if key not in self.config:
                self.config[key] = value

    # -------------------- State --------------------

    def add_listener(self, listener: Callable[[SessionState], None]) -> None:
        """Register a callback invoked with the new state on every transition."""
        self._listeners.append(listener)

    def _set_state(self, state: SessionState) -> None:
        if state is self.state:
            return
        logger.debug(f"Capture session {self.state.name} -> {state.name}")
        self.state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as e:
                logger.error(f"Error in capture session listener: {e}")

    @property
    def has_stream(self) -> bool:
        return self._stream is not None

    @property
    def is_active(self) -> bool:
        return self.state is SessionState.ACTIVE

    @property
    def dimensions(self) -> Optional[Tuple[int, int]]:
        return self._stream.dimensions if self._stream is not None else None

    # -------------------- Operations --------------------

    async def start(self, facing_mode: Optional[FacingMode] = None) -> None:
        """Request a stream and bring the preview up.

        A no-op while a stream is held or a request is in flight.

        Args:
            facing_mode: Camera to use, defaults to the current facing mode

        Raises:
            CameraError: If the device is denied, missing or fails to open
        """
        if self._stream is not None or self.state is SessionState.REQUESTING:
            logger.debug("Camera start ignored, session already acquiring or active")
            return

        if facing_mode is not None:
            self.facing_mode = facing_mode

        self._generation += 1
        generation = self._generation
        self.error = None
        self.degraded = False
        self._set_state(SessionState.REQUESTING)

        constraints = StreamConstraints(facing_mode=self.facing_mode)
        logger.info(f"Requesting camera access ({self.facing_mode.label})")

        try:
            stream = await self._open_stream(constraints)
        except Exception as e:
            if generation != self._generation:
                # Stopped while the request was pending
                return
            self._fail(e)

        if generation != self._generation:
            logger.info("Camera stopped before the stream was granted, releasing it")
            stream.release()
            return

        self._stream = stream
        self.sink = PreviewSink()
        self._pump_task = asyncio.ensure_future(self._pump_frames(stream, self.sink, generation))

        try:
            await asyncio.wait_for(self.sink.wait_first_frame(), self.config['first_frame_timeout'])
        except asyncio.TimeoutError:
            if generation != self._generation:
                return
            # Degraded success: the preview may stay blank
            self.degraded = True
            logger.warning(
                f"No camera frame within {self.config['first_frame_timeout']}s, forcing active state"
            )

        if generation != self._generation:
            return

        logger.info(f"Camera is now active ({self.facing_mode.label})")
        self._set_state(SessionState.ACTIVE)

    async def _open_stream(self, constraints: StreamConstraints) -> MediaStream:
        open_task = asyncio.ensure_future(asyncio.to_thread(self.devices.open, constraints))
        try:
            return await asyncio.wait_for(asyncio.shield(open_task), self.config['open_timeout'])
        except asyncio.TimeoutError:
            # Release the stream if the device answers after we gave up
            open_task.add_done_callback(_release_late_stream)
            raise CameraError(CameraErrorReason.TIMEOUT)

    def _fail(self, error: Exception) -> None:
        """Release partial resources, enter ERROR and raise a categorised error."""
        self._release()
        reason = categorize_camera_error(error)
        camera_error = error if isinstance(error, CameraError) else CameraError(reason)
        logger.error(f"Camera access error ({reason.value}): {error}")
        self.error = camera_error
        self._set_state(SessionState.ERROR)
        if camera_error is error:
            raise camera_error
        raise camera_error from error

    async def _pump_frames(self, stream: MediaStream, sink: PreviewSink, generation: int) -> None:
        """Feed frames from the stream into the preview sink until stopped."""
        interval = self.config['frame_interval']
        while generation == self._generation:
            try:
                frame = await asyncio.to_thread(stream.read_frame)
            except Exception as e:
                logger.warning(f"Camera frame read failed: {e}")
                frame = None
            if generation != self._generation:
                break
            if frame is not None:
                sink.push(frame)
            await asyncio.sleep(interval)

    async def capture(self) -> PhotoArtifact:
        """Snapshot the current frame as a photo artifact.

        The frame is fitted to the stream's reported dimensions and mirrored
        horizontally, since the live preview is shown mirrored. The stream is
        released afterwards.

        Returns:
            The captured artifact

        Raises:
            SinkNotReady: If the session is not active
            CameraError: If no frame could be read
        """
        if self.state is not SessionState.ACTIVE or self._stream is None:
            raise SinkNotReady()

        self._set_state(SessionState.CAPTURING)
        stream = self._stream

        try:
            frame = self.sink.latest_frame if self.sink is not None else None
            if frame is None:
                frame = await asyncio.to_thread(stream.read_frame)
            if frame is None:
                raise CameraError(
                    CameraErrorReason.UNKNOWN,
                    "There was an error capturing the photo. Please try again.",
                    title="Capture Failed",
                )
            try:
                artifact = await asyncio.to_thread(
                    self._encode_capture, frame, stream.dimensions, self.config['capture_quality']
                )
            except ArtifyError:
                raise
            except Exception as e:
                logger.error(f"Error encoding captured frame: {e}")
                raise CameraError(
                    CameraErrorReason.UNKNOWN,
                    "There was an error capturing the photo. Please try again.",
                    title="Capture Failed",
                ) from e
        except Exception:
            if self.state is SessionState.CAPTURING:
                self._set_state(SessionState.ACTIVE)
            raise

        await self.stop()
        logger.info(f"Photo captured ({artifact.size} bytes)")
        return artifact

    @staticmethod
    def _encode_capture(frame: np.ndarray, dimensions: Tuple[int, int], quality: int) -> PhotoArtifact:
        width, height = dimensions
        raster = frame
        if raster.shape[1] != width or raster.shape[0] != height:
            raster = cv2.resize(raster, (width, height), interpolation=cv2.INTER_AREA)

        # Un-mirror: the preview is displayed flipped for selfie framing
        raster = cv2.flip(raster, 1)

        payload = encode_frame(raster, quality)
        return validate_and_encode(payload, 'image/jpeg', SourceKind.CAPTURED)

    async def switch_facing(self) -> None:
        """Restart the stream on the opposite camera."""
        next_mode = self.facing_mode.opposite()
        await self.stop()
        self.facing_mode = next_mode
        await asyncio.sleep(self.config['switch_settle_delay'])
        await self.start(next_mode)

    async def stop(self) -> None:
        """Release the stream. Safe to call from any state, any number of times."""
        self._generation += 1
        pump_task = self._pump_task
        self._pump_task = None
        self._release()
        if pump_task is not None and not pump_task.done():
            pump_task.cancel()
            try:
                await pump_task
            except asyncio.CancelledError:
                pass
        self._set_state(SessionState.IDLE)

    def _release(self) -> None:
        stream = self._stream
        self._stream = None
        self.sink = None
        if stream is not None:
            try:
                stream.release()
                logger.info("Camera stream released")
            except Exception as e:
                logger.error(f"Error releasing camera stream: {e}")

    async def __aenter__(self) -> "CaptureSession":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()


def _release_late_stream(task: "asyncio.Future") -> None:
    if task.cancelled() or task.exception() is not None:
        return
    task.result().release()
    logger.info("Released camera stream that opened after the timeout")
