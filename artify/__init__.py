"""Artify application.

Turns a photo into artwork: upload a photo or capture one with the camera,
pick an art style, preview the result and download the full-resolution image.
"""

__version__ = "0.1.0"

from .acquisition import AcquisitionController, AcquisitionMode
from .app import ArtifyApp
from .camera import CaptureSession, FacingMode, OpenCVMediaDevices, SessionState
from .codec import PhotoArtifact, SourceKind, validate_and_encode, decode_data_uri, encode_data_uri
from .collage import CollageEntry, RecentResultsStore
from .config import load_config
from .errors import ArtifyError, CameraError, FileTooLarge, TransformError, UnsupportedType, ValidationError
from .orchestrator import TransformOrchestrator
from .styles import get_categories, get_style_preset, get_styles_by_category
from .transform import GeminiTransformService, LocalTransformService, create_transform_service
from .web import run_web_app
