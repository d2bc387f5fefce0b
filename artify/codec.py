"""Image codec and validation for the Artify pipeline.

Every photo that flows through the application is a :class:`PhotoArtifact`.
Artifacts travel between components as data URIs
(``data:<mime>;base64,<payload>``), which is also what the art transform
service accepts and returns.
"""

import base64
import binascii
import io
import logging
import mimetypes
import os
from dataclasses import dataclass
from enum import Enum
from typing import Tuple, Union, BinaryIO

import cv2
import numpy as np
from PIL import Image

from .errors import FileTooLarge, UnsupportedType

# Set up logging
logger = logging.getLogger(__name__)

# Hard upload limit, no resizing fallback
MAX_UPLOAD_BYTES = 4 * 1024 * 1024

# Accepted mime types and the Pillow format used to write them
SUPPORTED_MIME_TYPES = {
    'image/jpeg': 'JPEG',
    'image/png': 'PNG',
    'image/webp': 'WEBP',
}

# Aliases browsers and file systems report for the supported types
MIME_ALIASES = {
    'image/jpg': 'image/jpeg',
    'image/pjpeg': 'image/jpeg',
    'image/x-png': 'image/png',
}

FILE_EXTENSIONS = {
    'image/jpeg': '.jpg',
    'image/png': '.png',
    'image/webp': '.webp',
}

CAPTURE_QUALITY = 90


class SourceKind(Enum):
    """Where an artifact came from."""
    UPLOADED = "uploaded"
    CAPTURED = "captured"
    PREVIEW = "preview"
    FINAL = "final"


@dataclass(frozen=True)
class PhotoArtifact:
    """One acquired or generated photo.

    Attributes:
        encoding: Mime type of the payload
        payload: Raw encoded image bytes
        source_kind: How the artifact was produced
    """
    encoding: str
    payload: bytes
    source_kind: SourceKind = SourceKind.UPLOADED

    @property
    def data_uri(self) -> str:
        """The artifact as an inline data URI."""
        return encode_data_uri(self.payload, self.encoding)

    @property
    def size(self) -> int:
        return len(self.payload)

    @property
    def extension(self) -> str:
        return FILE_EXTENSIONS.get(self.encoding, '.png')

    def to_image(self) -> np.ndarray:
        """Decode the payload into an RGB numpy array."""
        return load_image(self.payload)

    def __repr__(self) -> str:
        return f"PhotoArtifact(encoding={self.encoding!r}, size={self.size}, source_kind={self.source_kind.name})"


def normalize_mime_type(mime_type: str) -> str:
    """Lower-case a mime type, strip parameters and resolve known aliases."""
    if not mime_type:
        return ''
    normalized = mime_type.split(';', 1)[0].strip().lower()
    return MIME_ALIASES.get(normalized, normalized)


def is_supported_mime_type(mime_type: str) -> bool:
    return normalize_mime_type(mime_type) in SUPPORTED_MIME_TYPES


def guess_mime_type(filename: str) -> str:
    """Guess the mime type of a file from its name.

    Args:
        filename: File name or path

    Returns:
        The guessed mime type, or an empty string if unknown
    """
    ext = os.path.splitext(filename)[1].lower()
    if ext == '.webp':
        # Not registered by mimetypes on every platform
        return 'image/webp'
    mime_type, _ = mimetypes.guess_type(filename)
    return normalize_mime_type(mime_type or '')


def validate_and_encode(raw_bytes: bytes,
                        declared_mime_type: str,
                        source_kind: SourceKind = SourceKind.UPLOADED) -> PhotoArtifact:
    """Validate an acquired image payload and wrap it as an artifact.

    The type check runs first, so an unsupported type is reported even for
    payloads that are also too large.

    Args:
        raw_bytes: The encoded image exactly as acquired
        declared_mime_type: Mime type reported by the acquisition source
        source_kind: How the payload was acquired

    Returns:
        The validated artifact

    Raises:
        UnsupportedType: If the declared type is not jpeg, png or webp
        FileTooLarge: If the payload exceeds MAX_UPLOAD_BYTES
    """
    mime_type = normalize_mime_type(declared_mime_type)
    if mime_type not in SUPPORTED_MIME_TYPES:
        raise UnsupportedType(declared_mime_type)

    size = len(raw_bytes)
    if size > MAX_UPLOAD_BYTES:
        raise FileTooLarge(size, MAX_UPLOAD_BYTES)

    return PhotoArtifact(encoding=mime_type, payload=bytes(raw_bytes), source_kind=source_kind)


def encode_data_uri(payload: bytes, mime_type: str) -> str:
    """Encode a payload as ``data:<mime>;base64,<data>``."""
    encoded = base64.b64encode(payload).decode('ascii')
    return f"data:{mime_type};base64,{encoded}"


def decode_data_uri(data_uri: str) -> Tuple[str, bytes]:
    """Decode a base64 data URI.

    Args:
        data_uri: A ``data:<mime>;base64,<data>`` string

    Returns:
        Tuple of (mime type, payload bytes)

    Raises:
        ValueError: If the string is not a base64 data URI
    """
    if not data_uri or not data_uri.startswith('data:'):
        raise ValueError("Not a data URI")

    header, sep, data = data_uri[5:].partition(',')
    if not sep:
        raise ValueError("Data URI has no payload separator")

    params = header.split(';')
    if 'base64' not in (p.strip().lower() for p in params[1:]):
        raise ValueError("Only base64 data URIs are supported")

    try:
        payload = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"Invalid base64 payload: {e}")

    return normalize_mime_type(params[0]) or 'application/octet-stream', payload


def artifact_from_data_uri(data_uri: str, source_kind: SourceKind) -> PhotoArtifact:
    """Build an artifact from a data URI returned by the transform service."""
    mime_type, payload = decode_data_uri(data_uri)
    return PhotoArtifact(encoding=mime_type, payload=payload, source_kind=source_kind)


def encode_frame(frame: np.ndarray, quality: int = CAPTURE_QUALITY) -> bytes:
    """Encode an RGB frame as a JPEG still.

    Args:
        frame: Image as numpy array in RGB format
        quality: JPEG quality (0-100)

    Returns:
        JPEG bytes

    Raises:
        RuntimeError: If encoding fails
    """
    return image_to_bytes(frame, 'image/jpeg', quality)


def image_to_bytes(image: np.ndarray, mime_type: str = 'image/png', quality: int = 95) -> bytes:
    """Convert an RGB image array to encoded bytes.

    Args:
        image: Image as numpy array in RGB format
        mime_type: Target mime type
        quality: Quality for lossy formats (0-100)

    Returns:
        Image encoded as bytes

    Raises:
        RuntimeError: If image conversion fails
    """
    try:
        if image.ndim != 3 or image.shape[2] != 3:
            raise ValueError(f"expected an RGB image, got shape {image.shape}")
        pil_image = Image.fromarray(image.astype('uint8'))
        format_name = SUPPORTED_MIME_TYPES.get(normalize_mime_type(mime_type), 'PNG')

        save_args = {}
        if format_name in ('JPEG', 'WEBP'):
            save_args['quality'] = quality

        buffer = io.BytesIO()
        pil_image.save(buffer, format=format_name, **save_args)
        return buffer.getvalue()
    except Exception as e:
        raise RuntimeError(f"Error converting image to bytes: {str(e)}")


def load_image(source: Union[bytes, str, BinaryIO, PhotoArtifact]) -> np.ndarray:
    """Load an image into an RGB numpy array.

    Args:
        source: Encoded bytes, a file path, a file object or an artifact

    Returns:
        Loaded image as numpy array in RGB format

    Raises:
        ValueError: If the image could not be decoded
    """
    if isinstance(source, PhotoArtifact):
        source = source.payload
    if isinstance(source, str):
        with open(source, 'rb') as f:
            source = f.read()
    if not isinstance(source, (bytes, bytearray)):
        source = source.read()

    try:
        with Image.open(io.BytesIO(source)) as img:
            if img.mode != 'RGB':
                img = img.convert('RGB')
            return np.array(img)
    except Exception as pil_error:
        logger.debug(f"Pillow could not decode image, trying OpenCV: {pil_error}")

    # Fall back to OpenCV
    file_bytes = np.frombuffer(bytes(source), dtype=np.uint8)
    image = cv2.imdecode(file_bytes, cv2.IMREAD_COLOR)
    if image is None:
        raise ValueError("Could not decode image data")
    return cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
