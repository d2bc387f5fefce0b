"""Art transform services for the Artify application.

A transform service takes a photo (as a data URI) and a free-text style
description and returns the transformed photo as a data URI. Two calls exist:
a low-resolution preview and a full-resolution final render.

:class:`GeminiTransformService` calls Google's generative image model over
HTTP. :class:`LocalTransformService` approximates each style category with
OpenCV filters so the application also runs offline.
"""

import logging
import os
from typing import Any, Dict, Optional

import cv2
import numpy as np
import requests

from .codec import decode_data_uri, encode_data_uri, image_to_bytes, load_image
from .errors import TransformError
from .styles import ANIME, DRAWING, PAINTING, PHOTOGRAPHY, VIDEO_GAME, find_style_preset, ART_STYLES

# Set up logging
logger = logging.getLogger(__name__)

PREVIEW_PROMPT_TEMPLATE = "Low resolution preview of: {description}"


class ArtTransformService:
    """Interface of a remote art transform service."""

    def preview_transform(self, photo_data_uri: str, style_description: str) -> str:
        """Generate a low-resolution preview.

        Args:
            photo_data_uri: The photo as a data URI
            style_description: Style instructions

        Returns:
            The preview image as a data URI

        Raises:
            TransformError: With a human-readable message on failure
        """
        raise NotImplementedError

    def final_transform(self, photo_data_uri: str, style_description: str) -> str:
        """Generate the full-resolution transformed photo. Same contract as the preview."""
        raise NotImplementedError


class GeminiTransformService(ArtTransformService):
    """Transforms photos with the Gemini image generation REST API."""

    def __init__(self, config: Optional[Dict[str, Any]] = None, session: Optional[requests.Session] = None):
        """Initialize the Gemini client.

        Args:
            config: Configuration dictionary (api_key, model, api_base, request_timeout)
            session: Optional requests session, mainly for tests
        """
        self.config = config or {}
        self._validate_config()
        self.session = session or requests.Session()

    def _validate_config(self) -> None:
        """Validate and set default configuration parameters."""
        defaults = {
            'api_key': os.environ.get('GEMINI_API_KEY', ''),
            'model': 'gemini-2.0-flash-preview-image-generation',
            'api_base': 'https://generativelanguage.googleapis.com/v1beta',
            'request_timeout': 120.0,
        }

        for key, value in defaults.items():
            if key not in self.config or self.config[key] in (None, ''):
                self.config[key] = value

    def preview_transform(self, photo_data_uri: str, style_description: str) -> str:
        prompt = PREVIEW_PROMPT_TEMPLATE.format(description=style_description)
        return self._generate(prompt, photo_data_uri)

    def final_transform(self, photo_data_uri: str, style_description: str) -> str:
        return self._generate(style_description, photo_data_uri)

    def build_payload(self, prompt: str, photo_data_uri: str) -> Dict[str, Any]:
        """Build the generateContent request body."""
        try:
            mime_type, _ = decode_data_uri(photo_data_uri)
        except ValueError as e:
            raise TransformError(f"Invalid photo data: {e}")

        encoded = photo_data_uri.split(',', 1)[1]
        return {
            "contents": [
                {
                    "role": "user",
                    "parts": [
                        {"text": prompt},
                        {"inline_data": {"mime_type": mime_type, "data": encoded}},
                    ],
                }
            ],
            "generationConfig": {"responseModalities": ["TEXT", "IMAGE"]},
        }

    def _generate(self, prompt: str, photo_data_uri: str) -> str:
        if not self.config['api_key']:
            raise TransformError("No API key configured for the art transform service.")

        url = f"{self.config['api_base']}/models/{self.config['model']}:generateContent"
        payload = self.build_payload(prompt, photo_data_uri)

        logger.info(f"Requesting transform from {self.config['model']}")
        try:
            resp = self.session.post(
                url,
                params={"key": self.config['api_key']},
                headers={"Content-Type": "application/json"},
                json=payload,
                timeout=self.config['request_timeout'],
            )
        except requests.RequestException as e:
            raise TransformError(f"Could not reach the art transform service: {e}")

        if resp.status_code != 200:
            raise TransformError(self._error_message(resp))

        try:
            data = resp.json()
        except ValueError:
            raise TransformError("The art transform service returned an invalid response.")

        return self.parse_image(data)

    @staticmethod
    def _error_message(resp: requests.Response) -> str:
        try:
            message = resp.json().get("error", {}).get("message")
        except (ValueError, AttributeError):
            message = None
        return message or f"Art transform service error {resp.status_code}: {resp.text[:512]}"

    @staticmethod
    def parse_image(data: Dict[str, Any]) -> str:
        """Extract the first generated image from a generateContent response.

        Args:
            data: Decoded JSON response

        Returns:
            The image as a data URI

        Raises:
            TransformError: If the response holds no image
        """
        candidates = data.get("candidates") or []
        if not candidates:
            feedback = data.get("promptFeedback", {}).get("blockReason")
            if feedback:
                raise TransformError(f"The request was blocked: {feedback}")
            raise TransformError("No candidates returned from the art transform service.")

        parts = candidates[0].get("content", {}).get("parts", [])
        for part in parts:
            inline = part.get("inlineData") or part.get("inline_data")
            if inline and inline.get("data"):
                mime_type = inline.get("mimeType") or inline.get("mime_type") or "image/png"
                return f"data:{mime_type};base64,{inline['data']}"

        texts = [part["text"] for part in parts if part.get("text")]
        if texts:
            raise TransformError(f"No image was generated: {' '.join(texts)[:512]}")
        raise TransformError("The art transform service did not return an image.")


class LocalTransformService(ArtTransformService):
    """Approximates art styles with OpenCV filters, no network needed."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """Initialize the local service.

        Args:
            config: Configuration dictionary
        """
        self.config = config or {}
        self._validate_config()

    def _validate_config(self) -> None:
        """Validate and set default configuration parameters."""
        defaults = {
            'preview_max_edge': 256,
            'final_max_edge': 2048,
        }

        for key, value in defaults.items():
            if key not in self.config:
                self.config[key] = value

    def preview_transform(self, photo_data_uri: str, style_description: str) -> str:
        return self._transform(photo_data_uri, style_description, self.config['preview_max_edge'])

    def final_transform(self, photo_data_uri: str, style_description: str) -> str:
        return self._transform(photo_data_uri, style_description, self.config['final_max_edge'])

    def _transform(self, photo_data_uri: str, style_description: str, max_edge: int) -> str:
        try:
            _, payload = decode_data_uri(photo_data_uri)
            image = load_image(payload)
        except ValueError as e:
            raise TransformError(f"Could not read the photo: {e}")

        image = resize_max_edge(image, max_edge)
        result = self.apply_style(image, style_description)
        return encode_data_uri(image_to_bytes(result, 'image/png'), 'image/png')

    def apply_style(self, image: np.ndarray, style_description: str) -> np.ndarray:
        """Apply the filter matching a style description.

        Args:
            image: RGB input image
            style_description: A preset prompt or free text

        Returns:
            Processed RGB image
        """
        preset = _preset_for_description(style_description)
        style_id = preset.id if preset else ''
        category = preset.category if preset else ''

        if category == PAINTING:
            if style_id == 'chinese-ink-wash':
                return self._style_ink_wash(image)
            return self._style_painting(image)
        if category == DRAWING:
            return self._style_sketch(image, color=style_id in ('colored-pencil', 'chalk-pastel'))
        if category == ANIME:
            return self._style_cartoon(image)
        if category == VIDEO_GAME:
            return self._style_pixel(image)
        if category == PHOTOGRAPHY:
            if style_id in ('black-and-white', 'film-noir'):
                return self._style_monochrome(image, strength=0.8 if style_id == 'film-noir' else 0.3)
            if style_id in ('vintage-sepia', 'vintage-film', 'polaroid-instant'):
                return self._style_sepia(image)
            if style_id == 'cyanotype-blue':
                return self._style_cyanotype(image)
            return self._style_detail(image)

        logger.info("No preset matches the style description, using the painting filter")
        return self._style_painting(image)

    def _style_painting(self, image: np.ndarray) -> np.ndarray:
        return cv2.stylization(image, sigma_s=60, sigma_r=0.45)

    def _style_ink_wash(self, image: np.ndarray) -> np.ndarray:
        gray = cv2.cvtColor(image, cv2.COLOR_RGB2GRAY)
        soft = cv2.GaussianBlur(gray, (0, 0), 3)
        return cv2.cvtColor(cv2.addWeighted(gray, 0.4, soft, 0.6, 0), cv2.COLOR_GRAY2RGB)

    def _style_sketch(self, image: np.ndarray, color: bool = False) -> np.ndarray:
        gray_sketch, color_sketch = cv2.pencilSketch(image, sigma_s=60, sigma_r=0.07, shade_factor=0.05)
        if color:
            return color_sketch
        return cv2.cvtColor(gray_sketch, cv2.COLOR_GRAY2RGB)

    def _style_cartoon(self, image: np.ndarray) -> np.ndarray:
        smooth = image
        for _ in range(2):
            smooth = cv2.bilateralFilter(smooth, 9, 75, 75)

        gray = cv2.cvtColor(image, cv2.COLOR_RGB2GRAY)
        gray = cv2.medianBlur(gray, 5)
        edges = cv2.adaptiveThreshold(gray, 255, cv2.ADAPTIVE_THRESH_MEAN_C, cv2.THRESH_BINARY, 9, 2)
        return cv2.bitwise_and(smooth, smooth, mask=edges)

    def _style_pixel(self, image: np.ndarray, blocks: int = 64) -> np.ndarray:
        height, width = image.shape[:2]
        scale = blocks / float(max(height, width))
        small = cv2.resize(image, (max(1, int(width * scale)), max(1, int(height * scale))),
                           interpolation=cv2.INTER_LINEAR)
        # Limit the palette
        small = (small // 32) * 32 + 16
        return cv2.resize(small, (width, height), interpolation=cv2.INTER_NEAREST)

    def _style_monochrome(self, image: np.ndarray, strength: float) -> np.ndarray:
        gray = cv2.cvtColor(image, cv2.COLOR_RGB2GRAY)
        clahe = cv2.createCLAHE(clipLimit=3.0, tileGridSize=(8, 8))
        gray = clahe.apply(gray)
        result = cv2.cvtColor(gray, cv2.COLOR_GRAY2RGB)
        return apply_vignette(result, strength)

    def _style_sepia(self, image: np.ndarray) -> np.ndarray:
        sepia = np.array([
            [0.393, 0.769, 0.189],
            [0.349, 0.686, 0.168],
            [0.272, 0.534, 0.131]
        ])
        float_img = image.astype(np.float32) / 255.0
        sepia_img = np.clip(float_img @ sepia.T, 0, 1.0)
        return apply_vignette((sepia_img * 255).astype(np.uint8), 0.5)

    def _style_cyanotype(self, image: np.ndarray) -> np.ndarray:
        gray = cv2.cvtColor(image, cv2.COLOR_RGB2GRAY).astype(np.float32) / 255.0
        dark = np.array([0, 35, 95], dtype=np.float32)
        light = np.array([235, 242, 250], dtype=np.float32)
        result = dark + gray[:, :, None] * (light - dark)
        return result.astype(np.uint8)

    def _style_detail(self, image: np.ndarray) -> np.ndarray:
        return cv2.detailEnhance(image, sigma_s=10, sigma_r=0.15)


def _preset_for_description(style_description: str):
    """Find the preset whose prompt (or id or name) is the description."""
    description = style_description.strip()
    preview_prefix = PREVIEW_PROMPT_TEMPLATE.format(description='')
    if description.startswith(preview_prefix):
        description = description[len(preview_prefix):]
    for style in ART_STYLES:
        if style.prompt == description:
            return style
    return find_style_preset(description)


def resize_max_edge(image: np.ndarray, max_edge: int) -> np.ndarray:
    """Downscale an image so its longest edge is at most max_edge pixels."""
    height, width = image.shape[:2]
    longest = max(height, width)
    if longest <= max_edge:
        return image
    scale = max_edge / float(longest)
    size = (max(1, int(round(width * scale))), max(1, int(round(height * scale))))
    return cv2.resize(image, size, interpolation=cv2.INTER_AREA)


def apply_vignette(image: np.ndarray, strength: float) -> np.ndarray:
    """Darken the corners of an image."""
    height, width = image.shape[:2]
    x = np.linspace(-1, 1, width)
    y = np.linspace(-1, 1, height)
    x, y = np.meshgrid(x, y)
    radius = np.sqrt(x**2 + y**2)
    vignette = np.clip(1.0 - radius * strength, 0, 1.0)
    vignette = np.dstack([vignette] * 3)
    return (image.astype(np.float32) * vignette).astype(np.uint8)


def create_transform_service(config: Optional[Dict[str, Any]] = None) -> ArtTransformService:
    """Create the Gemini service when an API key is configured, else the local one."""
    config = dict(config or {})
    if config.get('api_key'):
        logger.info("Using the Gemini art transform service")
        return GeminiTransformService(config)
    logger.info("No API key configured, using the local art transform service")
    return LocalTransformService(config)
