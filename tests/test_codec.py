"""Tests for the codec module."""

import os
import unittest
import warnings

import numpy as np

from artify.codec import (
    MAX_UPLOAD_BYTES, PhotoArtifact, SourceKind, artifact_from_data_uri, decode_data_uri,
    encode_data_uri, encode_frame, guess_mime_type, image_to_bytes, load_image, validate_and_encode,
)
from artify.errors import FileTooLarge, UnsupportedType
from tests.helpers import make_png


class TestValidateAndEncode(unittest.TestCase):
    """Test cases for validate_and_encode."""

    def test_valid_png_is_accepted(self):
        payload = make_png()
        artifact = validate_and_encode(payload, 'image/png')

        self.assertIsInstance(artifact, PhotoArtifact)
        self.assertEqual(artifact.encoding, 'image/png')
        self.assertEqual(artifact.payload, payload)
        self.assertEqual(artifact.source_kind, SourceKind.UPLOADED)

    def test_exactly_the_limit_is_accepted(self):
        artifact = validate_and_encode(b'\0' * MAX_UPLOAD_BYTES, 'image/jpeg')
        self.assertEqual(artifact.size, 4 * 1024 * 1024)

    def test_one_byte_over_the_limit_is_rejected(self):
        with self.assertRaises(FileTooLarge) as ctx:
            validate_and_encode(b'\0' * (MAX_UPLOAD_BYTES + 1), 'image/jpeg')
        self.assertEqual(ctx.exception.size, MAX_UPLOAD_BYTES + 1)
        self.assertIn("4MB", ctx.exception.message)

    def test_gif_is_rejected_regardless_of_size(self):
        with self.assertRaises(UnsupportedType):
            validate_and_encode(b'GIF89a', 'image/gif')
        with self.assertRaises(UnsupportedType):
            validate_and_encode(b'\0' * (MAX_UPLOAD_BYTES + 1), 'image/gif')

    def test_mime_aliases_are_normalized(self):
        self.assertEqual(validate_and_encode(b'x', 'image/jpg').encoding, 'image/jpeg')
        self.assertEqual(validate_and_encode(b'x', 'IMAGE/WEBP').encoding, 'image/webp')

    def test_missing_type_is_rejected(self):
        with self.assertRaises(UnsupportedType):
            validate_and_encode(b'x', '')

    def test_source_kind_is_kept(self):
        artifact = validate_and_encode(b'x', 'image/jpeg', SourceKind.CAPTURED)
        self.assertEqual(artifact.source_kind, SourceKind.CAPTURED)


class TestDataUri(unittest.TestCase):
    """Test cases for the inline image representation."""

    def test_round_trip_is_byte_exact(self):
        payload = os.urandom(4096)
        artifact = validate_and_encode(payload, 'image/webp')

        mime_type, decoded = decode_data_uri(artifact.data_uri)

        self.assertEqual(mime_type, 'image/webp')
        self.assertEqual(decoded, payload)

    def test_empty_payload_round_trip(self):
        self.assertEqual(decode_data_uri(encode_data_uri(b'', 'image/png')), ('image/png', b''))

    def test_format(self):
        self.assertEqual(encode_data_uri(b'abc', 'image/png'), 'data:image/png;base64,YWJj')

    def test_malformed_uris_are_rejected(self):
        for bad in ('', 'image/png;base64,YWJj', 'data:image/png;base64', 'data:image/png,abc',
                    'data:image/png;base64,!!!'):
            with self.assertRaises(ValueError, msg=bad):
                decode_data_uri(bad)

    def test_artifact_from_data_uri(self):
        artifact = artifact_from_data_uri('data:image/png;base64,YWJj', SourceKind.PREVIEW)
        self.assertEqual(artifact, PhotoArtifact('image/png', b'abc', SourceKind.PREVIEW))


class TestImageHelpers(unittest.TestCase):
    """Test cases for image encoding helpers."""

    def test_encode_frame_produces_jpeg(self):
        frame = np.full((20, 30, 3), 200, dtype=np.uint8)
        payload = encode_frame(frame)

        self.assertTrue(payload.startswith(b'\xff\xd8'))
        self.assertEqual(load_image(payload).shape, (20, 30, 3))

    def test_image_to_bytes_without_deprecation_warnings(self):
        """Test that encoding does not rely on deprecated Pillow arguments."""
        frame = np.full((12, 16, 3), 90, dtype=np.uint8)
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter('always')
            payload = image_to_bytes(frame, 'image/png')

        self.assertEqual(load_image(payload).shape, (12, 16, 3))
        self.assertFalse([w for w in caught if issubclass(w.category, DeprecationWarning)])

    def test_image_to_bytes_rejects_non_rgb(self):
        with self.assertRaises(RuntimeError):
            image_to_bytes(np.zeros((12, 16), dtype=np.uint8), 'image/jpeg')

    def test_load_image_from_artifact(self):
        artifact = validate_and_encode(make_png(10, 8), 'image/png')
        image = artifact.to_image()
        self.assertEqual(image.shape, (8, 10, 3))

    def test_load_image_rejects_garbage(self):
        with self.assertRaises(ValueError):
            load_image(b'not an image')

    def test_guess_mime_type(self):
        self.assertEqual(guess_mime_type('photo.JPG'), 'image/jpeg')
        self.assertEqual(guess_mime_type('photo.png'), 'image/png')
        self.assertEqual(guess_mime_type('photo.webp'), 'image/webp')
        self.assertEqual(guess_mime_type('notes'), '')


if __name__ == "__main__":
    unittest.main()
