"""Tests for the art transform services."""

import base64
import os
import unittest
from unittest import mock

import requests

from artify.codec import decode_data_uri, encode_data_uri, load_image
from artify.errors import TransformError
from artify.styles import ART_STYLES, get_style_preset
from artify.transform import (
    GeminiTransformService, LocalTransformService, create_transform_service, resize_max_edge
)
from tests.helpers import make_frame, make_png

IMAGE_B64 = base64.b64encode(b'generated').decode('ascii')


def make_response(status_code=200, data=None, text=''):
    response = mock.Mock()
    response.status_code = status_code
    response.text = text
    response.json.return_value = data
    return response


def image_response(key='inlineData'):
    mime_key = 'mimeType' if key == 'inlineData' else 'mime_type'
    return {
        "candidates": [{
            "content": {"parts": [
                {"text": "Here is your image"},
                {key: {mime_key: "image/png", "data": IMAGE_B64}},
            ]}
        }]
    }


class TestGeminiTransformService(unittest.TestCase):
    """Test cases for the Gemini REST client."""

    def setUp(self):
        self.session = mock.Mock()
        self.service = GeminiTransformService({'api_key': 'test-key', 'model': 'test-model'}, session=self.session)
        self.photo_uri = encode_data_uri(make_png(), 'image/png')

    def test_preview_request(self):
        self.session.post.return_value = make_response(data=image_response())

        result = self.service.preview_transform(self.photo_uri, "Soft watercolor washes")

        self.assertEqual(result, f"data:image/png;base64,{IMAGE_B64}")
        args, kwargs = self.session.post.call_args
        self.assertTrue(args[0].endswith('/models/test-model:generateContent'))
        self.assertEqual(kwargs['params'], {'key': 'test-key'})
        parts = kwargs['json']['contents'][0]['parts']
        self.assertEqual(parts[0]['text'], "Low resolution preview of: Soft watercolor washes")
        self.assertEqual(parts[1]['inline_data']['mime_type'], 'image/png')
        self.assertEqual(parts[1]['inline_data']['data'], self.photo_uri.split(',', 1)[1])

    def test_final_request_uses_description_as_is(self):
        self.session.post.return_value = make_response(data=image_response('inline_data'))

        self.service.final_transform(self.photo_uri, "Soft watercolor washes")

        parts = self.session.post.call_args[1]['json']['contents'][0]['parts']
        self.assertEqual(parts[0]['text'], "Soft watercolor washes")

    def test_service_error_message_is_passed_through(self):
        """Test that the service's error message is kept verbatim."""
        self.session.post.return_value = make_response(
            status_code=429, data={"error": {"message": "Resource has been exhausted."}}
        )

        with self.assertRaises(TransformError) as ctx:
            self.service.preview_transform(self.photo_uri, "style")

        self.assertEqual(ctx.exception.message, "Resource has been exhausted.")

    def test_error_without_json_body(self):
        response = make_response(status_code=502, text="Bad Gateway")
        response.json.side_effect = ValueError("no json")
        self.session.post.return_value = response

        with self.assertRaises(TransformError) as ctx:
            self.service.final_transform(self.photo_uri, "style")

        self.assertIn("502", ctx.exception.message)

    def test_network_error(self):
        self.session.post.side_effect = requests.ConnectionError("connection refused")

        with self.assertRaises(TransformError) as ctx:
            self.service.final_transform(self.photo_uri, "style")

        self.assertIn("Could not reach", ctx.exception.message)

    def test_missing_api_key(self):
        with mock.patch.dict(os.environ, {'GEMINI_API_KEY': ''}):
            service = GeminiTransformService({}, session=self.session)

        with self.assertRaises(TransformError):
            service.preview_transform(self.photo_uri, "style")
        self.session.post.assert_not_called()

    def test_invalid_photo(self):
        with self.assertRaises(TransformError):
            self.service.preview_transform("not a data uri", "style")

    def test_parse_image_without_image(self):
        with self.assertRaises(TransformError) as ctx:
            GeminiTransformService.parse_image({"candidates": [{"content": {"parts": [{"text": "I can't"}]}}]})
        self.assertIn("I can't", ctx.exception.message)

        with self.assertRaises(TransformError) as ctx:
            GeminiTransformService.parse_image({"promptFeedback": {"blockReason": "SAFETY"}})
        self.assertIn("SAFETY", ctx.exception.message)


class TestLocalTransformService(unittest.TestCase):
    """Test cases for the offline OpenCV service."""

    def setUp(self):
        self.service = LocalTransformService()
        self.photo_uri = encode_data_uri(make_png(640, 480), 'image/png')

    def test_preview_is_downscaled(self):
        result = self.service.preview_transform(self.photo_uri, get_style_preset('watercolor').prompt)

        mime_type, payload = decode_data_uri(result)
        self.assertEqual(mime_type, 'image/png')
        self.assertEqual(load_image(payload).shape, (192, 256, 3))

    def test_final_keeps_small_photos(self):
        result = self.service.final_transform(self.photo_uri, get_style_preset('pixel-art').prompt)

        _, payload = decode_data_uri(result)
        self.assertEqual(load_image(payload).shape, (480, 640, 3))

    def test_every_style_produces_an_image(self):
        image = make_frame(48, 32)
        for style in ART_STYLES:
            result = self.service.apply_style(image, style.prompt)
            self.assertEqual(result.shape, (32, 48, 3), style.id)

    def test_free_text_style(self):
        result = self.service.apply_style(make_frame(48, 32), "something entirely new")
        self.assertEqual(result.shape, (32, 48, 3))

    def test_unreadable_photo(self):
        with self.assertRaises(TransformError):
            self.service.preview_transform(encode_data_uri(b'garbage', 'image/png'), "style")

    def test_resize_max_edge(self):
        self.assertEqual(resize_max_edge(make_frame(400, 100), 200).shape, (50, 200, 3))
        self.assertEqual(resize_max_edge(make_frame(40, 10), 200).shape, (10, 40, 3))


class TestCreateTransformService(unittest.TestCase):

    def test_factory(self):
        self.assertIsInstance(create_transform_service({'api_key': 'key'}), GeminiTransformService)
        self.assertIsInstance(create_transform_service({'api_key': ''}), LocalTransformService)


if __name__ == "__main__":
    unittest.main()
