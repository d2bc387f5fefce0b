"""Tests for the command-line interface."""

import contextlib
import io
import json
import os
import tempfile
import unittest
from unittest import mock

from artify.cli.commands import main
from artify.codec import load_image
from tests.helpers import make_png

NO_API_KEY = {'GEMINI_API_KEY': '', 'GOOGLE_API_KEY': '', 'ARTIFY_COLLAGE_PATH': '', 'ARTIFY_LOG_LEVEL': ''}


class TestCLI(unittest.TestCase):
    """Test cases for the artify command."""

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.collage_path = os.path.join(self.temp_dir.name, 'collage.json')
        self.config_path = os.path.join(self.temp_dir.name, 'artify.json')
        with open(self.config_path, 'w', encoding='utf-8') as f:
            json.dump({'api_key': '', 'collage_path': self.collage_path}, f)

        self.input_path = os.path.join(self.temp_dir.name, 'photo.png')
        with open(self.input_path, 'wb') as f:
            f.write(make_png(64, 48))

        env_patch = mock.patch.dict(os.environ, NO_API_KEY)
        env_patch.start()
        self.addCleanup(env_patch.stop)

    def tearDown(self):
        self.temp_dir.cleanup()

    def run_cli(self, *argv):
        stdout = io.StringIO()
        with contextlib.redirect_stdout(stdout):
            code = main(['-c', self.config_path] + list(argv))
        return code, stdout.getvalue()

    def test_styles_json(self):
        code, output = self.run_cli('styles', '--json')

        self.assertEqual(code, 0)
        listing = json.loads(output)
        self.assertIn("Painting Styles", listing)
        self.assertIn('watercolor', [style['id'] for style in listing["Painting Styles"]])

    def test_styles_unknown_category(self):
        code, _ = self.run_cli('styles', '--category', 'Sculpture')
        self.assertEqual(code, 1)

    def test_transform_and_save(self):
        """Test transforming a photo and saving it to the collage."""
        output_path = os.path.join(self.temp_dir.name, 'out', 'art.png')

        code, _ = self.run_cli('transform', self.input_path, '-s', 'watercolor', '-o', output_path, '--save')

        self.assertEqual(code, 0)
        self.assertEqual(load_image(output_path).shape, (48, 64, 3))

        code, output = self.run_cli('collage', '--json')
        self.assertEqual(code, 0)
        entries = json.loads(output)
        self.assertEqual(len(entries), 1)
        self.assertEqual(entries[0]['styleName'], "Watercolor")

    def test_preview(self):
        output_path = os.path.join(self.temp_dir.name, 'preview.png')

        code, _ = self.run_cli('preview', self.input_path, '-s', 'Pixel Art', '-o', output_path)

        self.assertEqual(code, 0)
        self.assertTrue(os.path.exists(output_path))

    def test_missing_input(self):
        code, _ = self.run_cli('preview', os.path.join(self.temp_dir.name, 'missing.png'), '-s', 'watercolor')
        self.assertEqual(code, 1)

    def test_unknown_style(self):
        code, _ = self.run_cli('preview', self.input_path, '-s', 'no-such-style')
        self.assertEqual(code, 1)

    def test_unsupported_input(self):
        gif_path = os.path.join(self.temp_dir.name, 'photo.gif')
        with open(gif_path, 'wb') as f:
            f.write(b'GIF89a')

        code, _ = self.run_cli('preview', gif_path, '-s', 'watercolor')

        self.assertEqual(code, 1)

    def test_empty_collage(self):
        code, output = self.run_cli('collage')
        self.assertEqual(code, 0)
        self.assertIn("empty", output)

    def test_log_level_from_config(self):
        """Test that the configured log level is used unless -v is given."""
        with open(self.config_path, 'w', encoding='utf-8') as f:
            json.dump({'collage_path': self.collage_path, 'log_level': 'WARNING'}, f)

        with mock.patch('artify.cli.commands.configure_logging') as configure:
            self.run_cli('styles')
            configure.assert_called_once_with('WARNING')

        with mock.patch('artify.cli.commands.configure_logging') as configure:
            stdout = io.StringIO()
            with contextlib.redirect_stdout(stdout):
                main(['-c', self.config_path, '-v', 'styles'])
            configure.assert_called_once_with('DEBUG')

    def test_broken_config(self):
        with open(self.config_path, 'w', encoding='utf-8') as f:
            f.write("[1, 2]")

        code, _ = self.run_cli('styles')

        self.assertEqual(code, 1)

    def test_no_command(self):
        code, _ = self.run_cli()
        self.assertEqual(code, 1)


if __name__ == "__main__":
    unittest.main()
