"""Test doubles shared by the Artify tests."""

import io
import threading
import time

import numpy as np
from PIL import Image

from artify.camera import MediaDevices, MediaStream
from artify.codec import encode_data_uri
from artify.errors import TransformError
from artify.transform import ArtTransformService


def make_frame(width=64, height=48):
    """An RGB frame whose left half is red and right half is blue."""
    frame = np.zeros((height, width, 3), dtype=np.uint8)
    frame[:, :width // 2, 0] = 255
    frame[:, width // 2:, 2] = 255
    return frame


def make_png(width=32, height=24, color=(120, 80, 40)):
    """Encoded PNG bytes of a solid color image."""
    image = Image.new('RGB', (width, height), color)
    buffer = io.BytesIO()
    image.save(buffer, format='PNG')
    return buffer.getvalue()


class FakeStream(MediaStream):
    """In-memory stream returning a fixed frame (or nothing)."""

    def __init__(self, dimensions=(64, 48), frame=None, produce_frames=True):
        self._dimensions = dimensions
        self.frame = frame if frame is not None else make_frame(*dimensions)
        self.produce_frames = produce_frames
        self.release_count = 0

    @property
    def dimensions(self):
        return self._dimensions

    @property
    def released(self):
        return self.release_count > 0

    def read_frame(self):
        if not self.produce_frames or self.released:
            return None
        return self.frame

    def release(self):
        self.release_count += 1


class FakeDevices(MediaDevices):
    """Hands out FakeStreams and records every request."""

    def __init__(self, error=None, produce_frames=True, dimensions=(64, 48), frame=None, open_delay=0.0):
        self.error = error
        self.produce_frames = produce_frames
        self.dimensions = dimensions
        self.frame = frame
        self.open_delay = open_delay
        self.requests = []
        self.streams = []

    def open(self, constraints):
        self.requests.append(constraints)
        if self.open_delay:
            time.sleep(self.open_delay)
        if self.error is not None:
            raise self.error
        stream = FakeStream(self.dimensions, self.frame, self.produce_frames)
        self.streams.append(stream)
        return stream


class FakeTransformService(ArtTransformService):
    """Returns a distinct data URI per style description.

    Calls for a description registered with ``hold()`` block until
    ``release()`` is called for it, so tests control completion order.
    """

    def __init__(self, failures=None):
        self.failures = failures or {}
        self.gates = {}
        self.calls = []

    def hold(self, description):
        self.gates[description] = threading.Event()

    def release(self, description):
        self.gates[description].set()

    @staticmethod
    def result_for(kind, description):
        return encode_data_uri(f"{kind}:{description}".encode('utf-8'), 'image/png')

    def _respond(self, kind, photo_data_uri, description):
        self.calls.append((kind, photo_data_uri, description))
        gate = self.gates.get(description)
        if gate is not None:
            gate.wait(timeout=5)
        if description in self.failures:
            raise TransformError(self.failures[description])
        return self.result_for(kind, description)

    def preview_transform(self, photo_data_uri, style_description):
        return self._respond('preview', photo_data_uri, style_description)

    def final_transform(self, photo_data_uri, style_description):
        return self._respond('final', photo_data_uri, style_description)
