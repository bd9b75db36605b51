import threading

import numpy as np
import pytest

from authcam.models import BoundingBox, CameraDevice, Detection


def make_face(x, y, width, height):
    return Detection(confidence=0.9, bounding_box=BoundingBox(x=x, y=y, width=width, height=height))


def make_object(label, confidence=0.8):
    return Detection(label=label, confidence=confidence,
                     bounding_box=BoundingBox(x=10, y=40, width=50, height=60))


class FakeSource:
    """Video source whose clock advances on every read unless frozen."""

    def __init__(self, width=640, height=480, auto_advance=True):
        self.ready = True
        self.width = width
        self.height = height
        self.current_time = 0.0
        self.auto_advance = auto_advance
        self.reads = 0
        self.stopped = False

    def read(self):
        self.reads += 1
        if self.auto_advance:
            self.current_time += 0.033
        return np.full((self.height, self.width, 3), self.reads % 255, dtype=np.uint8)

    def stop(self):
        self.stopped = True


class FakeHandle:
    """Detector handle that is already loaded and returns canned detections."""

    def __init__(self, detections=None, ready=True, loading=False):
        self.detections = detections or []
        self.ready = ready
        self.loading = loading
        self.calls = []
        self.load_requests = 0
        self.lock = threading.Lock()

    def ensure_loaded(self):
        self.load_requests += 1

    def detect(self, frame, timestamp_ms):
        with self.lock:
            self.calls.append(timestamp_ms)
        return list(self.detections)


@pytest.fixture
def source():
    return FakeSource()


@pytest.fixture
def devices():
    return [CameraDevice(device_id="0", label="Camera 1")]
