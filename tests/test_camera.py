import time

import numpy as np
import pytest

from authcam import camera
from authcam.camera import CameraAccessError, CameraStream, enumerate_devices


class FakeCapture:
    opened = {0, 2}
    instances = []

    def __init__(self, target):
        self.target = target
        self.props = {}
        self.released = False
        self.reads = 0
        FakeCapture.instances.append(self)

    def isOpened(self):
        return self.target in self.opened or isinstance(self.target, str)

    def set(self, prop, value):
        self.props[prop] = value

    def get(self, prop):
        return self.props.get(prop, 0)

    def read(self):
        self.reads += 1
        time.sleep(0.005)
        return True, np.zeros((720, 1280, 3), dtype=np.uint8)

    def release(self):
        self.released = True


@pytest.fixture(autouse=True)
def fake_capture(monkeypatch):
    FakeCapture.instances = []
    monkeypatch.setattr(camera.cv2, "VideoCapture", FakeCapture)
    return FakeCapture


def test_enumerate_lists_openable_indices():
    devices = enumerate_devices(max_devices=4)
    assert [(d.device_id, d.label) for d in devices] == [("0", "Camera 1"), ("2", "Camera 3")]
    assert all(cap.released for cap in FakeCapture.instances)


def test_stream_requests_resolution_and_releases_on_stop():
    stream = CameraStream()
    stream.start()
    deadline = time.time() + 1
    while not stream.ready and time.time() < deadline:
        time.sleep(0.01)

    assert stream.ready
    assert (stream.width, stream.height) == (1280, 720)
    cap = stream.cap
    assert cap.target == 0
    assert cap.props[camera.cv2.CAP_PROP_FRAME_WIDTH] == 1280
    assert cap.props[camera.cv2.CAP_PROP_FRAME_HEIGHT] == 720

    first = stream.current_time
    time.sleep(0.05)
    assert stream.current_time >= first

    stream.stop()
    assert cap.released
    assert not stream.ready


def test_device_ids_select_index_or_path():
    stream = CameraStream("2")
    stream.start()
    assert stream.cap.target == 2
    stream.stop()

    stream = CameraStream("rtsp://camera.local/stream")
    stream.start()
    assert stream.cap.target == "rtsp://camera.local/stream"
    stream.stop()


def test_unopenable_device_is_access_denied():
    with pytest.raises(CameraAccessError):
        CameraStream("1").start()
    assert FakeCapture.instances[-1].released
