import asyncio
import time

import pytest

from authcam.camera import CameraAccessError
from authcam.controller import CameraController
from authcam.detection_loop import FaceDetectionLoop, ObjectDetectionLoop
from authcam.models import CameraState, DetectionMode

from conftest import FakeHandle, FakeSource, make_object

INTERVAL = 0.01


def make_controller(devices, sources=None, detections=None, fail=False):
    sources = sources if sources is not None else []

    def open_camera(device_id):
        if fail:
            raise CameraAccessError()
        source = FakeSource()
        source.device_id = device_id
        sources.append(source)
        return source

    detectors = {
        DetectionMode.OBJECT: FakeHandle(detections or [make_object("person"), make_object("cup")]),
        DetectionMode.FACE: FakeHandle([]),
    }
    return CameraController(open_camera=open_camera, list_devices=lambda: list(devices),
                            detectors=detectors, interval=INTERVAL)


def test_start_selects_first_camera_and_runs_loop(devices):
    sources = []
    controller = make_controller(devices, sources)

    async def scenario():
        started = await controller.start()
        await asyncio.sleep(0.03)
        status = controller.status()
        controller.stop()
        return started, status

    started, status = asyncio.run(scenario())
    assert started
    assert status.state == CameraState.ACTIVE
    assert status.selected_camera == "0"
    assert status.detection_count == 2
    assert sources[0].device_id == "0"
    assert controller.detectors[DetectionMode.OBJECT].load_requests == 1


def test_stop_releases_camera_and_cancels_cycles(devices):
    sources = []
    controller = make_controller(devices, sources)
    handle = controller.detectors[DetectionMode.OBJECT]

    async def scenario():
        await controller.start()
        await asyncio.sleep(0.03)
        controller.stop()
        calls = len(handle.calls)
        await asyncio.sleep(0.05)
        return calls

    calls = asyncio.run(scenario())
    assert sources[0].stopped
    assert controller.state == CameraState.IDLE
    assert controller.source is None
    assert len(handle.calls) == calls
    assert controller.status().detections == []


def test_access_denied_sets_error(devices):
    controller = make_controller(devices, fail=True)

    started = asyncio.run(controller.start("0"))
    assert not started
    assert controller.state == CameraState.ERROR
    assert controller.error == "Camera access denied. Please enable camera permissions."


def test_no_devices_is_not_supported():
    controller = make_controller([])

    started = asyncio.run(controller.start())
    assert not started
    assert controller.state == CameraState.ERROR
    assert controller.error == "Camera not supported on this host."


def test_restart_after_error_clears_it(devices):
    controller = make_controller(devices, fail=True)
    asyncio.run(controller.start("0"))

    controller._open_camera = lambda device_id: FakeSource()

    async def scenario():
        started = await controller.start("0")
        controller.stop()
        return started

    assert asyncio.run(scenario())
    assert controller.error is None


def test_mode_switch_cancels_previous_loop(devices):
    controller = make_controller(devices)

    async def scenario():
        await controller.start(mode="object")
        first = controller._loop
        controller.set_mode("face")
        second = controller._loop
        await asyncio.sleep(0.03)
        status = controller.status()
        controller.stop()
        return first, second, status

    first, second, status = asyncio.run(scenario())
    assert isinstance(first, ObjectDetectionLoop)
    assert not first.running
    assert isinstance(second, FaceDetectionLoop)
    assert status.mode == DetectionMode.FACE
    assert status.guidance is not None
    assert status.guidance.message == "No face detected"


def test_set_filter_updates_count(devices):
    controller = make_controller(devices)

    async def scenario():
        await controller.start()
        await asyncio.sleep(0.03)
        controller.set_filter("cup")
        filtered = controller.status()
        controller.set_filter("all")
        restored = controller.status()
        controller.stop()
        return filtered, restored

    filtered, restored = asyncio.run(scenario())
    assert filtered.detection_count == 1
    assert filtered.detections[0].label == "cup"
    assert restored.detection_count == 2


def test_unknown_filter_rejected(devices):
    controller = make_controller(devices)
    with pytest.raises(ValueError):
        controller.set_filter("unicorn")
    assert controller.label_filter == "all"


def test_snapshots_need_active_camera(devices):
    controller = make_controller(devices)
    assert controller.capture_snapshot() is None

    async def scenario():
        await controller.start()
        for _ in range(8):
            controller.capture_snapshot()
        controller.stop()

    asyncio.run(scenario())
    assert len(controller.snapshots) == 6


def test_unexpected_open_failure_sets_error_and_allows_retry(devices):
    controller = make_controller(devices)

    def broken_open(device_id):
        raise RuntimeError("backend failed")

    controller._open_camera = broken_open
    assert not asyncio.run(controller.start("0"))
    assert controller.state == CameraState.ERROR
    assert controller.error == "Camera access denied. Please enable camera permissions."

    controller._open_camera = lambda device_id: FakeSource()

    async def scenario():
        started = await controller.start("0")
        state = controller.state
        controller.stop()
        return started, state

    assert asyncio.run(scenario()) == (True, CameraState.ACTIVE)


def test_stop_then_start_while_first_open_pending_releases_both(devices):
    sources = []
    opens = []

    def open_camera(device_id):
        slow = not opens
        opens.append(device_id)
        if slow:
            time.sleep(0.05)
        source = FakeSource()
        sources.append((slow, source))
        return source

    controller = make_controller(devices)
    controller._open_camera = open_camera

    async def scenario():
        first = asyncio.ensure_future(controller.start("0"))
        await asyncio.sleep(0.01)
        controller.stop()
        second = asyncio.ensure_future(controller.start("0"))
        results = await asyncio.gather(first, second)
        active = controller.source
        controller.stop()
        return results, active

    results, active = asyncio.run(scenario())
    assert results == [False, True]
    slow_source = next(source for slow, source in sources if slow)
    fast_source = next(source for slow, source in sources if not slow)
    assert active is fast_source
    assert slow_source.stopped
    assert fast_source.stopped
    assert controller.source is None


def test_start_on_active_camera_applies_requested_mode(devices):
    controller = make_controller(devices)

    async def scenario():
        await controller.start(mode="object")
        started = await controller.start(mode="face")
        loop = controller._loop
        controller.stop()
        return started, loop

    started, loop = asyncio.run(scenario())
    assert started
    assert controller.mode == DetectionMode.FACE
    assert isinstance(loop, FaceDetectionLoop)
