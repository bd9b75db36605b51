# controller.py
import asyncio
import logging
from .camera import (CameraAccessError, CameraError, CameraNotSupportedError, acquire_camera,
                     enumerate_devices)
from .detection_loop import DetectionState, FaceDetectionLoop, ObjectDetectionLoop
from .detectors import default_detectors
from .labels import ALL_LABELS, is_valid_filter
from .models import CameraState, CameraStatus, DetectionMode
from .snapshots import SnapshotStore

logger = logging.getLogger(__name__)

LOOP_CLASSES = {
    DetectionMode.OBJECT: ObjectDetectionLoop,
    DetectionMode.FACE: FaceDetectionLoop,
}


class CameraController:
    """
    State behind the camera page: which camera is open, which detection mode
    runs over it, the current detection state and the snapshot gallery.

    States move idle -> loading -> active, or to error when the camera cannot
    be acquired. Any running detection loop is cancelled before a new one
    starts or the camera is released.
    """

    def __init__(self, open_camera=acquire_camera, list_devices=enumerate_devices,
                 detectors=None, overlay=None, interval=None):
        self._open_camera = open_camera
        self._list_devices = list_devices
        self.detectors = detectors if detectors is not None else default_detectors()
        self.overlay = overlay
        self.interval = interval
        self.state = CameraState.IDLE
        self.mode = DetectionMode.OBJECT
        self.label_filter = ALL_LABELS
        self.selected_camera = None
        self.devices = []
        self.error = None
        self.source = None
        self.detection = DetectionState()
        self.snapshots = SnapshotStore()
        self._loop = None
        self._generation = 0

    @property
    def is_active(self):
        return self.state == CameraState.ACTIVE

    async def list_cameras(self):
        try:
            self.devices = await asyncio.get_running_loop().run_in_executor(None, self._list_devices)
        except Exception as e:
            logger.exception(f"Error enumerating cameras: {e}")
            self.devices = []
        if self.devices and not self.selected_camera:
            self.selected_camera = self.devices[0].device_id
        return self.devices

    async def start(self, device_id=None, mode=None):
        if self.is_active:
            if mode is not None:
                self.set_mode(mode)
            return True
        if self.state == CameraState.LOADING:
            return False
        if mode is not None:
            self.mode = DetectionMode(mode)
        if device_id is not None:
            self.selected_camera = device_id

        self._generation += 1
        generation = self._generation
        self.state = CameraState.LOADING
        self.error = None
        try:
            if self.selected_camera is None and not await self.list_cameras():
                raise CameraNotSupportedError()
            source = await asyncio.get_running_loop().run_in_executor(
                None, self._open_camera, self.selected_camera)
        except CameraError as e:
            logger.error(f"Camera error: {e}")
            return self._fail(generation, str(e))
        except Exception as e:
            logger.exception(f"Error opening camera {self.selected_camera}: {e}")
            return self._fail(generation, str(CameraAccessError()))

        if generation != self._generation:
            # Stopped (and maybe restarted) while this camera was opening
            source.stop()
            return False
        self.source = source
        self.state = CameraState.ACTIVE
        self._start_loop()
        return True

    def _fail(self, generation, message):
        if generation == self._generation:
            self.source = None
            self.error = message
            self.state = CameraState.ERROR
        return False

    def stop(self):
        self._generation += 1
        self._stop_loop()
        if self.source is not None:
            self.source.stop()
            self.source = None
        self.detection = DetectionState(label_filter=self.label_filter)
        if self.state != CameraState.ERROR:
            self.state = CameraState.IDLE

    def set_mode(self, mode):
        mode = DetectionMode(mode)
        if mode == self.mode:
            return
        self._stop_loop()
        self.mode = mode
        if self.is_active:
            self._start_loop()

    def set_filter(self, label):
        if not is_valid_filter(label):
            raise ValueError(f"Unknown object label: {label}")
        self.label_filter = label
        if isinstance(self._loop, ObjectDetectionLoop):
            self._loop.set_filter(label)

    def capture_snapshot(self):
        if not self.is_active or self.source is None:
            return None
        frame = self.source.read()
        if frame is None:
            return None
        return self.snapshots.capture(frame)

    def clear_snapshots(self):
        self.snapshots.clear()

    def shutdown(self):
        self.stop()

    def _start_loop(self):
        self._stop_loop()
        handle = self.detectors[self.mode]
        handle.ensure_loaded()
        self.detection = DetectionState(label_filter=self.label_filter)
        loop_class = LOOP_CLASSES[self.mode]
        self._loop = loop_class(self.source, handle, self.detection,
                                overlay=self.overlay, interval=self.interval)
        self._loop.start()

    def _stop_loop(self):
        if self._loop is not None:
            self._loop.stop()
            self._loop = None

    def status(self):
        detection = self.detection
        return CameraStatus(
            state=self.state,
            mode=self.mode,
            selected_camera=self.selected_camera,
            error=self.error,
            detector_loading=self.is_active and self.detectors[self.mode].loading,
            fps=detection.fps,
            label_filter=self.label_filter,
            detections=detection.detections,
            detection_count=len(detection.detections),
            face_count=detection.face_count,
            guidance=detection.guidance if self.mode == DetectionMode.FACE else None,
            snapshot_count=len(self.snapshots),
        )
