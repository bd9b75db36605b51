# camera.py
import logging
import threading
import time
import cv2
from .config import config
from .models import CameraDevice

logger = logging.getLogger(__name__)


class CameraError(Exception):
    """Camera could not be acquired. The message is shown to the user."""


class CameraNotSupportedError(CameraError):
    def __init__(self, message="Camera not supported on this host."):
        super().__init__(message)


class CameraAccessError(CameraError):
    def __init__(self, message="Camera access denied. Please enable camera permissions."):
        super().__init__(message)


def _capture_target(device_id):
    if device_id is None or device_id == "":
        return config["DEFAULT_CAMERA"]
    if str(device_id).isdigit():
        return int(device_id)
    return str(device_id)


def enumerate_devices(max_devices=None):
    """Probe capture indices and list the ones that open."""
    max_devices = config["MAX_CAMERA_PROBE"] if max_devices is None else max_devices
    devices = []
    for index in range(max_devices):
        cap = cv2.VideoCapture(index)
        try:
            if cap.isOpened():
                devices.append(CameraDevice(device_id=str(index), label=f"Camera {index + 1}"))
        finally:
            cap.release()
    return devices


class CameraStream:
    """
    Live frame feed from a capture device.

    A reader thread keeps the latest frame; consumers only see its readiness,
    dimensions, the time of the latest frame and a copy of it. stop() releases
    the device.
    """

    def __init__(self, device_id=None, width=None, height=None):
        self.device_id = device_id
        self.requested_width = width or config["CAMERA_WIDTH"]
        self.requested_height = height or config["CAMERA_HEIGHT"]
        self.cap = None
        self.running = False
        self.frame_buffer = None
        self.frame_time = -1.0
        self.frame_lock = threading.Lock()
        self.resolution = None
        self._started_at = None
        self._reader = None

    def start(self):
        if self.running:
            return
        target = _capture_target(self.device_id)
        self.cap = cv2.VideoCapture(target)
        if not self.cap.isOpened():
            self.cap.release()
            self.cap = None
            logger.error(f"Failed to open camera {target}")
            raise CameraAccessError()

        self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.requested_width)
        self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.requested_height)
        self.resolution = f"{int(self.cap.get(cv2.CAP_PROP_FRAME_WIDTH))}x{int(self.cap.get(cv2.CAP_PROP_FRAME_HEIGHT))}"
        self._started_at = time.monotonic()
        self.running = True
        self._reader = threading.Thread(target=self._read_frames, daemon=True)
        self._reader.start()
        logger.info(f"Started camera {target} at {self.resolution}")

    def stop(self):
        if not self.running and self.cap is None:
            return
        self.running = False
        if self._reader is not None and self._reader is not threading.current_thread():
            self._reader.join(timeout=1.0)
        self._reader = None
        if self.cap:
            self.cap.release()
            self.cap = None
        logger.info(f"Stopped camera {self.device_id if self.device_id is not None else config['DEFAULT_CAMERA']}")

    def _read_frames(self):
        while self.running:
            cap = self.cap
            if cap is None:
                break
            success, frame = cap.read()
            if not success:
                # The feed stalls: current_time stops advancing
                logger.warning(f"Failed to read frame from camera {self.device_id}")
                break
            with self.frame_lock:
                self.frame_buffer = frame
                self.frame_time = time.monotonic() - self._started_at

    @property
    def ready(self):
        return self.running and self.frame_buffer is not None

    @property
    def width(self):
        with self.frame_lock:
            return 0 if self.frame_buffer is None else self.frame_buffer.shape[1]

    @property
    def height(self):
        with self.frame_lock:
            return 0 if self.frame_buffer is None else self.frame_buffer.shape[0]

    @property
    def current_time(self):
        with self.frame_lock:
            return self.frame_time

    def read(self):
        with self.frame_lock:
            return None if self.frame_buffer is None else self.frame_buffer.copy()


def acquire_camera(device_id=None):
    """Open a camera stream at the configured resolution."""
    stream = CameraStream(device_id)
    stream.start()
    return stream
