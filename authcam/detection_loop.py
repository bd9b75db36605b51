# detection_loop.py
"""
Throttled detection loops for the camera page.

Each loop samples the latest frame of a video source, hands it to a detector
off the event loop and replaces the detection state with the result. The next
cycle is scheduled a fixed interval after the previous one completes, so a slow
model lowers the effective rate instead of queuing work. stop() cancels the
pending cycle; anything that runs after it is a no-op.
"""
import asyncio
import logging
import time
from .config import config
from .guidance import framing_guidance
from .labels import ALL_LABELS, filter_detections
from .overlay import Overlay

logger = logging.getLogger(__name__)


class DetectionState:
    """Latest result of a detection loop, read by the status and stream endpoints."""

    def __init__(self, label_filter=ALL_LABELS):
        self.loading = False
        self.fps = 0
        self.label_filter = label_filter
        self.raw_detections = []
        self.detections = []
        self.face_count = 0
        self.guidance = None
        self.annotated_frame = None

    def set_loading(self, loading):
        self.loading = loading

    def set_fps(self, fps):
        self.fps = fps

    def replace_detections(self, raw_detections, detections, annotated_frame):
        self.raw_detections = raw_detections
        self.detections = detections
        self.annotated_frame = annotated_frame

    def replace_guidance(self, guidance, face_count):
        self.guidance = guidance
        self.face_count = face_count


class DetectionLoop:
    mode = None

    def __init__(self, source, detector, state=None, overlay=None, interval=None, clock=time.monotonic):
        self.source = source
        self.detector = detector
        self.state = state or DetectionState()
        self.overlay = overlay or Overlay()
        self.interval = config["DETECTION_INTERVAL"] if interval is None else interval
        self._clock = clock
        self._loop = None
        self._handle = None
        self._task = None
        self._stopped = True
        self._last_frame_time = None
        self._fps_started = None
        self._fps_count = 0

    @property
    def running(self):
        return not self._stopped

    def start(self):
        if not self._stopped:
            return
        self._loop = asyncio.get_running_loop()
        self._stopped = False
        self._last_frame_time = None
        self._task = self._loop.create_task(self._run_cycle())
        logger.info(f"Started {self.mode} detection loop")

    def stop(self):
        if self._stopped:
            return
        self._stopped = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
        logger.info(f"Stopped {self.mode} detection loop")

    def _schedule_next(self):
        if self._stopped:
            return
        self._handle = self._loop.call_later(self.interval, self._spawn_cycle)

    def _spawn_cycle(self):
        self._handle = None
        if self._stopped:
            return
        self._task = self._loop.create_task(self._run_cycle())

    async def _run_cycle(self):
        if self._stopped:
            return
        try:
            await self._cycle()
        except Exception as e:
            logger.exception(f"{self.mode.capitalize()} detection failed: {e}")
        self._schedule_next()

    async def _cycle(self):
        self.state.set_loading(self.detector.loading)
        if not self.detector.ready or not self.source.ready:
            return

        self._tick_fps()

        # Skip inference while the feed has no new frame
        frame_time = self.source.current_time
        if self._last_frame_time is not None and frame_time <= self._last_frame_time:
            return
        self._last_frame_time = frame_time

        frame = self.source.read()
        if frame is None:
            return
        timestamp_ms = int(self._clock() * 1000)
        detections = await self._loop.run_in_executor(None, self.detector.detect, frame, timestamp_ms)
        if self._stopped:
            return
        self._publish(frame, detections)

    def _tick_fps(self):
        now = self._clock()
        if self._fps_started is None:
            self._fps_started = now
            return
        self._fps_count += 1
        if now - self._fps_started >= 1.0:
            self.state.set_fps(self._fps_count)
            self._fps_count = 0
            self._fps_started = now

    def _publish(self, frame, detections):
        raise NotImplementedError


class ObjectDetectionLoop(DetectionLoop):
    mode = "object"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._last_frame = None

    def _publish(self, frame, detections):
        self._last_frame = frame
        visible = filter_detections(detections, self.state.label_filter)
        self.state.replace_detections(detections, visible, self.overlay.draw_objects(frame, visible))

    def set_filter(self, label):
        """Apply a new label filter to the last result without another model call."""
        self.state.label_filter = label
        if self._stopped or self._last_frame is None:
            return
        raw_detections = self.state.raw_detections
        visible = filter_detections(raw_detections, label)
        self.state.replace_detections(raw_detections, visible, self.overlay.draw_objects(self._last_frame, visible))


class FaceDetectionLoop(DetectionLoop):
    mode = "face"

    def _publish(self, frame, detections):
        height, width = frame.shape[:2]
        self.state.replace_detections(detections, detections, self.overlay.draw_faces(frame, detections))
        self.state.replace_guidance(framing_guidance(detections, width, height), len(detections))
