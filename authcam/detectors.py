# detectors.py
import asyncio
import logging
from pathlib import Path
from urllib.parse import urlparse
import cv2
import numpy as np
import requests
from .config import config, use_gpu
from .models import BoundingBox, Detection, DetectionMode, Keypoint

logger = logging.getLogger(__name__)


class ObjectDetector:
    """COCO object detector backed by a YOLOv5 hub model."""

    def __init__(self, model, confidence_threshold=None):
        self.model = model
        self.confidence_threshold = (
            config["CONFIDENCE_THRESHOLD"] if confidence_threshold is None else confidence_threshold
        )

    def detect(self, frame, timestamp_ms=None):
        try:
            # Convert frame to RGB for the model
            frame_rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        except Exception as e:
            raise ValueError("Error converting image to RGB") from e

        results = self.model(frame_rgb)
        predictions = results.pandas().xyxy[0]
        detections = []

        for _, prediction in predictions.iterrows():
            confidence = prediction.get('confidence', 0)
            if confidence < self.confidence_threshold:
                continue
            try:
                x1, y1, x2, y2 = map(float, [prediction['xmin'], prediction['ymin'], prediction['xmax'], prediction['ymax']])
            except (KeyError, TypeError, ValueError):
                continue  # Skip this prediction if conversion fails

            detections.append(Detection(
                label=prediction.get('name', 'unknown'),
                confidence=float(confidence),
                bounding_box=BoundingBox(x=x1, y=y1, width=x2 - x1, height=y2 - y1),
            ))
        return detections


class FaceDetector:
    """BlazeFace detector running through MediaPipe Tasks in video mode."""

    def __init__(self, detector):
        self.detector = detector

    def detect(self, frame, timestamp_ms):
        import mediapipe as mp

        try:
            frame_rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        except Exception as e:
            raise ValueError("Error converting image to RGB") from e

        height, width = frame.shape[:2]
        image = mp.Image(image_format=mp.ImageFormat.SRGB, data=np.ascontiguousarray(frame_rgb))
        result = self.detector.detect_for_video(image, int(timestamp_ms))

        detections = []
        for face in result.detections:
            bbox = face.bounding_box
            score = face.categories[0].score if face.categories else 0.0
            keypoints = [Keypoint(x=kp.x * width, y=kp.y * height) for kp in (face.keypoints or [])]
            detections.append(Detection(
                confidence=float(score or 0.0),
                bounding_box=BoundingBox(
                    x=float(bbox.origin_x),
                    y=float(bbox.origin_y),
                    width=float(bbox.width),
                    height=float(bbox.height),
                ),
                keypoints=keypoints or None,
            ))
        return detections


def load_object_detector():
    import torch

    device = torch.device('cuda' if use_gpu(torch.cuda.is_available()) else 'cpu')
    logger.info(f"Loading object model {config['OBJECT_MODEL_NAME']} on {device}")
    model = torch.hub.load(config["OBJECT_MODEL_REPO"], config["OBJECT_MODEL_NAME"], pretrained=True)
    model.to(device)
    model.eval()
    model.conf = config["CONFIDENCE_THRESHOLD"]
    model.max_det = config["MAX_DETECTIONS"]
    return ObjectDetector(model)


def fetch_face_model():
    """Download the face model once and return its local path."""
    url = config["FACE_MODEL_URL"]
    model_dir = Path(config["MODEL_DIR"])
    model_path = model_dir / Path(urlparse(url).path).name
    if model_path.exists():
        return model_path

    model_dir.mkdir(parents=True, exist_ok=True)
    logger.info(f"Downloading face model from {url}")
    response = requests.get(url, timeout=60)
    response.raise_for_status()
    model_path.write_bytes(response.content)
    return model_path


def load_face_detector():
    from mediapipe.tasks import python as mp_tasks
    from mediapipe.tasks.python import vision

    model_path = str(fetch_face_model())

    def create(delegate):
        options = vision.FaceDetectorOptions(
            base_options=mp_tasks.BaseOptions(model_asset_path=model_path, delegate=delegate),
            running_mode=vision.RunningMode.VIDEO,
        )
        return vision.FaceDetector.create_from_options(options)

    if use_gpu(True):
        try:
            return FaceDetector(create(mp_tasks.BaseOptions.Delegate.GPU))
        except (RuntimeError, NotImplementedError) as e:
            logger.warning(f"GPU delegate unavailable for face detector, using CPU: {e}")
    return FaceDetector(create(mp_tasks.BaseOptions.Delegate.CPU))


class DetectorHandle:
    """
    Lazily loaded, shared detector.

    The first call to ensure_loaded() starts the load in the default executor;
    later calls reuse it. A failed load is logged and clears the loading flag;
    the next ensure_loaded() tries again.
    """

    def __init__(self, name, loader):
        self.name = name
        self._loader = loader
        self.detector = None
        self.loading = False
        self.error = None
        self._future = None

    @property
    def ready(self):
        return self.detector is not None

    def ensure_loaded(self):
        if self._future is not None and self.error is None:
            return self._future
        self.error = None
        self.loading = True
        self._future = asyncio.get_running_loop().run_in_executor(None, self._load)
        return self._future

    def _load(self):
        try:
            detector = self._loader()
        except Exception as e:
            logger.exception(f"Error loading {self.name} detector.")
            self.error = str(e) or e.__class__.__name__
        else:
            self.detector = detector
            logger.info(f"{self.name.capitalize()} detector loaded successfully.")
        finally:
            self.loading = False

    def detect(self, frame, timestamp_ms):
        return self.detector.detect(frame, timestamp_ms)


def default_detectors():
    return {
        DetectionMode.OBJECT: DetectorHandle("object", load_object_detector),
        DetectionMode.FACE: DetectorHandle("face", load_face_detector),
    }
