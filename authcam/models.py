# models.py
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field


class DetectionMode(str, Enum):
    OBJECT = "object"
    FACE = "face"


class CameraState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    ACTIVE = "active"
    ERROR = "error"


class GuidanceType(str, Enum):
    SUCCESS = "success"
    WARNING = "warning"
    INFO = "info"


class BoundingBox(BaseModel):
    x: float
    y: float
    width: float
    height: float


class Keypoint(BaseModel):
    x: float
    y: float


class Detection(BaseModel):
    label: Optional[str] = None
    confidence: float
    bounding_box: BoundingBox
    keypoints: Optional[List[Keypoint]] = None


class FramingGuidance(BaseModel):
    message: str
    type: GuidanceType


class CameraDevice(BaseModel):
    device_id: str
    label: str


class Snapshot(BaseModel):
    captured_at: str
    image: str


class StartCameraRequest(BaseModel):
    device_id: Optional[str] = None
    mode: Optional[DetectionMode] = None


class ModeRequest(BaseModel):
    mode: DetectionMode


class FilterRequest(BaseModel):
    label: str


class CameraStatus(BaseModel):
    state: CameraState
    mode: DetectionMode
    selected_camera: Optional[str] = None
    error: Optional[str] = None
    detector_loading: bool = False
    fps: int = 0
    label_filter: str = "all"
    detections: List[Detection] = Field(default_factory=list)
    detection_count: int = 0
    face_count: int = 0
    guidance: Optional[FramingGuidance] = None
    snapshot_count: int = 0
