# config.py
import logging
import os
from pathlib import Path

# Configuration (can be overridden with environment variables)
config = {
    "HOST": os.environ.get("HOST", "0.0.0.0"),
    "PORT": int(os.environ.get("PORT", 8026)),
    "LOG_LEVEL": os.environ.get("LOG_LEVEL", "INFO"),
    "APP_BASE_URL": os.environ.get("APP_BASE_URL", "http://localhost:8026").rstrip("/"),
    "AUTH0_DOMAIN": os.environ.get("AUTH0_DOMAIN", ""),
    "AUTH0_CLIENT_ID": os.environ.get("AUTH0_CLIENT_ID", ""),
    "AUTH0_CLIENT_SECRET": os.environ.get("AUTH0_CLIENT_SECRET", ""),
    "AUTH0_SECRET": os.environ.get("AUTH0_SECRET", "change-me"),
    "AUTH0_SCOPE": os.environ.get("AUTH0_SCOPE", "openid profile email"),
    "SESSION_MAX_AGE": int(os.environ.get("SESSION_MAX_AGE", 3 * 24 * 3600)),
    "CAMERA_WIDTH": int(os.environ.get("CAMERA_WIDTH", 1280)),
    "CAMERA_HEIGHT": int(os.environ.get("CAMERA_HEIGHT", 720)),
    "DEFAULT_CAMERA": int(os.environ.get("DEFAULT_CAMERA", 0)),
    "MAX_CAMERA_PROBE": int(os.environ.get("MAX_CAMERA_PROBE", 4)),
    "DETECTION_INTERVAL": float(os.environ.get("DETECTION_INTERVAL", 0.1)),
    "OBJECT_MODEL_REPO": os.environ.get("OBJECT_MODEL_REPO", "ultralytics/yolov5"),
    "OBJECT_MODEL_NAME": os.environ.get("OBJECT_MODEL_NAME", "yolov5s"),
    "CONFIDENCE_THRESHOLD": float(os.environ.get("CONFIDENCE_THRESHOLD", 0.5)),
    "MAX_DETECTIONS": int(os.environ.get("MAX_DETECTIONS", 20)),
    "FACE_MODEL_URL": os.environ.get(
        "FACE_MODEL_URL",
        "https://storage.googleapis.com/mediapipe-models/face_detector/"
        "blaze_face_short_range/float16/1/blaze_face_short_range.tflite",
    ),
    "MODEL_DIR": Path(os.environ.get("MODEL_DIR", Path(__file__).resolve().parent.parent / "models")),
    "USE_GPU": os.environ.get("USE_GPU", "auto"),
    "SNAPSHOT_LIMIT": int(os.environ.get("SNAPSHOT_LIMIT", 6)),
}

# Configure logging
logging.basicConfig(
    level=getattr(logging, config["LOG_LEVEL"].upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


def use_gpu(available):
    """Resolve the USE_GPU setting against what the runtime reports."""
    if config["USE_GPU"] == "auto":
        return available
    return config["USE_GPU"].lower() == "true" and available
