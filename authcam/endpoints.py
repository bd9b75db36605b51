# endpoints.py
import asyncio
import logging
import cv2
import numpy as np
from fastapi import APIRouter, HTTPException
from fastapi.responses import StreamingResponse
from .controller import CameraController
from .labels import ALL_LABELS, FILTER_LABELS
from .models import CameraStatus, FilterRequest, ModeRequest, Snapshot, StartCameraRequest

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/camera")

# Single camera page per server process
controller = CameraController()


def get_frame():
    """Latest annotated frame as JPEG bytes, or a black frame before the first result."""
    frame = controller.detection.annotated_frame
    if frame is None and controller.source is not None:
        frame = controller.source.read()
    if frame is None:
        frame = np.zeros((480, 640, 3), dtype=np.uint8)
    _, buffer = cv2.imencode('.jpg', frame)
    return buffer.tobytes()


@router.get("/devices")
async def list_devices():
    devices = await controller.list_cameras()
    return {
        "devices": devices,
        "selected": controller.selected_camera,
        "total_count": len(devices)
    }


@router.get("/labels")
async def list_labels():
    return {"labels": [ALL_LABELS, *FILTER_LABELS]}


@router.post("/start", response_model=CameraStatus)
async def start_camera(request: StartCameraRequest):
    if not await controller.start(request.device_id, request.mode):
        raise HTTPException(status_code=503, detail=controller.error or "Camera is starting")
    return controller.status()


@router.post("/stop", response_model=CameraStatus)
async def stop_camera():
    controller.stop()
    return controller.status()


@router.put("/mode", response_model=CameraStatus)
async def set_mode(request: ModeRequest):
    controller.set_mode(request.mode)
    return controller.status()


@router.put("/filter", response_model=CameraStatus)
async def set_filter(request: FilterRequest):
    try:
        controller.set_filter(request.label)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return controller.status()


@router.get("/status", response_model=CameraStatus)
async def camera_status():
    return controller.status()


@router.get("/stream")
async def stream_video():
    if not controller.is_active:
        raise HTTPException(status_code=409, detail="Camera is not active")

    async def generate_frames():
        while controller.is_active:
            frame_bytes = get_frame()
            yield (b'--frame\r\n'
                   b'Content-Type: image/jpeg\r\n\r\n' + frame_bytes + b'\r\n')
            await asyncio.sleep(0.033)
    return StreamingResponse(
        generate_frames(),
        media_type="multipart/x-mixed-replace; boundary=frame",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"}
    )


@router.post("/snapshot", response_model=Snapshot, status_code=201)
async def capture_snapshot():
    snapshot = controller.capture_snapshot()
    if snapshot is None:
        raise HTTPException(status_code=409, detail="Camera is not active")
    return snapshot


@router.get("/snapshots")
async def list_snapshots():
    snapshots = controller.snapshots.list()
    return {
        "snapshots": snapshots,
        "total_count": len(snapshots)
    }


@router.delete("/snapshots")
async def clear_snapshots():
    controller.clear_snapshots()
    return {
        "status": "cleared",
        "message": "All snapshots have been removed."
    }
