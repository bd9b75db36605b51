# guidance.py
"""
Framing guidance for the face detection mode.

Given the faces found in one frame, tell the user how to reposition so a single
face sits centered at a comfortable size. Checks run in a fixed order and the
first one that matches produces the message.
"""
from typing import List
from .models import Detection, FramingGuidance, GuidanceType

# Target face size as a fraction of the frame width
OPTIMAL_SIZE_RATIO = 0.3
MIN_SIZE_FACTOR = 0.7
MAX_SIZE_FACTOR = 1.3
# Allowed center offset as a fraction of the frame dimension
OFFSET_TOLERANCE = 0.1

NO_FACE = FramingGuidance(message="No face detected", type=GuidanceType.WARNING)
MULTIPLE_FACES = FramingGuidance(message="Multiple faces detected", type=GuidanceType.INFO)
MOVE_CLOSER = FramingGuidance(message="Move closer", type=GuidanceType.INFO)
MOVE_BACK = FramingGuidance(message="Move back", type=GuidanceType.INFO)
MOVE_LEFT = FramingGuidance(message="Move left", type=GuidanceType.INFO)
MOVE_RIGHT = FramingGuidance(message="Move right", type=GuidanceType.INFO)
MOVE_UP = FramingGuidance(message="Move up", type=GuidanceType.INFO)
MOVE_DOWN = FramingGuidance(message="Move down", type=GuidanceType.INFO)
PERFECT = FramingGuidance(message="Perfect framing!", type=GuidanceType.SUCCESS)


def optimal_face_size(frame_width: float) -> float:
    return frame_width * OPTIMAL_SIZE_RATIO


def framing_guidance(faces: List[Detection], frame_width: float, frame_height: float) -> FramingGuidance:
    """
    Derive the guidance message for one processed frame.

    Zero faces gives a warning and several faces an informational message,
    whatever their boxes. For a single face the size checks take priority over
    the horizontal offset, which takes priority over the vertical one.
    """
    if not faces:
        return NO_FACE
    if len(faces) > 1:
        return MULTIPLE_FACES

    bbox = faces[0].bounding_box
    center_x = bbox.x + bbox.width / 2
    center_y = bbox.y + bbox.height / 2
    frame_center_x = frame_width / 2
    frame_center_y = frame_height / 2

    face_size = (bbox.width + bbox.height) / 2
    optimal_size = optimal_face_size(frame_width)

    if face_size < optimal_size * MIN_SIZE_FACTOR:
        return MOVE_CLOSER
    if face_size > optimal_size * MAX_SIZE_FACTOR:
        return MOVE_BACK
    if abs(center_x - frame_center_x) > frame_width * OFFSET_TOLERANCE:
        # Directions are from the user's side of the camera.
        return MOVE_RIGHT if center_x < frame_center_x else MOVE_LEFT
    if abs(center_y - frame_center_y) > frame_height * OFFSET_TOLERANCE:
        return MOVE_DOWN if center_y < frame_center_y else MOVE_UP
    return PERFECT
