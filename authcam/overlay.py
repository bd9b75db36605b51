# overlay.py
import cv2
from .guidance import optimal_face_size

BOX_COLOR = (0, 255, 0)
KEYPOINT_COLOR = (0, 0, 255)
GUIDE_COLOR = (255, 255, 255)


class Overlay:
    """Draws detection results onto a copy of the frame."""

    def draw_objects(self, frame, detections):
        annotated_frame = frame.copy()
        for detection in detections:
            bbox = detection.bounding_box
            x1, y1 = int(bbox.x), int(bbox.y)
            x2, y2 = int(bbox.x + bbox.width), int(bbox.y + bbox.height)
            cv2.rectangle(annotated_frame, (x1, y1), (x2, y2), BOX_COLOR, 3)

            text = f"{detection.label} {round(detection.confidence * 100)}%"
            text_size = cv2.getTextSize(text, cv2.FONT_HERSHEY_SIMPLEX, 0.6, 2)[0]
            cv2.rectangle(annotated_frame, (x1, y1 - 25),
                          (x1 + text_size[0] + 10, y1), BOX_COLOR, -1)
            cv2.putText(annotated_frame, text, (x1 + 5, y1 - 7),
                        cv2.FONT_HERSHEY_SIMPLEX, 0.6, (0, 0, 0), 2)
        return annotated_frame

    def draw_faces(self, frame, detections):
        annotated_frame = frame.copy()
        # Only a single face gets a box and the framing guide
        if len(detections) != 1:
            return annotated_frame

        height, width = frame.shape[:2]
        bbox = detections[0].bounding_box
        cv2.rectangle(annotated_frame, (int(bbox.x), int(bbox.y)),
                      (int(bbox.x + bbox.width), int(bbox.y + bbox.height)), BOX_COLOR, 3)
        for keypoint in detections[0].keypoints or []:
            cv2.circle(annotated_frame, (int(keypoint.x), int(keypoint.y)), 3, KEYPOINT_COLOR, -1)

        cv2.circle(annotated_frame, (width // 2, height // 2),
                   int(optimal_face_size(width) / 2), GUIDE_COLOR, 2)
        return annotated_frame
