# labels.py
from typing import List
from .models import Detection

ALL_LABELS = "all"

# Object classes offered by the label filter
FILTER_LABELS = (
    'person', 'bicycle', 'car', 'motorcycle', 'airplane', 'bus', 'train', 'truck', 'boat',
    'bottle', 'cup', 'fork', 'knife', 'spoon', 'bowl', 'banana', 'apple', 'sandwich',
    'orange', 'broccoli', 'carrot', 'hot dog', 'pizza', 'donut', 'cake', 'chair', 'couch',
    'potted plant', 'bed', 'dining table', 'toilet', 'tv', 'laptop', 'mouse', 'remote',
    'keyboard', 'cell phone', 'microwave', 'oven', 'toaster', 'sink', 'refrigerator', 'book',
    'clock', 'vase', 'scissors', 'teddy bear', 'hair drier', 'toothbrush',
)


def is_valid_filter(label: str) -> bool:
    return label == ALL_LABELS or label in FILTER_LABELS


def filter_detections(detections: List[Detection], label: str) -> List[Detection]:
    """Keep only detections carrying the selected label ("all" keeps everything)."""
    if label == ALL_LABELS:
        return list(detections)
    return [d for d in detections if d.label == label]
