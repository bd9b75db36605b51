# snapshots.py
import base64
import datetime
from collections import deque
import cv2
from .config import config
from .models import Snapshot


def encode_png_data_url(frame):
    ok, buffer = cv2.imencode('.png', frame)
    if not ok:
        raise ValueError("Error encoding snapshot as PNG")
    return "data:image/png;base64," + base64.b64encode(buffer).decode('utf-8')


class SnapshotStore:
    """Keeps the most recent snapshots, newest first."""

    def __init__(self, limit=None):
        self.limit = config["SNAPSHOT_LIMIT"] if limit is None else limit
        self._snapshots = deque(maxlen=self.limit)

    def capture(self, frame):
        snapshot = Snapshot(
            captured_at=datetime.datetime.now().isoformat(),
            image=encode_png_data_url(frame),
        )
        # appendleft on a bounded deque drops the oldest from the right
        self._snapshots.appendleft(snapshot)
        return snapshot

    def list(self):
        return list(self._snapshots)

    def clear(self):
        self._snapshots.clear()

    def __len__(self):
        return len(self._snapshots)
