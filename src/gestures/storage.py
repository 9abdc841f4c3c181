"""
Gesture persistence and the export/import document format.

A dataset document looks like:

    {"version": "1.0", "createdAt": "<ISO8601>", "totalGestures": 2,
     "totalFrames": 7, "gestures": [...]}

Each gesture is written with camelCase keys. The reader also accepts the
keys used by the older browser version of the trainer (landmarksNormalizados,
frameIndex, landmarks as a list of hands, handedness as a list of objects).
"""
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
import json
import logging

from .errors import InputRejected, StorageError
from .landmarks import Landmark, to_landmark
from .library import GestureLibrary, ImportPolicy
from .models import (
    CapturedFrame, ConsistencyReport, ConsistencyStats, Gesture,
)
from .quality import BoundingBox, HandSize

logger = logging.getLogger(__name__)

FORMAT_VERSION = "1.0"


# --- timestamps ---

def format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_timestamp(value: Any) -> datetime:
    if isinstance(value, (int, float)):
        # Epoch milliseconds
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


# --- encoding ---

def _landmarks_to_list(landmarks) -> List[Dict[str, float]]:
    return [{"x": p.x, "y": p.y, "z": p.z} for p in landmarks]


def frame_to_dict(frame: CapturedFrame, gesture_name: str = "") -> Dict[str, Any]:
    data = {
        "id": frame.id,
        "timestamp": format_timestamp(frame.timestamp),
        "landmarks": [_landmarks_to_list(frame.raw_landmarks)] if frame.raw_landmarks else [],
        "normalizedLandmarks": _landmarks_to_list(frame.normalized_landmarks),
        "handedness": frame.handedness,
        "gestureName": gesture_name,
        "sequenceIndex": frame.sequence_index,
        "quality": frame.quality,
    }
    if frame.bounding_box is not None:
        box = frame.bounding_box
        data["boundingBox"] = {
            "minX": box.min_x, "minY": box.min_y,
            "maxX": box.max_x, "maxY": box.max_y,
            "width": box.width, "height": box.height,
            "center": {"x": box.center[0], "y": box.center[1]},
        }
    if frame.hand_size is not None:
        size = frame.hand_size
        data["handSize"] = {"length": size.length, "width": size.width, "area": size.area}
    return data


def report_to_dict(report: ConsistencyReport) -> Dict[str, Any]:
    stats = report.stats
    return {
        "isConsistent": report.is_consistent,
        "issues": list(report.issues),
        "stats": {
            "avgQuality": stats.avg_quality,
            "avgHandSizeArea": stats.avg_hand_size_area,
            "sizeVariation": stats.size_variation,
            "avgIntervalMs": stats.avg_interval_ms,
        },
    }


def gesture_to_dict(gesture: Gesture) -> Dict[str, Any]:
    data = {
        "id": gesture.id,
        "name": gesture.name,
        "frames": [frame_to_dict(f, gesture.name) for f in gesture.frames],
        "frameCount": gesture.frame_count,
        "createdAt": format_timestamp(gesture.created_at),
        "isSequential": gesture.is_sequential,
    }
    if gesture.consistency_report is not None:
        data["consistencyReport"] = report_to_dict(gesture.consistency_report)
    return data


def library_to_document(library: GestureLibrary, created_at: Optional[datetime] = None) -> Dict[str, Any]:
    created_at = created_at or datetime.now(timezone.utc)
    return {
        "version": FORMAT_VERSION,
        "createdAt": format_timestamp(created_at),
        "totalGestures": len(library),
        "totalFrames": library.total_frames,
        "gestures": [gesture_to_dict(g) for g in library],
    }


# --- decoding ---

def _parse_landmark_list(value) -> Tuple[Landmark, ...]:
    if not value:
        return ()
    # Raw landmarks are stored as a list of hands; only the first is kept
    first = value[0]
    if isinstance(first, (list, tuple)) and (not first or not isinstance(first[0], (int, float))):
        value = value[0]
    return tuple(to_landmark(p) for p in value)


def _parse_handedness(value) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, list) and value:
        first = value[0]
        if isinstance(first, dict):
            return str(first.get("label") or first.get("categoryName") or "Unknown")
        if isinstance(first, str):
            return first
    return "Unknown"


def frame_from_dict(data: Dict[str, Any], position: int) -> CapturedFrame:
    raw = _parse_landmark_list(data.get("landmarks"))
    normalized = _parse_landmark_list(
        data.get("normalizedLandmarks", data.get("landmarksNormalizados"))
    )
    if not raw and not normalized:
        raise InputRejected(f"Frame {position} has no landmarks")

    box = None
    if data.get("boundingBox"):
        b = data["boundingBox"]
        box = BoundingBox(float(b["minX"]), float(b["minY"]), float(b["maxX"]), float(b["maxY"]))

    size = None
    if data.get("handSize"):
        s = data["handSize"]
        size = HandSize(length=float(s["length"]), width=float(s["width"]))

    index = data.get("sequenceIndex", data.get("frameIndex", position))
    return CapturedFrame(
        id=data.get("id", position),
        timestamp=parse_timestamp(data.get("timestamp", 0)),
        raw_landmarks=raw,
        normalized_landmarks=normalized,
        handedness=_parse_handedness(data.get("handedness")),
        sequence_index=int(index),
        quality=data.get("quality", 100),
        bounding_box=box,
        hand_size=size,
    )


def report_from_dict(data: Dict[str, Any]) -> ConsistencyReport:
    stats = data.get("stats") or {}
    return ConsistencyReport(
        issues=tuple(data.get("issues") or ()),
        stats=ConsistencyStats(
            avg_quality=stats.get("avgQuality", 0.0),
            avg_hand_size_area=stats.get("avgHandSizeArea", 0.0),
            size_variation=stats.get("sizeVariation", 0.0),
            avg_interval_ms=stats.get("avgIntervalMs", 0.0),
        ),
    )


def gesture_from_dict(data: Dict[str, Any]) -> Gesture:
    if not isinstance(data, dict):
        raise InputRejected("Gesture entry must be an object")
    frames_data = data.get("frames")
    if not isinstance(frames_data, list) or not frames_data:
        raise InputRejected(f"Gesture '{data.get('name')}' has no frames")

    try:
        frames = tuple(frame_from_dict(f, i) for i, f in enumerate(frames_data))
        report = data.get("consistencyReport")
        return Gesture(
            id=data["id"],
            name=str(data["name"]).strip(),
            frames=frames,
            created_at=parse_timestamp(data.get("createdAt", 0)),
            consistency_report=report_from_dict(report) if report else None,
        )
    except (KeyError, IndexError, TypeError, ValueError) as e:
        raise InputRejected(f"Malformed gesture '{data.get('name')}': {e}") from e


def gestures_from_document(document: Any) -> List[Gesture]:
    """
    Parse the gesture list out of a dataset document.

    Raises:
        InputRejected: the document is not a dataset or a gesture is malformed.
    """
    if not isinstance(document, dict) or not isinstance(document.get("gestures"), list):
        raise InputRejected("Invalid dataset: expected an object with a 'gestures' list")
    return [gesture_from_dict(g) for g in document["gestures"]]


def import_document(library: GestureLibrary, document: Any,
                    policy: ImportPolicy = ImportPolicy.MERGE) -> int:
    """Import a parsed dataset document into the library; returns gesture count."""
    gestures = gestures_from_document(document)
    library.merge(gestures, policy)
    return len(gestures)


def export_to_file(library: GestureLibrary, path: Path) -> None:
    document = library_to_document(library)
    try:
        with open(path, 'w') as f:
            json.dump(document, f, indent=2)
    except OSError as e:
        raise StorageError(f"Could not write {path}: {e}") from e
    logger.info("Exported %d gestures to %s", len(library), path)


def read_document(path: Path) -> Any:
    try:
        with open(path, 'r') as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise InputRejected(f"{path} is not valid JSON: {e}") from e
    except OSError as e:
        raise StorageError(f"Could not read {path}: {e}") from e


def import_from_file(library: GestureLibrary, path: Path,
                     policy: ImportPolicy = ImportPolicy.MERGE) -> int:
    count = import_document(library, read_document(path), policy)
    logger.info("Imported %d gestures from %s (%s)", count, path, policy.value)
    return count


# --- stores ---

class GestureStore(ABC):
    """Load/save contract for a gesture library, independent of backing store."""

    @abstractmethod
    def load(self) -> GestureLibrary:
        ...

    @abstractmethod
    def save(self, library: GestureLibrary) -> None:
        ...


class MemoryStore(GestureStore):
    """Keeps the serialized library as a string, like a key-value store entry."""

    def __init__(self, data: Optional[str] = None):
        self.data = data

    def load(self) -> GestureLibrary:
        if not self.data:
            return GestureLibrary()
        try:
            document = json.loads(self.data)
        except json.JSONDecodeError as e:
            raise StorageError(f"Stored library is not valid JSON: {e}") from e
        return GestureLibrary(gestures_from_document(document))

    def save(self, library: GestureLibrary) -> None:
        self.data = json.dumps(library_to_document(library))


class JsonFileStore(GestureStore):
    """Stores the library as a dataset document in a local JSON file."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> GestureLibrary:
        if not self.path.exists():
            return GestureLibrary()
        try:
            document = read_document(self.path)
            library = GestureLibrary(gestures_from_document(document))
        except InputRejected as e:
            raise StorageError(f"Stored library at {self.path} is corrupt: {e}") from e
        logger.info("Loaded %d gestures from %s", len(library), self.path)
        return library

    def save(self, library: GestureLibrary) -> None:
        document = library_to_document(library)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, 'w') as f:
                json.dump(document, f, indent=2)
            tmp_path.replace(self.path)
        except OSError as e:
            raise StorageError(f"Could not save library to {self.path}: {e}") from e
        logger.debug("Saved %d gestures to %s", len(library), self.path)
