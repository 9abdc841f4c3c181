"""
In-memory gesture library.
"""
from enum import Enum
from typing import Iterable, Iterator, List, Optional
import dataclasses
import logging

from .errors import GestureNotFound, InputRejected
from .models import Gesture

logger = logging.getLogger(__name__)


class ImportPolicy(Enum):
    """How imported gestures combine with the ones already stored."""
    REPLACE = "replace"  # Discard the existing library
    MERGE = "merge"      # Overwrite same-name gestures, append the rest


class GestureLibrary:
    """
    Ordered collection of gestures, unique by id.

    Names are not required to be unique; name collisions only matter when
    importing with ImportPolicy.MERGE.
    """

    def __init__(self, gestures: Optional[Iterable[Gesture]] = None):
        self._gestures: List[Gesture] = []
        for gesture in gestures or ():
            self.add(gesture)

    def __iter__(self) -> Iterator[Gesture]:
        return iter(list(self._gestures))

    def __len__(self) -> int:
        return len(self._gestures)

    def __bool__(self) -> bool:
        return bool(self._gestures)

    def __eq__(self, other) -> bool:
        if not isinstance(other, GestureLibrary):
            return NotImplemented
        return self._gestures == other._gestures

    def __repr__(self) -> str:
        return f"GestureLibrary({[g.name for g in self._gestures]!r})"

    @property
    def gestures(self) -> List[Gesture]:
        return list(self._gestures)

    @property
    def total_frames(self) -> int:
        return sum(g.frame_count for g in self._gestures)

    def get(self, gesture_id) -> Optional[Gesture]:
        for gesture in self._gestures:
            if gesture.id == gesture_id:
                return gesture
        return None

    def require(self, gesture_id) -> Gesture:
        gesture = self.get(gesture_id)
        if gesture is None:
            raise GestureNotFound(gesture_id)
        return gesture

    def index_of(self, gesture_id) -> int:
        for i, gesture in enumerate(self._gestures):
            if gesture.id == gesture_id:
                return i
        return -1

    def find_by_name(self, name: str) -> Optional[Gesture]:
        for gesture in self._gestures:
            if gesture.name == name:
                return gesture
        return None

    def next_id(self, candidate: int) -> int:
        """Smallest id >= candidate that no stored gesture uses."""
        used = {g.id for g in self._gestures}
        while candidate in used:
            candidate += 1
        return candidate

    def add(self, gesture: Gesture) -> None:
        if self.get(gesture.id) is not None:
            raise InputRejected(f"Gesture id {gesture.id} already exists")
        self._gestures.append(gesture)

    def remove(self, gesture_id) -> Gesture:
        index = self.index_of(gesture_id)
        if index < 0:
            raise GestureNotFound(gesture_id)
        return self._gestures.pop(index)

    def clear(self) -> None:
        self._gestures = []

    def replace_with(self, gestures: Iterable[Gesture]) -> None:
        self._gestures = list(GestureLibrary(gestures)._gestures)

    def merge(self, gestures: Iterable[Gesture], policy: ImportPolicy = ImportPolicy.MERGE) -> None:
        """
        Combine imported gestures with the library.

        Works on a copy and swaps it in at the end, so a failure halfway leaves
        the library untouched.
        """
        incoming = list(gestures)

        if policy is ImportPolicy.REPLACE:
            self.replace_with(incoming)
            logger.info("Library replaced with %d imported gestures", len(incoming))
            return

        merged = list(self._gestures)
        for gesture in incoming:
            existing = next((i for i, g in enumerate(merged) if g.name == gesture.name), None)
            used = {g.id for i, g in enumerate(merged) if i != existing}
            if gesture.id in used:
                new_id = gesture.id
                while new_id in used:
                    new_id += 1
                gesture = dataclasses.replace(gesture, id=new_id)

            if existing is not None:
                merged[existing] = gesture
            else:
                merged.append(gesture)

        self._gestures = merged
        logger.info("Merged %d imported gestures, library now holds %d", len(incoming), len(merged))
