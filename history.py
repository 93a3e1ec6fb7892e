# history.py

from collections import deque
from typing import Deque, Optional
import copy
import logging

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 50


class HistoryManager:
    """
    Bounded undo/redo over full engine snapshots (not diffs).

    Each stack keeps at most `capacity` entries; pushing onto a full stack
    evicts its oldest entry. Every snapshot is deep-copied on the way in and
    on the way out, so nothing held here aliases live engine state.

    This class only stores values. It has no reference to the engine or to
    any persistence collaborator.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        self.capacity = max(1, int(capacity))
        self._undo: Deque[dict] = deque(maxlen=self.capacity)
        self._redo: Deque[dict] = deque(maxlen=self.capacity)

    def capture(self, snapshot: dict) -> None:
        # Must run before the mutation it guards
        self._undo.append(copy.deepcopy(snapshot))
        self._redo.clear()

    def undo(self, current: dict) -> Optional[dict]:
        if not self._undo:
            return None
        self._redo.append(copy.deepcopy(current))
        return copy.deepcopy(self._undo.pop())

    def redo(self, current: dict) -> Optional[dict]:
        if not self._redo:
            return None
        self._undo.append(copy.deepcopy(current))
        return copy.deepcopy(self._redo.pop())

    def canUndo(self) -> bool:
        return bool(self._undo)

    def canRedo(self) -> bool:
        return bool(self._redo)

    def undoSize(self) -> int:
        return len(self._undo)

    def redoSize(self) -> int:
        return len(self._redo)

    def undoEntries(self):
        # Oldest first
        return [copy.deepcopy(s) for s in self._undo]

    def clear(self) -> None:
        self._undo.clear()
        self._redo.clear()
        logger.debug("history cleared")
