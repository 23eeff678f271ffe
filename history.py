from collections import deque
from dataclasses import dataclass
from typing import Optional

import numpy as np


@dataclass(frozen=True, eq=False)
class HistoryEntry:
    """A read-only full copy of the pixel buffer."""
    pixels: np.ndarray
    width: int
    height: int

    @classmethod
    def capture(cls, pixels: np.ndarray) -> "HistoryEntry":
        copy = pixels.copy()
        copy.flags.writeable = False
        height, width = copy.shape[:2]
        return cls(copy, width, height)

    def restore(self) -> np.ndarray:
        """Return a writable copy of the captured pixels."""
        return self.pixels.copy()


class HistoryStack:
    """
    Undo and redo stacks of whole-buffer snapshots.

    With a `limit`, the oldest entries are dropped once a stack is full.
    """

    def __init__(self, limit: Optional[int] = None):
        if limit is not None and limit < 1:
            raise ValueError(f"History limit must be positive, got {limit}")
        self.limit = limit
        self.undo_stack = deque(maxlen=limit)
        self.redo_stack = deque(maxlen=limit)

    def snapshot(self, pixels: np.ndarray) -> None:
        """Push a copy of `pixels` for undo. A new action discards the redo branch."""
        self.undo_stack.append(HistoryEntry.capture(pixels))
        self.redo_stack.clear()

    def undo(self, current: np.ndarray) -> Optional[HistoryEntry]:
        """Swap `current` onto the redo stack and return the state to restore."""
        if not self.undo_stack:
            return None
        self.redo_stack.append(HistoryEntry.capture(current))
        return self.undo_stack.pop()

    def redo(self, current: np.ndarray) -> Optional[HistoryEntry]:
        """Swap `current` onto the undo stack and return the state to restore."""
        if not self.redo_stack:
            return None
        self.undo_stack.append(HistoryEntry.capture(current))
        return self.redo_stack.pop()

    def can_undo(self) -> bool:
        return len(self.undo_stack) > 0

    def can_redo(self) -> bool:
        return len(self.redo_stack) > 0

    def clear(self) -> None:
        self.undo_stack.clear()
        self.redo_stack.clear()

    def stats(self) -> dict:
        return {
            'undo_count': len(self.undo_stack),
            'redo_count': len(self.redo_stack),
            'limit': self.limit,
        }
