from __future__ import annotations
from collections import deque
from typing import Optional

from .models import HistoryEntry


class HistoryBuffer:
    """Bounded chronological record of snapshots for the charts.

    Consecutive duplicates (same sensor readings, any timestamp) are
    collapsed; once full, the oldest entry is evicted first.
    """

    def __init__(self, capacity: int = 20) -> None:
        if capacity < 1:
            raise ValueError(f"History capacity must be >= 1, got {capacity}")
        self._buf: deque[HistoryEntry] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._buf.maxlen or 0

    @property
    def last(self) -> Optional[HistoryEntry]:
        return self._buf[-1] if self._buf else None

    def __len__(self) -> int:
        return len(self._buf)

    def entries(self) -> list[HistoryEntry]:
        return list(self._buf)

    def append(self, entry: HistoryEntry) -> bool:
        last = self.last
        if last is not None and last.same_readings(entry):
            return False
        # deque(maxlen) drops from the left on overflow
        self._buf.append(entry)
        return True
