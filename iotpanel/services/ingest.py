from __future__ import annotations
import asyncio
import logging
from typing import Callable, Optional
from datetime import datetime

from ..core.errors import DecodeError
from ..core.timeutil import now_local
from ..domain.history import HistoryBuffer
from ..domain.models import HistoryEntry, SensorSnapshot
from ..domain.state import StateStore
from .codec import decode_snapshot

logger = logging.getLogger(__name__)


class IngestPipeline:
    """Turns inbound frames into sensor state and history entries.

    Frames are debounced: every arrival re-arms a single timer and only the
    payload that is still pending when the window elapses gets decoded.
    Earlier frames of a burst are dropped without parsing. This is load
    shedding for chatty firmware, the display lags by at most one window.
    """

    def __init__(
        self,
        state: StateStore,
        history: HistoryBuffer,
        debounce_s: float = 0.1,
        clock: Callable[[], datetime] = now_local,
    ) -> None:
        self._state = state
        self._history = history
        self._debounce_s = debounce_s
        self._clock = clock

        self._pending: Optional[asyncio.TimerHandle] = None
        self.decode_count = 0
        self.shed_count = 0

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def on_raw_message(self, payload: str | bytes) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self.shed_count += 1
        loop = asyncio.get_running_loop()
        self._pending = loop.call_later(self._debounce_s, self._fire, payload)

    def cancel(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
            logger.debug("Pending inbound frame discarded")

    def _fire(self, payload: str | bytes) -> None:
        self._pending = None
        self.process(payload)

    def process(self, payload: str | bytes) -> Optional[SensorSnapshot]:
        self.decode_count += 1
        try:
            snapshot = decode_snapshot(payload)
        except DecodeError as e:
            logger.warning("Discarding inbound frame: %s", e)
            self._state.record_error(e)
            return None

        # Replace wholesale; a frame never patches individual channels
        self._state.set_sensors(snapshot)
        added = self._history.append(HistoryEntry(snapshot=snapshot, ts=self._clock()))
        logger.debug(
            "Snapshot applied (history %s, len=%d)",
            "appended" if added else "unchanged",
            len(self._history),
        )
        return snapshot
