"""Position source that replays a recorded track."""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Optional, Sequence

from ...models.domain import ReferencePoint
from .base import LocationError, LocationFailure, LocationProvider, fix_from_mapping

logger = logging.getLogger(__name__)


class _Replay:
    def __init__(self, thread: threading.Thread, stop: threading.Event) -> None:
        self.thread = thread
        self.stop = stop


class ReplayLocationProvider(LocationProvider):
    """Emits a fixed sequence of fixes, one every ``interval_seconds``.

    Once the track is exhausted the subscription stays open but silent, like a
    receiver that has stopped moving.
    """

    def __init__(self, fixes: Sequence[ReferencePoint], interval_seconds: float = 0.0) -> None:
        super().__init__()
        self.fixes = tuple(fixes)
        self.interval_seconds = interval_seconds
        self._last_emitted: Optional[ReferencePoint] = None
        self._worker: Optional[threading.Thread] = None

    @classmethod
    def from_file(cls, path: Path, interval_seconds: float = 0.0) -> "ReplayLocationProvider":
        with path.open(mode="r", encoding="utf-8") as handle:
            samples = json.load(handle)
        if not isinstance(samples, list):
            raise ValueError(f"Track file '{path}' must contain a JSON array of samples.")
        return cls([fix_from_mapping(sample) for sample in samples], interval_seconds=interval_seconds)

    def request_once(self, timeout: float | None = None) -> ReferencePoint:
        with self._lock:
            if self._last_emitted is not None:
                return self._last_emitted
        if not self.fixes:
            raise LocationError(LocationFailure.POSITION_UNAVAILABLE, "track is empty")
        return self.fixes[0]

    def _subscribe(self, token: int) -> _Replay:
        if not self.fixes:
            raise LocationError(LocationFailure.POSITION_UNAVAILABLE, "track is empty")
        stop = threading.Event()
        thread = threading.Thread(target=self._run, args=(token, stop), name="replay-location", daemon=True)
        self._worker = thread
        thread.start()
        return _Replay(thread, stop)

    def _release(self, handle: _Replay | None) -> None:
        if handle is None:
            return
        handle.stop.set()
        if handle.thread is not threading.current_thread():
            handle.thread.join()

    def _run(self, token: int, stop: threading.Event) -> None:
        for index, fix in enumerate(self.fixes):
            if index and stop.wait(self.interval_seconds):
                return
            if stop.is_set():
                return
            with self._lock:
                if self._is_current(token):
                    self._last_emitted = fix
            if not self._emit(token, fix):
                return
        logger.debug(f"Replay finished after {len(self.fixes)} fixes")

    def wait_until_replayed(self, timeout: float | None = None) -> bool:
        """Block until the current replay has emitted every fix."""
        worker = self._worker
        if worker is None:
            return True
        worker.join(timeout)
        return not worker.is_alive()
