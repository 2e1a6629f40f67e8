"""Single-writer controller that wires providers and clients into the reducer."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Iterable

from ...config import Settings, settings
from ...models.domain import CameraLock, ReferencePoint, StoreRecord, TrackingMode
from ..location import LocationError, LocationProvider, build_location_provider
from ..stores_client import DataLoadError, StoresClient
from .derive import build_snapshot
from .events import (
    DataLoadFailed,
    DataLoadStarted,
    HeadingChanged,
    LocationFailed,
    OneShotFix,
    StartTracking,
    StopTracking,
    StoresLoaded,
    ToggleFollow,
    TrackingFix,
    ViewEvent,
)
from .reducer import reconcile
from .state import ViewSnapshot, ViewState, initial_state

logger = logging.getLogger(__name__)

SnapshotListener = Callable[[ViewSnapshot], None]


class ViewSession:
    """Owns the view state and serializes every write to it.

    Provider callbacks arrive on provider threads, so all reconciliation runs
    behind one lock. The session never calls into the provider or a listener
    while holding that lock.
    """

    def __init__(
        self,
        provider: LocationProvider | None = None,
        client: StoresClient | None = None,
        config: Settings | None = None,
    ) -> None:
        self.config = config or settings
        self.provider = provider or build_location_provider(self.config)
        self._client = client
        self._lock = threading.RLock()
        self._state = initial_state(self.config)
        self._snapshot = build_snapshot(self._state, self.config)
        self._listeners: list[SnapshotListener] = []

    @property
    def state(self) -> ViewState:
        with self._lock:
            return self._state

    @property
    def snapshot(self) -> ViewSnapshot:
        with self._lock:
            return self._snapshot

    @property
    def client(self) -> StoresClient:
        if self._client is None:
            self._client = StoresClient()
        return self._client

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """Register a listener called after every pass; returns an unsubscribe callable."""
        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    def dispatch(self, event: ViewEvent) -> ViewSnapshot:
        with self._lock:
            self._state = reconcile(self._state, event, self.config)
            self._snapshot = build_snapshot(self._state, self.config)
            snapshot = self._snapshot
            listeners = list(self._listeners)
        # listeners may call back into the session or the provider
        for listener in listeners:
            listener(snapshot)
        return snapshot

    def load_stores(self) -> ViewSnapshot:
        """Fetch the dataset; the client retries, the session reports the final outcome."""
        self.dispatch(DataLoadStarted())
        try:
            stores = self.client.fetch_stores()
        except DataLoadError as exc:
            logger.error(f"Store data unavailable: {exc}")
            return self.dispatch(DataLoadFailed(f"Could not load store data from {exc.source}."))
        return self.use_stores(stores)

    def use_stores(self, stores: Iterable[StoreRecord]) -> ViewSnapshot:
        return self.dispatch(StoresLoaded(tuple(stores)))

    def locate_once(self) -> ViewSnapshot:
        try:
            point = self.provider.request_once()
        except LocationError as exc:
            logger.warning(f"One-shot location failed: {exc}")
            return self._report_location_failure(exc)
        return self.dispatch(OneShotFix(point))

    def start_tracking(self) -> ViewSnapshot:
        with self._lock:
            if self._state.tracking is TrackingMode.LIVE:
                return self._snapshot
        self.dispatch(StartTracking())
        self.provider.start_tracking(self._on_fix, self._on_location_error, self._on_heading)
        return self.snapshot

    def stop_tracking(self) -> ViewSnapshot:
        # the provider is released first so no fix can land after the freeze pass
        self.provider.stop_tracking()
        return self.dispatch(StopTracking())

    def toggle_follow(self) -> ViewSnapshot:
        with self._lock:
            needs_location = self._state.camera_lock is CameraLock.FREE and self._state.reference is None
        if needs_location:
            return self.start_tracking()
        return self.dispatch(ToggleFollow())

    def close(self) -> None:
        self.provider.stop_tracking()

    def _on_fix(self, point: ReferencePoint) -> None:
        self.dispatch(TrackingFix(point))

    def _on_heading(self, degrees: float) -> None:
        self.dispatch(HeadingChanged(degrees))

    def _on_location_error(self, error: LocationError) -> None:
        self.dispatch(LocationFailed(error.kind))

    def _report_location_failure(self, error: LocationError) -> ViewSnapshot:
        with self._lock:
            live = self._state.tracking is TrackingMode.LIVE
        if live:
            # the failure forces static mode, so the subscription goes with it
            self.provider.stop_tracking()
        return self.dispatch(LocationFailed(error.kind))
