"""Contract shared by every device-position source."""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from enum import StrEnum
from typing import Any, Callable, Optional

from ...models.domain import ReferencePoint

logger = logging.getLogger(__name__)


class LocationFailure(StrEnum):
    PERMISSION_DENIED = "permission_denied"
    POSITION_UNAVAILABLE = "position_unavailable"
    TIMEOUT = "timeout"
    UNSUPPORTED = "unsupported"


FAILURE_MESSAGES: dict[LocationFailure, str] = {
    LocationFailure.PERMISSION_DENIED: "Location access was denied. Allow location access to search nearby stores.",
    LocationFailure.POSITION_UNAVAILABLE: "Your position is currently unavailable. Move to open sky or check the GPS receiver.",
    LocationFailure.TIMEOUT: "Locating took too long. Try again in a moment.",
    LocationFailure.UNSUPPORTED: "This device cannot provide a location. Browse stores by region instead.",
}


class LocationError(Exception):
    """A typed position failure. Providers never retry these themselves."""

    def __init__(self, kind: LocationFailure, detail: str = "") -> None:
        self.kind = kind
        self.detail = detail
        super().__init__(f"{kind.value}: {detail}" if detail else kind.value)

    @property
    def message(self) -> str:
        return FAILURE_MESSAGES[self.kind]


UpdateCallback = Callable[[ReferencePoint], None]
ErrorCallback = Callable[[LocationError], None]
HeadingCallback = Callable[[float], None]


def _normalize_degrees(value: float) -> float:
    return value % 360.0


def heading_from_compass(compass_heading: Optional[float] = None, alpha: Optional[float] = None) -> Optional[float]:
    """Convert an orientation reading into a clockwise-from-north heading.

    A compass heading is already clockwise; ``alpha`` is a counter-clockwise
    rotation about the vertical axis, so it is mirrored.
    """
    if compass_heading is not None:
        return _normalize_degrees(float(compass_heading))
    if alpha is not None:
        return _normalize_degrees(360.0 - float(alpha))
    return None


def resolve_heading(course: Optional[float] = None, compass: Optional[float] = None) -> Optional[float]:
    """Prefer the GPS course over the compass; either may be missing."""
    if course is not None:
        return _normalize_degrees(float(course))
    if compass is not None:
        return _normalize_degrees(float(compass))
    return None


def _optional_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def fix_from_mapping(payload: dict[str, Any]) -> ReferencePoint:
    """Build a fix from a recorded position sample.

    Accepts ``lat``/``lng`` (or ``lon``), an optional GPS ``course`` or
    ``heading``, and optional orientation fields ``webkitCompassHeading`` or
    ``alpha``.
    """
    lat = _optional_float(payload.get("lat"))
    lng = _optional_float(payload.get("lng", payload.get("lon")))
    if lat is None or lng is None:
        raise ValueError(f"Position sample is missing coordinates: {payload!r}")
    compass = heading_from_compass(
        _optional_float(payload.get("webkitCompassHeading")),
        _optional_float(payload.get("alpha")),
    )
    course = _optional_float(payload.get("course", payload.get("heading")))
    return ReferencePoint(
        lat=lat,
        lng=lng,
        heading=resolve_heading(course, compass),
        accuracy_m=_optional_float(payload.get("accuracy")),
    )


class LocationProvider(ABC):
    """Single-subscription position source.

    Callbacks run while the provider lock is held, so once
    :meth:`stop_tracking` returns no callback is running or will run for the
    cancelled subscription.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._generation = 0
        self._tracking = False
        self._handle: Any = None
        self._on_update: Optional[UpdateCallback] = None
        self._on_error: Optional[ErrorCallback] = None
        self._on_heading: Optional[HeadingCallback] = None

    @property
    def is_tracking(self) -> bool:
        with self._lock:
            return self._tracking

    @abstractmethod
    def request_once(self, timeout: float | None = None) -> ReferencePoint:
        """Return a single fix or raise :class:`LocationError`."""
        raise NotImplementedError

    @abstractmethod
    def _subscribe(self, token: int) -> Any:
        """Open the platform subscription; raise :class:`LocationError` on failure."""
        raise NotImplementedError

    @abstractmethod
    def _release(self, handle: Any) -> None:
        """Tear down a subscription handle returned by :meth:`_subscribe`."""
        raise NotImplementedError

    def start_tracking(
        self,
        on_update: UpdateCallback,
        on_error: ErrorCallback,
        on_heading: Optional[HeadingCallback] = None,
    ) -> None:
        """Subscribe to fixes. ``on_heading`` receives compass readings that arrive
        between fixes, for sources that report orientation separately."""
        with self._lock:
            if self._tracking:
                logger.debug(f"{type(self).__name__} is already tracking, ignoring start")
                return
            self._generation += 1
            token = self._generation
            self._tracking = True
            self._on_update = on_update
            self._on_error = on_error
            self._on_heading = on_heading
            try:
                self._handle = self._subscribe(token)
            except LocationError as error:
                self._tracking = False
                self._generation += 1
                self._on_update = None
                self._on_error = None
                self._on_heading = None
                logger.warning(f"Could not start tracking: {error}")
                on_error(error)
                return
            logger.info(f"{type(self).__name__} started tracking")

    def stop_tracking(self) -> None:
        with self._lock:
            if not self._tracking:
                return
            handle = self._detach()
        self._release(handle)
        logger.info(f"{type(self).__name__} stopped tracking")

    def _detach(self) -> Any:
        self._tracking = False
        self._generation += 1
        self._on_update = None
        self._on_error = None
        self._on_heading = None
        handle, self._handle = self._handle, None
        return handle

    def _is_current(self, token: int) -> bool:
        return self._tracking and token == self._generation

    def _emit(self, token: int, point: ReferencePoint) -> bool:
        """Deliver a fix; returns False once the subscription has been cancelled."""
        with self._lock:
            if not self._is_current(token):
                return False
            callback = self._on_update
            if callback is not None:
                callback(point)
            return self._is_current(token)

    def _emit_heading(self, token: int, degrees: float) -> bool:
        with self._lock:
            if not self._is_current(token):
                return False
            callback = self._on_heading
            if callback is not None:
                callback(degrees)
            return self._is_current(token)

    def _fail(self, token: int, error: LocationError) -> None:
        """End the subscription and report the failure to the caller."""
        with self._lock:
            if not self._is_current(token):
                return
            callback = self._on_error
            handle = self._detach()
            logger.warning(f"Tracking failed: {error}")
            if callback is not None:
                callback(error)
        self._release(handle)
