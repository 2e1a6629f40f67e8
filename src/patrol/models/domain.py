"""Domain models for store records, reference points and the map view."""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Optional


@dataclass(frozen=True, slots=True)
class StoreRecord:
    """A claw-machine arcade flattened out of the nested dataset.

    ``distance`` is only set while a proximity computation is active for the
    record; ``None`` means there is no active reference point.
    """

    id: str
    name: str
    region: str
    subregion: str
    lat: float
    lng: float
    address: Optional[str] = None
    distance: Optional[float] = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)


@dataclass(frozen=True, slots=True)
class ReferencePoint:
    """Device position the proximity search is measured from."""

    lat: float
    lng: float
    heading: Optional[float] = None
    accuracy_m: Optional[float] = None


@dataclass(frozen=True, slots=True)
class CameraTarget:
    lat: float
    lng: float
    zoom: int
    rotation_degrees: float = 0.0
    scale: float = 1.0


class TrackingMode(StrEnum):
    STATIC = "static"
    LIVE = "live"


class CameraLock(StrEnum):
    FREE = "free"
    LOCKED_ON_REFERENCE = "locked"
    COMPASS_FOLLOW = "compass"


@dataclass(frozen=True, slots=True)
class FilterState:
    """Region filters for static browsing and the radius for live search."""

    region: str = ""
    subregion: str = ""
    proximity_radius_km: float = 0.1
