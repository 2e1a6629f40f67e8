"""Inputs to the view reconciler.

Every user gesture, device update and data-load outcome is expressed as one
of these events; only the reducer turns them into state changes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from ...models.domain import ReferencePoint, StoreRecord
from ..location.base import LocationFailure


@dataclass(frozen=True, slots=True)
class DataLoadStarted:
    pass


@dataclass(frozen=True, slots=True)
class StoresLoaded:
    stores: tuple[StoreRecord, ...]


@dataclass(frozen=True, slots=True)
class DataLoadFailed:
    message: str


@dataclass(frozen=True, slots=True)
class StartTracking:
    pass


@dataclass(frozen=True, slots=True)
class StopTracking:
    pass


@dataclass(frozen=True, slots=True)
class SelectRegion:
    region: str


@dataclass(frozen=True, slots=True)
class SelectSubregion:
    subregion: str


@dataclass(frozen=True, slots=True)
class SelectStore:
    store: StoreRecord


@dataclass(frozen=True, slots=True)
class ClearSelection:
    pass


@dataclass(frozen=True, slots=True)
class MapDragged:
    pass


@dataclass(frozen=True, slots=True)
class ToggleFollow:
    pass


@dataclass(frozen=True, slots=True)
class Recenter:
    pass


@dataclass(frozen=True, slots=True)
class SetProximityRadius:
    radius_km: float


@dataclass(frozen=True, slots=True)
class TrackingFix:
    point: ReferencePoint


@dataclass(frozen=True, slots=True)
class OneShotFix:
    point: ReferencePoint


@dataclass(frozen=True, slots=True)
class HeadingChanged:
    degrees: float


@dataclass(frozen=True, slots=True)
class LocationFailed:
    kind: LocationFailure


@dataclass(frozen=True, slots=True)
class DismissLocationError:
    pass


ViewEvent = Union[
    DataLoadStarted,
    StoresLoaded,
    DataLoadFailed,
    StartTracking,
    StopTracking,
    SelectRegion,
    SelectSubregion,
    SelectStore,
    ClearSelection,
    MapDragged,
    ToggleFollow,
    Recenter,
    SetProximityRadius,
    TrackingFix,
    OneShotFix,
    HeadingChanged,
    LocationFailed,
    DismissLocationError,
]
