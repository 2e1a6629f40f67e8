"""Reconciler state and the snapshot handed to presenters."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Optional

from ...config import Settings, settings
from ...models.domain import (
    CameraLock,
    CameraTarget,
    FilterState,
    ReferencePoint,
    StoreRecord,
    TrackingMode,
)
from ..location.base import LocationFailure


@dataclass(frozen=True, slots=True)
class ViewState:
    """Everything the reconciler knows; replaced, never mutated."""

    stores: tuple[StoreRecord, ...] = ()
    filters: FilterState = field(default_factory=FilterState)
    tracking: TrackingMode = TrackingMode.STATIC
    camera_lock: CameraLock = CameraLock.FREE
    reference: Optional[ReferencePoint] = None
    heading: Optional[float] = None
    selected: Optional[StoreRecord] = None
    user_panned: bool = False
    loading: bool = False
    data_error: Optional[str] = None
    location_error: Optional[str] = None
    location_failure: Optional[LocationFailure] = None


ViewStatus = Literal["loading", "ready", "empty", "error"]


@dataclass(frozen=True, slots=True)
class ViewSnapshot:
    """Outbound contract for a presenter after one reconciliation pass.

    ``follow_camera`` is False after a manual pan until an explicit focus or
    lock event; presenters should leave the map where the user put it.
    ``status == "empty"`` means nothing matched, which is not an error.
    """

    results: tuple[StoreRecord, ...]
    camera: CameraTarget
    follow_camera: bool
    tracking: TrackingMode
    camera_lock: CameraLock
    filters: FilterState
    selected: Optional[StoreRecord]
    reference: Optional[ReferencePoint]
    heading: Optional[float]
    regions: tuple[str, ...]
    subregions: tuple[str, ...]
    status: ViewStatus
    data_error: Optional[str]
    location_error: Optional[str]


def initial_state(config: Settings | None = None) -> ViewState:
    """Static browsing of the fallback region, as on first launch."""
    config = config or settings
    return ViewState(
        filters=FilterState(
            region=config.fallback_region,
            subregion=config.fallback_subregion,
            proximity_radius_km=config.default_radius_km,
        )
    )
