"""The view state machine: ``reconcile(state, event) -> state``.

This is the only place filters, tracking mode, selection and camera lock
change. Cross-field resets (tracking clears filters, stopping picks the
nearest region, drags release the camera) all live in the transition table
below.
"""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import Optional

from ...config import Settings, settings
from ...models.domain import CameraLock, FilterState, ReferencePoint, StoreRecord, TrackingMode
from ..geospatial import nearest_region
from ..location.base import FAILURE_MESSAGES
from .events import (
    ClearSelection,
    DataLoadFailed,
    DataLoadStarted,
    DismissLocationError,
    HeadingChanged,
    LocationFailed,
    MapDragged,
    OneShotFix,
    Recenter,
    SelectRegion,
    SelectStore,
    SelectSubregion,
    SetProximityRadius,
    StartTracking,
    StopTracking,
    StoresLoaded,
    ToggleFollow,
    TrackingFix,
    ViewEvent,
)
from .state import ViewState

logger = logging.getLogger(__name__)


def _fallback_pair(config: Settings) -> tuple[str, str]:
    return config.fallback_region, config.fallback_subregion


def _matches_filters(store: StoreRecord, filters: FilterState) -> bool:
    if filters.region and store.region != filters.region:
        return False
    if filters.subregion and store.subregion != filters.subregion:
        return False
    return True


def _keep_selection(selected: Optional[StoreRecord], filters: FilterState) -> Optional[StoreRecord]:
    if selected is not None and _matches_filters(selected, filters):
        return selected
    return None


def _resolve_preset(radius_km: float, config: Settings) -> float:
    for preset in config.proximity_presets_km:
        if math.isclose(radius_km, preset, rel_tol=1e-9, abs_tol=1e-12):
            return preset
    options = ", ".join(f"{preset:g}" for preset in config.proximity_presets_km)
    raise ValueError(f"Proximity radius {radius_km:g} km is not one of the presets ({options}).")


def _with_fix(state: ViewState, point: ReferencePoint) -> ViewState:
    heading = point.heading if point.heading is not None else state.heading
    return replace(state, reference=point, heading=heading)


def _locate_static(state: ViewState, point: ReferencePoint, config: Settings) -> ViewState:
    state = _with_fix(state, point)
    if not state.stores:
        return state
    region, subregion = nearest_region(point, state.stores, _fallback_pair(config))
    return replace(
        state,
        filters=replace(state.filters, region=region, subregion=subregion),
        camera_lock=CameraLock.LOCKED_ON_REFERENCE,
        selected=None,
        user_panned=False,
    )


def reconcile(state: ViewState, event: ViewEvent, config: Settings | None = None) -> ViewState:
    """Apply one event and return the next state."""

    config = config or settings
    live = state.tracking is TrackingMode.LIVE

    match event:
        case DataLoadStarted():
            return replace(state, loading=True)

        case StoresLoaded(stores=stores):
            stores = tuple(stores)
            selected = state.selected
            if selected is not None and all(store.id != selected.id for store in stores):
                selected = None
            return replace(state, stores=stores, loading=False, data_error=None, selected=selected)

        case DataLoadFailed(message=message):
            return replace(state, loading=False, data_error=message)

        case StartTracking():
            if live:
                return state
            return replace(
                state,
                filters=replace(state.filters, region="", subregion=""),
                selected=None,
                tracking=TrackingMode.LIVE,
                camera_lock=CameraLock.LOCKED_ON_REFERENCE,
                user_panned=False,
                location_error=None,
                location_failure=None,
            )

        case StopTracking():
            if not live:
                return state
            region, subregion = nearest_region(state.reference, state.stores, _fallback_pair(config))
            lock = CameraLock.LOCKED_ON_REFERENCE if state.reference is not None else CameraLock.FREE
            return replace(
                state,
                filters=replace(state.filters, region=region, subregion=subregion),
                tracking=TrackingMode.STATIC,
                camera_lock=lock,
                selected=None,
                user_panned=False,
            )

        case SelectRegion(region=region):
            if live:
                logger.debug("Ignoring region selection while tracking")
                return state
            filters = replace(state.filters, region=region, subregion="")
            return replace(
                state,
                filters=filters,
                selected=_keep_selection(state.selected, filters),
                camera_lock=CameraLock.FREE,
                user_panned=False,
            )

        case SelectSubregion(subregion=subregion):
            if live or (subregion and not state.filters.region):
                logger.debug(f"Ignoring subregion selection '{subregion}'")
                return state
            filters = replace(state.filters, subregion=subregion)
            return replace(
                state,
                filters=filters,
                selected=_keep_selection(state.selected, filters),
                camera_lock=CameraLock.FREE,
                user_panned=False,
            )

        case SelectStore(store=store):
            return replace(state, selected=store, camera_lock=CameraLock.FREE, user_panned=False)

        case ClearSelection():
            return replace(state, selected=None)

        case MapDragged():
            return replace(state, camera_lock=CameraLock.FREE, user_panned=True)

        case ToggleFollow():
            if state.camera_lock is CameraLock.COMPASS_FOLLOW:
                return replace(state, camera_lock=CameraLock.LOCKED_ON_REFERENCE, user_panned=False)
            if state.reference is None:
                return state
            if state.camera_lock is CameraLock.LOCKED_ON_REFERENCE:
                return replace(state, camera_lock=CameraLock.COMPASS_FOLLOW, user_panned=False)
            return replace(state, camera_lock=CameraLock.LOCKED_ON_REFERENCE, selected=None, user_panned=False)

        case Recenter():
            if state.reference is None:
                return state
            return replace(state, camera_lock=CameraLock.LOCKED_ON_REFERENCE, selected=None, user_panned=False)

        case SetProximityRadius(radius_km=radius_km):
            preset = _resolve_preset(radius_km, config)
            return replace(state, filters=replace(state.filters, proximity_radius_km=preset))

        case TrackingFix(point=point):
            if not live:
                # fixes that land after tracking stopped are stale
                logger.debug("Dropping tracking fix received while static")
                return state
            return _with_fix(state, point)

        case OneShotFix(point=point):
            if live:
                return _with_fix(state, point)
            return _locate_static(state, point, config)

        case HeadingChanged(degrees=degrees):
            return replace(state, heading=degrees % 360.0)

        case LocationFailed(kind=kind):
            state = replace(state, location_error=FAILURE_MESSAGES[kind], location_failure=kind)
            if not live:
                return state
            region, subregion = _fallback_pair(config)
            return replace(
                state,
                filters=replace(state.filters, region=region, subregion=subregion),
                tracking=TrackingMode.STATIC,
                camera_lock=CameraLock.FREE,
                user_panned=False,
            )

        case DismissLocationError():
            return replace(state, location_error=None, location_failure=None)

        case _:
            raise ValueError(f"Unknown view event {type(event).__name__}.")
