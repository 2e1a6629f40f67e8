"""Pure derivations of the result set and camera target from view state."""

from __future__ import annotations

from dataclasses import replace

from ...config import Settings, settings
from ...models.domain import CameraLock, CameraTarget, StoreRecord, TrackingMode
from ..geospatial import centroid, stores_within
from ..stores import list_regions, list_subregions
from .state import ViewSnapshot, ViewState, ViewStatus

_FOLLOWING = (CameraLock.LOCKED_ON_REFERENCE, CameraLock.COMPASS_FOLLOW)


def derive_results(state: ViewState) -> tuple[StoreRecord, ...]:
    """Live: stores inside the radius, nearest first. Static: region filters, no distances."""

    if state.tracking is TrackingMode.LIVE:
        if state.reference is None:
            # still waiting for the first fix
            return tuple()
        return tuple(stores_within(state.reference, state.stores, state.filters.proximity_radius_km))

    region = state.filters.region
    subregion = state.filters.subregion
    results = []
    for store in state.stores:
        if region and store.region != region:
            continue
        if subregion and store.subregion != subregion:
            continue
        results.append(store if store.distance is None else replace(store, distance=None))
    return tuple(results)


def derive_camera(
    state: ViewState,
    results: tuple[StoreRecord, ...],
    config: Settings | None = None,
) -> CameraTarget:
    """Where the map should look. The first matching rule wins:

    1. a selected store, at maximum zoom;
    2. the reference point while the camera is locked to it (compass follow
       also rotates the map against the heading);
    3. the centroid of a non-empty static result set;
    4. the reference point, unlocked;
    5. the configured default coordinate.
    """

    config = config or settings

    if state.selected is not None:
        return CameraTarget(lat=state.selected.lat, lng=state.selected.lng, zoom=config.max_zoom)

    reference = state.reference
    if state.camera_lock in _FOLLOWING and reference is not None:
        zoom = config.max_zoom if state.tracking is TrackingMode.LIVE else config.close_zoom
        rotation = 0.0
        if state.camera_lock is CameraLock.COMPASS_FOLLOW and state.heading:
            rotation = -state.heading
        scale = config.compass_scale if rotation else 1.0
        return CameraTarget(lat=reference.lat, lng=reference.lng, zoom=zoom, rotation_degrees=rotation, scale=scale)

    if state.tracking is TrackingMode.STATIC and results:
        lat, lng = centroid([(store.lat, store.lng) for store in results])
        return CameraTarget(lat=lat, lng=lng, zoom=config.overview_zoom)

    if reference is not None:
        return CameraTarget(lat=reference.lat, lng=reference.lng, zoom=config.close_zoom)

    return CameraTarget(lat=config.default_lat, lng=config.default_lng, zoom=config.default_zoom)


def _status(state: ViewState, results: tuple[StoreRecord, ...]) -> ViewStatus:
    if not state.stores:
        if state.data_error:
            return "error"
        if state.loading:
            return "loading"
    return "ready" if results else "empty"


def build_snapshot(state: ViewState, config: Settings | None = None) -> ViewSnapshot:
    results = derive_results(state)
    return ViewSnapshot(
        results=results,
        camera=derive_camera(state, results, config),
        follow_camera=not state.user_panned,
        tracking=state.tracking,
        camera_lock=state.camera_lock,
        filters=state.filters,
        selected=state.selected,
        reference=state.reference,
        heading=state.heading,
        regions=tuple(list_regions(state.stores)),
        subregions=tuple(list_subregions(state.stores, state.filters.region)),
        status=_status(state, results),
        data_error=state.data_error,
        location_error=state.location_error,
    )
