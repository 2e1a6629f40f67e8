from dataclasses import replace

import pytest

from src.patrol.config import Settings
from src.patrol.models.domain import CameraLock, ReferencePoint, StoreRecord, TrackingMode
from src.patrol.services.location.base import FAILURE_MESSAGES, LocationFailure
from src.patrol.services.view import build_snapshot, initial_state, reconcile
from src.patrol.services.view.events import (
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
)

CONFIG = Settings()


def _store(store_id: str, region: str, subregion: str, lat: float, lng: float) -> StoreRecord:
    return StoreRecord(id=store_id, name=f"Store {store_id}", region=region, subregion=subregion, lat=lat, lng=lng)


STORES = (
    _store("s1", "臺北市", "信義區", 25.0330, 121.5654),
    _store("s2", "臺北市", "中正區", 25.0478, 121.5170),
    _store("s3", "新北市", "板橋區", 25.0143, 121.4638),
)


def _run(state, *events):
    for event in events:
        state = reconcile(state, event, CONFIG)
    return state


def _loaded():
    return _run(initial_state(CONFIG), StoresLoaded(STORES))


def _live_at(lat: float, lng: float, heading=None):
    return _run(_loaded(), StartTracking(), TrackingFix(ReferencePoint(lat=lat, lng=lng, heading=heading)))


def test_initial_state_browses_fallback_region():
    snapshot = build_snapshot(_loaded(), CONFIG)

    assert snapshot.tracking is TrackingMode.STATIC
    assert (snapshot.filters.region, snapshot.filters.subregion) == ("臺北市", "信義區")
    assert [store.id for store in snapshot.results] == ["s1"]
    assert snapshot.regions == ("新北市", "臺北市")
    assert snapshot.subregions == ("中正區", "信義區")


def test_start_tracking_clears_filters_and_selection():
    state = _run(_loaded(), SelectStore(STORES[0]), StartTracking())

    assert state.tracking is TrackingMode.LIVE
    assert (state.filters.region, state.filters.subregion) == ("", "")
    assert state.selected is None
    assert state.camera_lock is CameraLock.LOCKED_ON_REFERENCE


def test_start_tracking_twice_is_a_no_op():
    state = _run(_loaded(), StartTracking())

    assert reconcile(state, StartTracking(), CONFIG) is state


def test_stop_tracking_selects_region_of_nearest_store():
    state = _run(_live_at(25.0470, 121.5175), StopTracking())

    assert state.tracking is TrackingMode.STATIC
    assert (state.filters.region, state.filters.subregion) == ("臺北市", "中正區")
    assert state.camera_lock is CameraLock.LOCKED_ON_REFERENCE


def test_stop_tracking_without_fix_uses_fallback_and_frees_camera():
    state = _run(_loaded(), SelectRegion("新北市"), StartTracking(), StopTracking())

    assert (state.filters.region, state.filters.subregion) == ("臺北市", "信義區")
    assert state.camera_lock is CameraLock.FREE


def test_stop_tracking_without_stores_uses_fallback():
    state = _run(
        initial_state(CONFIG),
        StartTracking(),
        TrackingFix(ReferencePoint(lat=25.0143, lng=121.4638)),
        StopTracking(),
    )

    assert (state.filters.region, state.filters.subregion) == ("臺北市", "信義區")


def test_live_results_within_radius_nearest_first():
    state = _run(_live_at(25.0330, 121.5654), SetProximityRadius(20.0))

    results = build_snapshot(state, CONFIG).results

    assert [store.id for store in results] == ["s1", "s2", "s3"]
    distances = [store.distance for store in results]
    assert distances == sorted(distances)
    assert all(distance <= 20.0 for distance in distances)


def test_live_results_respect_default_radius():
    results = build_snapshot(_live_at(25.0330, 121.5654), CONFIG).results

    assert [store.id for store in results] == ["s1"]


def test_live_without_fix_has_no_results():
    snapshot = build_snapshot(_run(_loaded(), StartTracking()), CONFIG)

    assert snapshot.results == ()
    assert snapshot.status == "empty"


def test_static_results_never_carry_distance():
    stores = tuple(replace(store, distance=1.0) for store in STORES)
    state = _run(initial_state(CONFIG), StoresLoaded(stores), SelectRegion("臺北市"))

    results = build_snapshot(state, CONFIG).results

    assert [store.id for store in results] == ["s1", "s2"]
    assert all(store.distance is None for store in results)


def test_region_selection_ignored_while_live():
    state = _run(_loaded(), StartTracking())

    assert reconcile(state, SelectRegion("新北市"), CONFIG) is state


def test_region_selection_resets_subregion_and_frees_camera():
    state = _run(_loaded(), OneShotFix(ReferencePoint(lat=25.0330, lng=121.5654)), SelectRegion("新北市"))

    assert (state.filters.region, state.filters.subregion) == ("新北市", "")
    assert state.camera_lock is CameraLock.FREE


def test_subregion_requires_region():
    state = _run(_loaded(), SelectRegion(""))

    assert reconcile(state, SelectSubregion("信義區"), CONFIG) is state


def test_region_change_drops_selection_outside_filters():
    selected = _run(_loaded(), SelectRegion("臺北市"), SelectStore(STORES[1]))

    assert _run(selected, SelectSubregion("中正區")).selected == STORES[1]
    assert _run(selected, SelectRegion("新北市")).selected is None


def test_clear_selection():
    state = _run(_loaded(), SelectStore(STORES[0]), ClearSelection())

    assert state.selected is None


def test_proximity_radius_must_be_a_preset():
    with pytest.raises(ValueError):
        reconcile(_loaded(), SetProximityRadius(0.3), CONFIG)

    assert reconcile(_loaded(), SetProximityRadius(0.5), CONFIG).filters.proximity_radius_km == 0.5


def test_drag_releases_camera_until_recenter():
    state = _run(_live_at(25.0330, 121.5654, heading=90.0), ToggleFollow(), MapDragged())

    assert state.camera_lock is CameraLock.FREE

    state = _run(state, TrackingFix(ReferencePoint(lat=25.0335, lng=121.5655)))
    snapshot = build_snapshot(state, CONFIG)
    assert snapshot.camera_lock is CameraLock.FREE
    assert snapshot.follow_camera is False

    state = _run(state, Recenter())
    snapshot = build_snapshot(state, CONFIG)
    assert snapshot.camera_lock is CameraLock.LOCKED_ON_REFERENCE
    assert snapshot.follow_camera is True
    assert (snapshot.camera.lat, snapshot.camera.lng) == (25.0335, 121.5655)


def test_toggle_follow_cycles_lock_modes():
    state = _live_at(25.0330, 121.5654)

    state = _run(state, ToggleFollow())
    assert state.camera_lock is CameraLock.COMPASS_FOLLOW

    state = _run(state, ToggleFollow())
    assert state.camera_lock is CameraLock.LOCKED_ON_REFERENCE


def test_toggle_follow_without_reference_keeps_camera_free():
    state = _loaded()

    assert reconcile(state, ToggleFollow(), CONFIG) is state
    assert reconcile(state, Recenter(), CONFIG) is state


def test_camera_prefers_result_centroid_over_unlocked_reference():
    state = _run(_loaded(), SelectRegion("臺北市"))
    state = replace(state, reference=ReferencePoint(lat=25.1, lng=121.6))

    camera = build_snapshot(state, CONFIG).camera

    assert camera.lat == pytest.approx((25.0330 + 25.0478) / 2)
    assert camera.lng == pytest.approx((121.5654 + 121.5170) / 2)
    assert camera.zoom == CONFIG.overview_zoom


def test_camera_focuses_selected_store_first():
    state = _run(_live_at(25.0330, 121.5654), SelectStore(STORES[2]))

    camera = build_snapshot(state, CONFIG).camera

    assert (camera.lat, camera.lng, camera.zoom) == (STORES[2].lat, STORES[2].lng, CONFIG.max_zoom)


def test_camera_rotates_against_heading_in_compass_follow():
    state = _run(_live_at(25.0330, 121.5654, heading=90.0), ToggleFollow())

    camera = build_snapshot(state, CONFIG).camera

    assert camera.rotation_degrees == -90.0
    assert camera.scale == CONFIG.compass_scale
    assert camera.zoom == CONFIG.max_zoom


def test_camera_locked_without_heading_is_not_rotated():
    camera = build_snapshot(_live_at(25.0330, 121.5654), CONFIG).camera

    assert camera.rotation_degrees == 0.0
    assert camera.scale == 1.0
    assert (camera.lat, camera.lng) == (25.0330, 121.5654)


def test_camera_on_unlocked_reference_while_live():
    state = _run(_live_at(25.0400, 121.5500), MapDragged())

    camera = build_snapshot(state, CONFIG).camera

    assert (camera.lat, camera.lng, camera.zoom) == (25.0400, 121.5500, CONFIG.close_zoom)


def test_camera_defaults_without_results_or_reference():
    camera = build_snapshot(initial_state(CONFIG), CONFIG).camera

    assert (camera.lat, camera.lng, camera.zoom) == (CONFIG.default_lat, CONFIG.default_lng, CONFIG.default_zoom)


def test_one_shot_fix_while_static_jumps_to_nearest_region():
    state = _run(_loaded(), OneShotFix(ReferencePoint(lat=25.0150, lng=121.4640)))

    assert (state.filters.region, state.filters.subregion) == ("新北市", "板橋區")
    assert state.camera_lock is CameraLock.LOCKED_ON_REFERENCE
    assert state.tracking is TrackingMode.STATIC


def test_one_shot_fix_without_stores_only_records_reference():
    state = _run(initial_state(CONFIG), OneShotFix(ReferencePoint(lat=25.0150, lng=121.4640)))

    assert state.reference == ReferencePoint(lat=25.0150, lng=121.4640)
    assert state.filters.region == "臺北市"


def test_tracking_fix_while_static_is_dropped():
    state = _loaded()

    assert reconcile(state, TrackingFix(ReferencePoint(lat=25.0, lng=121.0)), CONFIG) is state


def test_heading_keeps_last_value_and_wraps():
    state = _run(_live_at(25.0330, 121.5654, heading=45.0), TrackingFix(ReferencePoint(lat=25.0331, lng=121.5654)))
    assert state.heading == 45.0

    assert _run(state, HeadingChanged(370.0)).heading == 10.0


def test_location_failure_while_live_falls_back_to_static():
    state = _run(_loaded(), DataLoadFailed("stale"), StartTracking(), LocationFailed(LocationFailure.PERMISSION_DENIED))

    assert state.tracking is TrackingMode.STATIC
    assert (state.filters.region, state.filters.subregion) == ("臺北市", "信義區")
    assert state.camera_lock is CameraLock.FREE
    assert state.location_error == FAILURE_MESSAGES[LocationFailure.PERMISSION_DENIED]
    assert state.data_error == "stale"

    assert _run(state, DismissLocationError()).location_error is None


def test_location_failure_messages_are_distinct():
    assert len(set(FAILURE_MESSAGES.values())) == len(LocationFailure)


def test_status_follows_data_loading():
    state = _run(initial_state(CONFIG), DataLoadStarted())
    assert build_snapshot(state, CONFIG).status == "loading"

    state = _run(state, DataLoadFailed("Could not load store data."))
    assert build_snapshot(state, CONFIG).status == "error"

    state = _run(state, StoresLoaded(STORES))
    assert state.data_error is None
    assert build_snapshot(state, CONFIG).status == "ready"

    state = _run(state, SelectRegion("高雄市"))
    assert build_snapshot(state, CONFIG).status == "empty"


def test_unknown_event_is_rejected():
    with pytest.raises(ValueError):
        reconcile(_loaded(), object(), CONFIG)
