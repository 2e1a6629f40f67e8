"""Geospatial helper functions."""

from __future__ import annotations

import math
from dataclasses import replace
from typing import Iterable, Optional, Sequence

from shapely.geometry import MultiPoint

from ..config import settings
from ..models.domain import ReferencePoint, StoreRecord

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def distance_to(reference: ReferencePoint, store: StoreRecord) -> float:
    return haversine_km(reference.lat, reference.lng, store.lat, store.lng)


def nearest_store(reference: Optional[ReferencePoint], stores: Iterable[StoreRecord]) -> Optional[StoreRecord]:
    """Return the store closest to the reference; ties go to the earliest store."""

    if reference is None:
        return None
    nearest: Optional[StoreRecord] = None
    best = math.inf
    for store in stores:
        dst = distance_to(reference, store)
        if dst < best:
            best = dst
            nearest = store
    return nearest


def nearest_region(
    reference: Optional[ReferencePoint],
    stores: Iterable[StoreRecord],
    fallback: Optional[tuple[str, str]] = None,
) -> tuple[str, str]:
    """Resolve the (region, subregion) of the nearest store.

    Falls back to the configured default pair when there is no reference point
    or no store to compare against.
    """

    if fallback is None:
        fallback = (settings.fallback_region, settings.fallback_subregion)
    store = nearest_store(reference, stores)
    if store is None:
        return fallback
    return store.region, store.subregion


def stores_within(
    reference: ReferencePoint,
    stores: Iterable[StoreRecord],
    radius_km: float,
) -> list[StoreRecord]:
    """Stores within ``radius_km`` of the reference, nearest first, carrying ``distance``."""

    matches = []
    for store in stores:
        dst = distance_to(reference, store)
        if dst <= radius_km:
            matches.append(replace(store, distance=dst))
    # list.sort is stable, so equal distances keep dataset order
    matches.sort(key=lambda store: store.distance)
    return matches


def centroid(points: Sequence[tuple[float, float]]) -> tuple[float, float]:
    """Arithmetic mean of (lat, lon) pairs."""

    if not points:
        raise ValueError("At least one point is required for a centroid.")
    center = MultiPoint([(lng, lat) for lat, lng in points]).centroid
    return center.y, center.x


def format_distance(distance_km: float) -> str:
    """Render a distance the way the store list shows it: meters below 1 km."""

    if distance_km < 1:
        return f"{distance_km * 1000:.0f} m"
    return f"{distance_km:.1f} km"
