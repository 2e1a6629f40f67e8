"""Store dataset endpoints."""

from __future__ import annotations

import logging
import math
from typing import List

from fastapi import APIRouter, HTTPException, Query, status
from fastapi.responses import JSONResponse

from ...config import settings
from ...data.stores_repository import load_stores, read_store_payload
from ...models.domain import ReferencePoint, StoreRecord
from ...schemas.stores import NearbyStoresResponse, RegionSummaryModel, StoreListResponse, StoreModel
from ...services.geospatial import stores_within
from ...services.stores import summarize_regions

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/stores", tags=["stores"])


def _data_file_error(exc: Exception) -> JSONResponse:
    if isinstance(exc, ValueError):
        message = "Invalid JSON format"
    else:
        message = "Failed to read data file"
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": message})


def _to_model(store: StoreRecord) -> StoreModel:
    return StoreModel(
        id=store.id,
        name=store.name,
        region=store.region,
        subregion=store.subregion,
        address=store.address,
        lat=store.lat,
        lng=store.lng,
        distance=store.distance,
    )


@router.get("", status_code=status.HTTP_200_OK)
def get_store_dataset():
    """Serve the nested dataset file unchanged."""
    try:
        payload = read_store_payload()
    except (OSError, ValueError) as exc:
        return _data_file_error(exc)
    return JSONResponse(content=payload)


@router.get("/flat", response_model=StoreListResponse, status_code=status.HTTP_200_OK)
def get_flat_stores(
    region: str | None = Query(default=None, description="Optional region filter"),
    subregion: str | None = Query(default=None, description="Optional subregion filter"),
):
    try:
        stores = load_stores()
    except (OSError, ValueError) as exc:
        return _data_file_error(exc)
    items = [
        _to_model(store)
        for store in stores
        if (not region or store.region == region) and (not subregion or store.subregion == subregion)
    ]
    return StoreListResponse(items=items, total=len(items))


@router.get("/regions", response_model=List[RegionSummaryModel], status_code=status.HTTP_200_OK)
def get_store_regions():
    try:
        stores = load_stores()
    except (OSError, ValueError) as exc:
        return _data_file_error(exc)
    return [RegionSummaryModel.model_validate(entry) for entry in summarize_regions(stores)]


@router.get("/nearby", response_model=NearbyStoresResponse, status_code=status.HTTP_200_OK)
def get_nearby_stores(
    lat: float = Query(..., ge=-90.0, le=90.0, description="Reference latitude"),
    lng: float = Query(..., ge=-180.0, le=180.0, description="Reference longitude"),
    radius_km: float | None = Query(default=None, gt=0.0, description="Search radius; must be a preset"),
):
    radius = radius_km if radius_km is not None else settings.default_radius_km
    if not any(math.isclose(radius, preset) for preset in settings.proximity_presets_km):
        options = ", ".join(f"{preset:g}" for preset in settings.proximity_presets_km)
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"radius_km must be one of: {options}",
        )
    try:
        stores = load_stores()
    except (OSError, ValueError) as exc:
        return _data_file_error(exc)
    matches = stores_within(ReferencePoint(lat=lat, lng=lng), stores, radius)
    logger.debug(f"{len(matches)} stores within {radius:g} km of ({lat}, {lng})")
    return NearbyStoresResponse(
        lat=lat,
        lng=lng,
        radius_km=radius,
        items=[_to_model(store) for store in matches],
        total=len(matches),
    )
