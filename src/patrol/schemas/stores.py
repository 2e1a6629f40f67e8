"""Store-facing API schemas."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel


class StoreModel(BaseModel):
    id: str
    name: str
    region: str
    subregion: str
    address: str | None = None
    lat: float
    lng: float
    distance: float | None = None


class StoreListResponse(BaseModel):
    items: List[StoreModel]
    total: int


class SubregionSummaryModel(BaseModel):
    name: str
    stores: int


class RegionSummaryModel(BaseModel):
    name: str
    stores: int
    subregions: List[SubregionSummaryModel]


class NearbyStoresResponse(BaseModel):
    lat: float
    lng: float
    radius_km: float
    items: List[StoreModel]
    total: int
