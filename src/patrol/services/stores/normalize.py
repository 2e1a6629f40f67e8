"""Flatten the nested region -> subregion -> {data: [...]} dataset into store records."""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from typing import Any, Optional

from ...models.domain import StoreRecord

logger = logging.getLogger(__name__)


def _coerce_coordinate(value: Any, *, limit: float) -> Optional[float]:
    """Return a finite float within +/- limit, or None when the value is unusable."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number) or abs(number) > limit:
        return None
    return number


def _clean_text(value: Any) -> str:
    if isinstance(value, str):
        return value.strip()
    return ""


def _source_id(raw: Mapping[str, Any]) -> Optional[str]:
    value = raw.get("id")
    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip()
    return text or None


def _unique_id(candidate: str, ordinal: int, seen: set[str]) -> str:
    if candidate not in seen:
        return candidate
    suffix = ordinal
    while f"{candidate}-{suffix}" in seen:
        suffix += 1
    unique = f"{candidate}-{suffix}"
    logger.warning(f"Duplicate store id '{candidate}', using '{unique}'")
    return unique


def _subregion_entries(payload: Any) -> list[Any]:
    if not isinstance(payload, Mapping):
        return []
    entries = payload.get("data")
    if not isinstance(entries, list):
        return []
    return entries


def flatten_store_data(nested: Any) -> tuple[StoreRecord, ...]:
    """Flatten the nested dataset, dropping entries without a name or coordinates.

    Regions and subregions are walked in the mapping's key order, and entries
    in list order. Entries without an explicit ``id`` get
    ``"{region}-{subregion}-{ordinal}"`` where the ordinal counts positions in
    the subregion's ``data`` list.
    """

    if not isinstance(nested, Mapping):
        if nested is not None:
            logger.warning(f"Store dataset root is {type(nested).__name__}, expected an object")
        return tuple()

    records: list[StoreRecord] = []
    seen_ids: set[str] = set()
    rejected = 0

    for region_key, subregions in nested.items():
        if not isinstance(subregions, Mapping):
            continue
        for subregion_key, payload in subregions.items():
            for ordinal, raw in enumerate(_subregion_entries(payload)):
                if not isinstance(raw, Mapping):
                    rejected += 1
                    continue
                name = _clean_text(raw.get("name"))
                lat = _coerce_coordinate(raw.get("lat"), limit=90.0)
                lng = _coerce_coordinate(raw.get("lng"), limit=180.0)
                if not name or lat is None or lng is None:
                    rejected += 1
                    continue

                candidate = _source_id(raw) or f"{region_key}-{subregion_key}-{ordinal}"
                store_id = _unique_id(candidate, ordinal, seen_ids)
                seen_ids.add(store_id)

                address = _clean_text(raw.get("address")) or None
                records.append(
                    StoreRecord(
                        id=store_id,
                        name=name,
                        region=_clean_text(raw.get("city")) or str(region_key),
                        subregion=_clean_text(raw.get("area")) or str(subregion_key),
                        lat=lat,
                        lng=lng,
                        address=address,
                        raw=dict(raw),
                    )
                )

    if rejected:
        logger.info(f"Dropped {rejected} store entries without a name or valid coordinates")
    logger.debug(f"Normalized {len(records)} stores")
    return tuple(records)
