"""Region and subregion listings for the filter selectors."""

from __future__ import annotations

from collections import Counter, defaultdict
from typing import Dict, Iterable, List

from ...models.domain import StoreRecord


def list_regions(stores: Iterable[StoreRecord]) -> list[str]:
    """Return the distinct non-empty regions, sorted."""

    return sorted({store.region for store in stores if store.region})


def list_subregions(stores: Iterable[StoreRecord], region: str) -> list[str]:
    """Return the distinct non-empty subregions of a region, sorted.

    An empty region means no region is selected, so there is nothing to list.
    """

    if not region:
        return []
    return sorted({store.subregion for store in stores if store.region == region and store.subregion})


def summarize_regions(stores: Iterable[StoreRecord]) -> list[dict]:
    """Aggregate store counts per region and subregion."""

    region_counts: Counter[str] = Counter()
    subregion_counts: Dict[str, Counter[str]] = defaultdict(Counter)
    for store in stores:
        if not store.region:
            continue
        region_counts[store.region] += 1
        if store.subregion:
            subregion_counts[store.region][store.subregion] += 1

    summaries: List[dict] = []
    for region in sorted(region_counts):
        summaries.append(
            {
                "name": region,
                "stores": region_counts[region],
                "subregions": [
                    {"name": name, "stores": count}
                    for name, count in sorted(subregion_counts[region].items())
                ],
            }
        )
    return summaries
