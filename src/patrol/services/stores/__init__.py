"""Store dataset helpers."""

from .catalog import list_regions, list_subregions, summarize_regions
from .normalize import flatten_store_data

__all__ = [
    "flatten_store_data",
    "list_regions",
    "list_subregions",
    "summarize_regions",
]
