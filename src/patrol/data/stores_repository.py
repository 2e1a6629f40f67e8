"""Data access helpers for the on-disk store dataset."""

from __future__ import annotations

import functools
import json
import logging
from pathlib import Path
from typing import Any, Optional

from ..config import settings
from ..models.domain import StoreRecord
from ..services.stores import flatten_store_data

logger = logging.getLogger(__name__)


def read_store_payload(source: Optional[Path] = None) -> Any:
    """Read the nested dataset exactly as stored.

    Raises ``OSError`` when the file cannot be read and ``ValueError`` when it
    does not hold valid JSON.
    """

    json_path = source or settings.data_file
    try:
        with json_path.open(mode="r", encoding="utf-8") as handle:
            text = handle.read()
    except OSError:
        logger.error(f"Error reading store data file: {json_path}")
        raise
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        logger.error(f"Store data file '{json_path}' is not valid JSON: {exc}")
        raise ValueError(f"Store data file '{json_path}' is not valid JSON.") from exc


@functools.lru_cache(maxsize=1)
def load_stores(source: Optional[Path] = None) -> tuple[StoreRecord, ...]:
    """Load and flatten the configured dataset."""

    stores = flatten_store_data(read_store_payload(source))
    logger.info(f"Loaded {len(stores)} stores from {source or settings.data_file}")
    return stores


def clear_store_cache() -> None:
    """Forget the flattened dataset so the next call re-reads the file."""
    load_stores.cache_clear()
