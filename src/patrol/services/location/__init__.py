"""Device position sources."""

from .base import (
    FAILURE_MESSAGES,
    LocationError,
    LocationFailure,
    LocationProvider,
    fix_from_mapping,
    heading_from_compass,
    resolve_heading,
)
from .dispatcher import build_location_provider
from .gpsd import GpsdLocationProvider
from .replay import ReplayLocationProvider
from .unsupported import UnsupportedLocationProvider

__all__ = [
    "FAILURE_MESSAGES",
    "LocationError",
    "LocationFailure",
    "LocationProvider",
    "GpsdLocationProvider",
    "ReplayLocationProvider",
    "UnsupportedLocationProvider",
    "build_location_provider",
    "fix_from_mapping",
    "heading_from_compass",
    "resolve_heading",
]
