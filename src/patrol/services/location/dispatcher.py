"""Factory for location providers based on configuration."""

from __future__ import annotations

from ...config import Settings, settings
from .base import LocationProvider
from .gpsd import GpsdLocationProvider
from .replay import ReplayLocationProvider
from .unsupported import UnsupportedLocationProvider


def build_location_provider(config: Settings | None = None) -> LocationProvider:
    config = config or settings
    match config.location_provider:
        case "gpsd":
            return GpsdLocationProvider(
                host=config.gpsd_host,
                port=config.gpsd_port,
                oneshot_timeout=config.location_oneshot_timeout_seconds,
                tracking_timeout=config.location_tracking_timeout_seconds,
            )
        case "replay":
            if config.replay_track_file is None:
                return UnsupportedLocationProvider("replay provider selected without a track file")
            return ReplayLocationProvider.from_file(
                config.replay_track_file,
                interval_seconds=config.replay_interval_seconds,
            )
        case "unsupported":
            return UnsupportedLocationProvider()
        case _:
            raise ValueError(f"Unknown location provider '{config.location_provider}'.")
