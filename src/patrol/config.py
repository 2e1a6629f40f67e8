"""Application configuration and settings management."""

from pathlib import Path
from typing import Any, Literal, Optional

import json
from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="PATROL_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Patrol Master API"
    api_prefix: str = "/api"
    data_file: Path = Field(
        default=Path("data/taiwan_stores_data.json"),
        description="Nested region/subregion store dataset served at /api/stores.",
    )
    dist_dir: Path = Field(default=Path("dist"), description="Built frontend bundle served as static files.")
    frontend_allowed_origins: tuple[str, ...] = Field(
        default=("*",),
        description="Permitted web origins for browser clients (CORS).",
    )

    # Stores client (the consumer side of /api/stores)
    stores_api_url: str = Field(
        default="http://localhost:8000/api/stores",
        description="Endpoint the view session loads the dataset from.",
    )
    stores_max_retries: int = Field(default=3, ge=0)
    stores_backoff_seconds: float = Field(default=1.0, ge=0.0)
    stores_timeout_seconds: float = Field(default=15.0, gt=0.0)

    # Map defaults
    default_lat: float = Field(default=25.0330, ge=-90.0, le=90.0)
    default_lng: float = Field(default=121.5654, ge=-180.0, le=180.0)
    fallback_region: str = "臺北市"
    fallback_subregion: str = "信義區"
    max_zoom: int = Field(default=18, ge=1)
    close_zoom: int = Field(default=17, ge=1)
    overview_zoom: int = Field(default=17, ge=1)
    default_zoom: int = Field(default=17, ge=1)
    compass_scale: float = Field(default=1.5, gt=0.0)

    # Proximity search
    proximity_presets_km: tuple[float, ...] = Field(
        default=(0.1, 0.2, 0.5, 1.0, 3.0, 5.0, 10.0, 20.0),
        description="Radius options offered while tracking (kilometers).",
    )
    default_radius_km: float = Field(default=0.1, gt=0.0)

    # Location provider
    location_provider: Literal["gpsd", "replay", "unsupported"] = Field(
        default="gpsd",
        description="Source of device position fixes.",
    )
    gpsd_host: str = "127.0.0.1"
    gpsd_port: int = Field(default=2947, ge=1, le=65535)
    location_oneshot_timeout_seconds: float = Field(default=5.0, gt=0.0)
    location_tracking_timeout_seconds: float = Field(default=10.0, gt=0.0)
    replay_track_file: Optional[Path] = Field(
        default=None,
        description="JSON array of {lat, lng, heading?} fixes for the replay provider.",
    )
    replay_interval_seconds: float = Field(default=1.0, ge=0.0)

    @field_validator("data_file", "dist_dir", mode="before")
    @classmethod
    def _expand_path(cls, value: Any, info: ValidationInfo) -> Path:
        if value is None or value == "":
            value = cls.model_fields[info.field_name].default
        path_value = value if isinstance(value, Path) else Path(str(value))
        return path_value.expanduser().resolve()

    @field_validator("replay_track_file", mode="before")
    @classmethod
    def _expand_optional_path(cls, value: Any) -> Optional[Path]:
        if value is None or value == "":
            return None
        path_value = value if isinstance(value, Path) else Path(str(value))
        return path_value.expanduser().resolve()

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()

    @field_validator("proximity_presets_km", mode="before")
    @classmethod
    def _parse_float_tuple_from_env(cls, value: Any) -> tuple[float, ...]:
        """Parse float tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return tuple(float(item) for item in value)
        if isinstance(value, list):
            return tuple(float(item) for item in value)
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(float(item) for item in parsed)
            except (json.JSONDecodeError, TypeError, ValueError):
                pass
            if "," in value:
                return tuple(float(item.strip()) for item in value.split(",") if item.strip())
            if value.strip():
                try:
                    return (float(value.strip()),)
                except ValueError:
                    return tuple()
        return tuple()


settings = Settings()
