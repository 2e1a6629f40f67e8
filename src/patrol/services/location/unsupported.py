"""Position source for hosts without any location capability."""

from __future__ import annotations

from typing import Any

from ...models.domain import ReferencePoint
from .base import LocationError, LocationFailure, LocationProvider


class UnsupportedLocationProvider(LocationProvider):
    def __init__(self, detail: str = "no location source configured") -> None:
        super().__init__()
        self.detail = detail

    def request_once(self, timeout: float | None = None) -> ReferencePoint:
        raise LocationError(LocationFailure.UNSUPPORTED, self.detail)

    def _subscribe(self, token: int) -> Any:
        raise LocationError(LocationFailure.UNSUPPORTED, self.detail)

    def _release(self, handle: Any) -> None:
        return None
