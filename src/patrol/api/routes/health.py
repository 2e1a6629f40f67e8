"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from ...config import settings

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/data", status_code=status.HTTP_200_OK)
def health_data() -> dict:
    """Report whether the dataset file and the frontend bundle are in place."""
    data_file = settings.data_file
    dist_index = settings.dist_dir / "index.html"
    return {
        "data_file": str(data_file),
        "data_file_present": data_file.is_file(),
        "frontend_present": dist_index.is_file(),
    }
