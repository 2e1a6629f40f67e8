"""FastAPI application entry point."""

from __future__ import annotations

from pathlib import Path

from fastapi import FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse

from .api.routes import health, stores
from .config import settings


def _resolve_bundle_file(dist_dir: Path, requested: str) -> Path | None:
    """Map a request path onto the frontend bundle, falling back to index.html."""
    root = dist_dir.resolve()
    if requested:
        candidate = (root / requested).resolve()
        if candidate.is_relative_to(root) and candidate.is_file():
            return candidate
    index = root / "index.html"
    return index if index.is_file() else None


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.app_name,
        root_path="",
    )
    if settings.frontend_allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.frontend_allowed_origins),
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(health.router, prefix=settings.api_prefix)
    app.include_router(stores.router, prefix=settings.api_prefix)

    # Everything outside the API is the single-page frontend
    @app.get("/{full_path:path}", include_in_schema=False)
    def frontend(full_path: str):
        api_root = settings.api_prefix.strip("/")
        if full_path == api_root or full_path.startswith(api_root + "/"):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")
        bundle_file = _resolve_bundle_file(settings.dist_dir, full_path)
        if bundle_file is not None:
            return FileResponse(bundle_file)
        if not full_path:
            return {
                "service": settings.app_name,
                "status": "running",
                "api_prefix": settings.api_prefix,
                "stores": f"{settings.api_prefix}/stores",
                "health": f"{settings.api_prefix}/health",
                "docs": "/docs",
            }
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")

    return app


app = create_app()
