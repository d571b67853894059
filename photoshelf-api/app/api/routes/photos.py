# app/api/routes/photos.py
# Endpoints for the photo directory:
# - GET /api/photos              → catalog (list form, with exif)
# - GET /api/photos/{filename}   → single photo (lookup form, with createdDate)
# - GET /photos/{path}           → raw file bytes
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse, JSONResponse

from app.core.config import Settings, get_settings
from app.core.logging import get_logger
from app.schemas.photo import ErrorBody, PhotoDetail, PhotoRecord
from app.services.catalog import DirectoryNotFound, FileNotFound, PhotoCatalog
from app.utils.http import safe_rel_under

logger = get_logger("api")

api_router = APIRouter(prefix="/photos", tags=["photos"])   # mounted under /api in main
public_router = APIRouter(tags=["photos-public"])           # mounted without prefix in main

_ERRORS = {404: {"model": ErrorBody}, 500: {"model": ErrorBody}}


def get_catalog(settings: Settings = Depends(get_settings)) -> PhotoCatalog:
    """Fresh catalog per request; nothing is cached between calls."""
    return PhotoCatalog(settings)


def error_response(status: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status, content={"error": message})


@api_router.get("", response_model=List[PhotoRecord], responses=_ERRORS)
def list_photos(catalog: PhotoCatalog = Depends(get_catalog)):
    """All images in the photo directory, newest first."""
    try:
        return catalog.list()
    except DirectoryNotFound as e:
        logger.warning("%s", e)
        return error_response(404, "photo directory not found")
    except Exception:
        logger.exception("failed to read photo directory")
        return error_response(500, "server error")


@api_router.get("/{filename}", response_model=PhotoDetail, responses=_ERRORS)
def get_photo(filename: str, catalog: PhotoCatalog = Depends(get_catalog)):
    """File facts for one photo (no EXIF on this path)."""
    try:
        return catalog.lookup(filename)
    except FileNotFound:
        return error_response(404, "photo not found")
    except Exception:
        logger.exception("failed to read photo info for %s", filename)
        return error_response(500, "server error")


@public_router.get("/photos/{path:path}")
def get_photo_file(path: str, settings: Settings = Depends(get_settings)):
    """Serve the original bytes from the photo directory."""
    base = settings.photos_dir
    # safe_rel_under resolves; NUL bytes and the like come back as None
    rel = safe_rel_under(base, base / path)
    if rel is None:
        raise HTTPException(status_code=403, detail="forbidden path")
    abs_path = base.resolve() / rel
    if not abs_path.is_file():
        raise HTTPException(status_code=404, detail="file not found")
    return FileResponse(abs_path)
