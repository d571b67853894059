# serve.py — run the Photoshelf API with uvicorn
# ---------------------------------------------------------------
#   GET /api/photos              → list images in photos_dir (with EXIF summary)
#   GET /api/photos/{filename}   → file facts for one image
#   GET /photos/{filename}       → raw image bytes
#
# How to run (from repo root):
#   pip install -e .
#   python photoshelf-api/serve.py
# Settings come from photoshelf.toml ([server] photos_dir/host/port) or
# PHOTOSHELF_PHOTOS_DIR / PHOTOSHELF_PORT.

from __future__ import annotations

import uvicorn

from app.core.config import get_settings
from app.core.logging import setup_logging


def main() -> None:
    settings = get_settings()
    log = setup_logging(settings.log_level)
    log.info("Photo server running at http://%s:%s", settings.host, settings.port)
    log.info("Photo directory: %s", settings.photos_dir)
    uvicorn.run("app.main:app", host=settings.host, port=settings.port,
                log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
