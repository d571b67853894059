import os
from datetime import datetime
from pathlib import Path

import pytest
from PIL import Image

from app.core.config import Settings


def set_mtime(p: Path, day: str) -> None:
    """Pin a file's mtime to local noon of YYYY-MM-DD (no TZ edge cases)."""
    ts = datetime.strptime(day, "%Y-%m-%d").replace(hour=12).timestamp()
    os.utime(p, (ts, ts))


def write_jpeg(p: Path, tags: dict = None) -> Path:
    """Small JPEG; `tags` are base-IFD EXIF tags by numeric id."""
    exif = Image.Exif()
    for k, v in (tags or {}).items():
        exif[k] = v
    Image.new("RGB", (8, 8), (200, 120, 40)).save(p, "JPEG", exif=exif.tobytes())
    return p


def write_png(p: Path) -> Path:
    Image.new("RGB", (8, 8), (10, 20, 30)).save(p, "PNG")
    return p


@pytest.fixture
def photos_dir(tmp_path):
    d = tmp_path / "photos"
    d.mkdir()
    return d


@pytest.fixture
def settings(photos_dir):
    return Settings({"server": {"photos_dir": str(photos_dir)}})
