# app/utils/http.py
from pathlib import Path
from typing import Optional
import urllib.parse

PHOTOS_PREFIX = "/photos"
_URI_SAFE = "!*'()"  # what encodeURIComponent leaves alone besides _.-~


def safe_rel_under(base: Path, target: Path) -> Optional[Path]:
    """
    Return target's path relative to base if target is inside base, else None.
    Prevents path traversal.
    """
    try:
        return target.resolve().relative_to(base.resolve())
    except (OSError, ValueError):
        return None


def photo_url(filename: str) -> str:
    """Relative URL under /photos/ for a file name."""
    return f"{PHOTOS_PREFIX}/{urllib.parse.quote(filename, safe=_URI_SAFE)}"
