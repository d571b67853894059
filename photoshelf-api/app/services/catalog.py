# app/services/catalog.py
# Directory scan → per-file stat + metadata → PhotoRecord list.
# Read-only; rebuilt on every call (no caching).
from __future__ import annotations
from datetime import datetime
from pathlib import Path
import os
from typing import List, Optional
import urllib.parse

from app.core.config import Settings
from app.core.logging import get_logger
from app.schemas.photo import PhotoDetail, PhotoRecord
from app.services.metadata import TagParser, default_summary, extract, parse_tags
from app.utils.http import photo_url, safe_rel_under

logger = get_logger("catalog")


class CatalogError(Exception):
    """Base for the precondition failures the API turns into 404s."""


class DirectoryNotFound(CatalogError):
    def __init__(self, path: Path) -> None:
        super().__init__(f"photo directory not found: {path}")
        self.path = path


class FileNotFound(CatalogError):
    def __init__(self, filename: str) -> None:
        super().__init__(f"photo not found: {filename}")
        self.filename = filename


def local_date(ts: float) -> str:
    """Epoch seconds → local calendar date 'YYYY-MM-DD'."""
    return datetime.fromtimestamp(ts).strftime("%Y-%m-%d")


def _created_ts(st: os.stat_result) -> float:
    # st_birthtime exists on macOS/BSD (and Windows on 3.12+); st_ctime otherwise
    return getattr(st, "st_birthtime", st.st_ctime)


class PhotoCatalog:
    """
    Lists and looks up images in one directory.
    Settings and the tag parser come in at construction.
    """
    def __init__(self, settings: Settings, parse: TagParser = parse_tags) -> None:
        self.settings = settings
        self.parse = parse

    @property
    def root(self) -> Path:
        return self.settings.photos_dir

    def is_image(self, name: str) -> bool:
        return Path(name).suffix.lower() in self.settings.image_ext

    # ---------- list ----------
    def list(self) -> List[PhotoRecord]:
        """All supported images, newest modifiedDate first (ties by filename)."""
        root = self.root
        if not root.is_dir():
            raise DirectoryNotFound(root)

        photos: List[PhotoRecord] = []
        for child in root.iterdir():
            if not self.is_image(child.name):
                continue
            rec = self._record(child)
            if rec is not None:
                photos.append(rec)

        # two stable passes: secondary key first, then primary
        photos.sort(key=lambda p: p.filename)
        photos.sort(key=lambda p: p.modified_date, reverse=True)
        logger.debug("listed %d photos in %s", len(photos), root)
        return photos

    def _record(self, p: Path) -> Optional[PhotoRecord]:
        try:
            # undecodable bytes come back as surrogates; they can't go into a URL
            p.name.encode("utf-8")
        except UnicodeEncodeError:
            logger.warning("skipping %r: name is not valid UTF-8", p.name)
            return None
        try:
            st = p.stat()
        except FileNotFoundError:
            # gone between iterdir() and stat()
            return None
        except OSError as e:
            logger.warning("stat failed for %s: %s", p.name, e)
            return None
        if not p.is_file():
            return None

        try:
            data = p.read_bytes()
        except OSError as e:
            logger.warning("read failed for %s: %s", p.name, e)
            exif = default_summary()
        else:
            exif = extract(data, parse=self.parse, locale=self.settings.date_locale, source=p.name)

        return PhotoRecord(
            filename=p.name,
            original_name=p.stem,
            extension=p.suffix.lower(),
            size=st.st_size,
            modified_date=local_date(st.st_mtime),
            url=photo_url(p.name),
            exif=exif,
        )

    # ---------- lookup ----------
    def lookup(self, filename: str) -> PhotoDetail:
        """Single file by (percent-encoded) name; no metadata extraction."""
        name = urllib.parse.unquote(filename)
        root = self.root
        target = root / name
        rel = safe_rel_under(root, target)
        if not name or rel is None or not target.is_file():
            raise FileNotFound(name)

        st = target.stat()
        return PhotoDetail(
            filename=name,
            original_name=target.stem,
            extension=target.suffix.lower(),
            size=st.st_size,
            modified_date=local_date(st.st_mtime),
            created_date=local_date(_created_ts(st)),
            url=photo_url(name),
        )
