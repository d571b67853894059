# app/services/metadata.py
# Embedded metadata → ExifSummary.
# - parse_tags(bytes) is the only place that touches Pillow; swap it in tests
# - extract() never raises: any failure becomes the sentinel summary
from __future__ import annotations
from datetime import datetime
from typing import Callable, Dict, NamedTuple, Optional
import io

from PIL import Image, ExifTags

from app.core.logging import get_logger
from app.schemas.photo import ExifSummary

# HEIC/HEIF support when ext.image lists them
try:
    import pillow_heif  # type: ignore
    pillow_heif.register_heif_opener()
except Exception:
    pass

logger = get_logger("metadata")

UNKNOWN_DATE = "unknown"
UNKNOWN_LOCATION = "unknown location"

# IFD pointers inside the base IFD (not real tags)
_EXIF_IFD = 0x8769
_GPS_IFD = 0x8825

# EXIF "undefined" strings start with an 8-byte charset id
_CHARSET_HEADERS = (b"ASCII\x00\x00\x00", b"UNICODE\x00", b"JIS\x00\x00\x00\x00\x00", b"\x00" * 8)


class Tag(NamedTuple):
    description: str


TagParser = Callable[[bytes], Dict[str, Tag]]


def default_summary() -> ExifSummary:
    return ExifSummary(date_time=UNKNOWN_DATE, location=UNKNOWN_LOCATION, camera_info="")


# -------------------- Tag parsing (Pillow) --------------------

def _describe(v) -> str:
    """Human-readable form of a raw Pillow tag value."""
    if isinstance(v, bytes):
        head = v[:8]
        if head in _CHARSET_HEADERS:
            body = v[8:]
            text = body.decode("utf-16", errors="replace") if head.startswith(b"UNICODE") \
                else body.decode("utf-8", errors="replace")
        else:
            text = v.decode("utf-8", errors="replace")
        return text.strip("\x00 ")
    if isinstance(v, str):
        return v.strip("\x00 ")
    if isinstance(v, (tuple, list)):
        return ", ".join(_describe(x) for x in v)
    if isinstance(v, float) or hasattr(v, "numerator"):
        f = float(v)
        return str(int(f)) if f.is_integer() else str(round(f, 6))
    return str(v)


def _dms_to_degrees(v) -> float:
    """(deg, min, sec) rationals → decimal degrees; plain numbers pass through."""
    if isinstance(v, (tuple, list)):
        parts = [float(x) for x in v] + [0.0, 0.0]
        return parts[0] + parts[1] / 60.0 + parts[2] / 3600.0
    return float(v)


def _gps_tags(gps: dict) -> Dict[str, Tag]:
    named = {ExifTags.GPSTAGS.get(k, str(k)): val for k, val in gps.items()}
    out: Dict[str, Tag] = {}
    for name, val in named.items():
        if name in ("GPSLatitude", "GPSLongitude"):
            deg = _dms_to_degrees(val)
            ref = _describe(named.get(name + "Ref", "")).upper()
            if ref in ("S", "W"):
                deg = -deg
            out[name] = Tag(str(round(deg, 6)))
        else:
            out[name] = Tag(_describe(val))
    return out


def parse_tags(data: bytes) -> Dict[str, Tag]:
    """
    Parse the embedded EXIF block of an image into {tag name: Tag}.
    Covers the base IFD, the Exif sub-IFD and the GPS IFD.
    Raises whatever Pillow raises for unreadable input.
    """
    tags: Dict[str, Tag] = {}
    with Image.open(io.BytesIO(data)) as im:
        exif = im.getexif()
        for tag_id, val in exif.items():
            if tag_id in (_EXIF_IFD, _GPS_IFD):
                continue
            tags[ExifTags.TAGS.get(tag_id, f"Tag{tag_id}")] = Tag(_describe(val))
        for tag_id, val in exif.get_ifd(_EXIF_IFD).items():
            tags[ExifTags.TAGS.get(tag_id, f"Tag{tag_id}")] = Tag(_describe(val))
        tags.update(_gps_tags(exif.get_ifd(_GPS_IFD)))
    return tags


# -------------------- Date rendering --------------------

_EN_MONTHS = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


def _render_en(dt: datetime) -> str:
    # 12-hour clock, zero-padded hour: "March 1, 2024 at 01:05 PM"
    hour = dt.hour % 12 or 12
    half = "AM" if dt.hour < 12 else "PM"
    return f"{_EN_MONTHS[dt.month - 1]} {dt.day}, {dt.year} at {hour:02d}:{dt:%M} {half}"


def _render_zh(dt: datetime) -> str:
    return f"{dt.year}年{dt.month}月{dt.day}日 {dt:%H:%M}"


_RENDERERS = {
    "en-US": _render_en,
    "zh-CN": _render_zh,
}


def _parse_exif_dt(s: str) -> Optional[datetime]:
    """'YYYY:MM:DD HH:MM:SS' (optionally ISO-like) → datetime, else None."""
    s = (s or "").strip()
    try:
        return datetime.strptime(s[:19], "%Y:%m:%d %H:%M:%S")
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(s.replace("Z", "+00:00"))
    except ValueError:
        return None


def format_datetime(raw: str, locale: str = "en-US") -> str:
    """Long localized date+time; the raw value is returned untouched if it doesn't parse."""
    dt = _parse_exif_dt(raw)
    if dt is None:
        return raw
    return _RENDERERS.get(locale, _render_en)(dt)


# -------------------- Summary --------------------

def _desc(tags: Dict[str, Tag], name: str) -> Optional[str]:
    t = tags.get(name)
    return t.description if t is not None else None


def summarize(tags: Dict[str, Tag], locale: str = "en-US") -> ExifSummary:
    """Pick date/location/camera out of a tag mapping."""
    raw_dt = _desc(tags, "DateTime") or _desc(tags, "DateTimeOriginal") or _desc(tags, "DateTimeDigitized")
    date_time = format_datetime(raw_dt, locale) if raw_dt else UNKNOWN_DATE

    location = UNKNOWN_LOCATION
    lat, lng = _desc(tags, "GPSLatitude"), _desc(tags, "GPSLongitude")
    if lat is not None and lng is not None:
        location = f"{lat}, {lng}"
        method = _desc(tags, "GPSProcessingMethod")
        if method is not None:
            location = method

    make, model = _desc(tags, "Make"), _desc(tags, "Model")
    camera_info = f"{make} {model}" if make is not None and model is not None else ""

    return ExifSummary(date_time=date_time, location=location, camera_info=camera_info)


def extract(
    data: bytes,
    *,
    parse: TagParser = parse_tags,
    locale: str = "en-US",
    source: str = "-",
) -> ExifSummary:
    """Public API: bytes → ExifSummary. Never raises."""
    try:
        return summarize(parse(data), locale)
    except Exception as e:
        logger.warning("metadata read failed for %s: %s", source, e)
        return default_summary()
