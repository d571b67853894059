# app/core/config.py
# Loads Photoshelf settings from a TOML file (defaults + overrides).
# - Reads PHOTOSHELF_CONFIG, else the nearest photoshelf.toml from CWD upward, else app/
# - Normalizes extension lists (lowercase, ensure leading dot)
# - PHOTOSHELF_PHOTOS_DIR / PHOTOSHELF_PORT override the file values
# - Settings are an explicit object handed to the catalog, not module globals

from __future__ import annotations
from functools import lru_cache
from pathlib import Path
import os
from typing import Iterable, Iterator, List, Optional
import tomli as tomllib  # py3.11+: tomllib in stdlib; using tomli for compatibility


# -------------------- Defaults (used if TOML omits keys) --------------------
_DEFAULTS = {
    "server": {
        "photos_dir": "./local-photos",
        "host": "127.0.0.1",
        "port": 3001,
        "date_locale": "en-US",          # en-US | zh-CN
        "log_level": "INFO",
        "cors_origins": ["*"],
    },
    "ext": {
        "image": ["jpg", "jpeg", "png", "gif", "bmp", "webp"],
    },
    # site build script (scripts/build_site.py)
    "build": {
        "repo_url": "",
        "branch": "main",
        "temp_dir": "./tempproject",
        "dist_dir": "./dist",
        "build_output": "dist",          # relative to the checkout
        "install_cmd": ["npm", "install"],
        "build_cmd": ["npm", "run", "build"],
    },
}

CONFIG_NAME = "photoshelf.toml"


# -------------------- Read + merge TOML --------------------

def _config_candidates() -> Iterator[Path]:
    """PHOTOSHELF_CONFIG, then CWD and each parent, then next to the app package."""
    cfg_env = os.getenv("PHOTOSHELF_CONFIG")
    if cfg_env:
        yield Path(cfg_env).expanduser()
    cwd = Path.cwd()
    for d in (cwd, *cwd.parents):
        yield d / CONFIG_NAME
    yield Path(__file__).resolve().parents[1] / CONFIG_NAME


def find_config_path() -> Optional[Path]:
    """First existing photoshelf.toml, or None."""
    return next((p for p in _config_candidates() if p.exists()), None)


def load_config_toml(path: Optional[Path] = None) -> dict:
    """Load TOML from the given path (or best match) or return {} if not found."""
    path = path or find_config_path()
    if path and path.exists():
        with path.open("rb") as f:
            return tomllib.load(f)
    return {}


def norm_ext_list(exts: Iterable[Optional[str]]) -> frozenset[str]:
    """'JPG', '.jpg', ' jpg ' → '.jpg'; blanks dropped."""
    cleaned = ((e or "").strip().lower() for e in exts)
    return frozenset(e if e.startswith(".") else "." + e for e in cleaned if e)


def _resolve(p: str, base: Path) -> Path:
    path = Path(p).expanduser()
    return path if path.is_absolute() else (base / path)


# -------------------- Settings containers --------------------
class BuildSettings:
    """Inputs for the site build script; paths resolved against `base`."""
    def __init__(self, cfg: dict, base: Path) -> None:
        c = {**_DEFAULTS["build"], **(cfg or {})}
        self.repo_url: str = str(c.get("repo_url", "")).strip()
        self.branch: str = str(c.get("branch", "main"))
        self.temp_dir: Path = _resolve(str(c["temp_dir"]), base)
        self.dist_dir: Path = _resolve(str(c["dist_dir"]), base)
        self.build_output: str = str(c.get("build_output", "dist"))
        self.install_cmd: List[str] = [str(a) for a in c.get("install_cmd", [])]
        self.build_cmd: List[str] = [str(a) for a in c.get("build_cmd", [])]

    def __repr__(self) -> str:
        return (
            f"BuildSettings(repo_url={self.repo_url!r}, branch={self.branch!r}, "
            f"temp_dir={self.temp_dir}, dist_dir={self.dist_dir}, "
            f"build_output={self.build_output!r})"
        )


class Settings:
    """
    Everything the photo API needs, in one object.
    Build one with load_settings(); the catalog receives it at construction.
    """
    def __init__(self, cfg: Optional[dict] = None, *, base: Optional[Path] = None) -> None:
        cfg = cfg or {}
        base = (base or Path.cwd()).resolve()
        server = {**_DEFAULTS["server"], **cfg.get("server", {})}
        ext_cfg = {**_DEFAULTS["ext"], **cfg.get("ext", {})}

        self.photos_dir: Path = _resolve(str(server["photos_dir"]), base)
        self.host: str = str(server["host"])
        self.port: int = int(server["port"])
        self.date_locale: str = str(server["date_locale"])
        self.log_level: str = str(server["log_level"])
        self.cors_origins: List[str] = list(server["cors_origins"])
        self.image_ext: frozenset[str] = norm_ext_list(list(ext_cfg.get("image", [])))
        self.build = BuildSettings(cfg.get("build", {}), base)

    def __repr__(self) -> str:
        return (
            f"Settings(photos_dir={self.photos_dir}, host={self.host}, port={self.port}, "
            f"date_locale={self.date_locale}, image_ext={sorted(self.image_ext)})"
        )


def load_settings(path: Optional[Path] = None) -> Settings:
    """Read TOML (if any), apply env overrides and return a Settings object."""
    found = path or find_config_path()
    cfg = load_config_toml(found)
    # relative paths in the file are relative to the file itself
    base = found.resolve().parent if found else Path.cwd()

    server = dict(cfg.get("server", {}))
    if os.getenv("PHOTOSHELF_PHOTOS_DIR"):
        server["photos_dir"] = str(Path(os.environ["PHOTOSHELF_PHOTOS_DIR"]).expanduser().resolve())
    if os.getenv("PHOTOSHELF_PORT"):
        server["port"] = int(os.environ["PHOTOSHELF_PORT"])
    cfg = {**cfg, "server": server}

    return Settings(cfg, base=base)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached settings for the running app (FastAPI dependency)."""
    return load_settings()
