#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
build_site.py — fetch a private site repo, build it, and publish into ./dist.

Steps:
  1) clone <repo_url> into <temp_dir> (or fetch + hard reset if already there)
  2) wipe and recreate <dist_dir>
  3) run install_cmd and build_cmd inside the checkout
  4) copy <checkout>/<build_output> into <dist_dir>
  5) remove <temp_dir> (also when any step fails)

Usage (from repo root):
  GITHUB_TOKEN=... python scripts/build_site.py
  GITHUB_TOKEN=... python scripts/build_site.py --repo-url https://github.com/owner/site.git
  python scripts/build_site.py --config path/to/photoshelf.toml -v

Settings come from the [build] section of photoshelf.toml; CLI flags win.
The token is only ever placed in the clone URL and is redacted from logs.
"""

from __future__ import annotations

import argparse
import os
import shutil
import subprocess
import sys
import urllib.parse
from pathlib import Path
from typing import List, Optional, Sequence

from app.core.config import BuildSettings, load_config_toml, find_config_path
from app.core.logging import get_logger, setup_logging

LOGGER = get_logger("build")

TOKEN_ENV = "GITHUB_TOKEN"


class BuildError(Exception):
    """A build step could not run or produced nothing to publish."""


# ---------- Helpers ----------

def redact(text: str, token: Optional[str]) -> str:
    return text.replace(token, "***") if token else text


def authenticated_url(repo_url: str, token: str) -> str:
    """https://host/owner/repo.git → https://<token>@host/owner/repo.git"""
    parts = urllib.parse.urlsplit(repo_url)
    if parts.scheme != "https" or not parts.hostname:
        raise BuildError(f"repo_url must be an https URL: {repo_url!r}")
    host = parts.hostname + (f":{parts.port}" if parts.port else "")
    return urllib.parse.urlunsplit(parts._replace(netloc=f"{token}@{host}"))


def checkout_dir(build: BuildSettings) -> Path:
    """<temp_dir>/<repo name without .git>"""
    name = urllib.parse.urlsplit(build.repo_url).path.rstrip("/").rsplit("/", 1)[-1]
    if name.endswith(".git"):
        name = name[:-4]
    if not name:
        raise BuildError(f"cannot derive a checkout name from {build.repo_url!r}")
    return build.temp_dir / name


def run(cmd: Sequence[str], cwd: Path, token: Optional[str] = None) -> None:
    """Run a command, streaming its output; raise BuildError on non-zero exit."""
    shown = redact(" ".join(cmd), token)
    LOGGER.info("$ %s  (in %s)", shown, cwd)
    try:
        subprocess.run(list(cmd), cwd=cwd, check=True)
    except subprocess.CalledProcessError as e:
        raise BuildError(f"command failed (exit {e.returncode}): {shown}") from None
    except FileNotFoundError:
        raise BuildError(f"command not found: {cmd[0]}") from None


def copy_tree(src: Path, dest: Path) -> None:
    if not src.is_dir():
        raise BuildError(f"Source directory does not exist: {src}")
    shutil.copytree(src, dest, dirs_exist_ok=True)


def remove_tree(p: Path) -> None:
    """Best-effort rmtree; failures are logged, not raised."""
    if not p.exists():
        return
    try:
        shutil.rmtree(p)
    except OSError as e:
        LOGGER.warning("could not remove %s: %s", p, e)


# ---------- Steps ----------

def sync_repo(build: BuildSettings, token: str) -> Path:
    """Clone into temp_dir, or refresh an existing checkout to origin/<branch>."""
    build.temp_dir.mkdir(parents=True, exist_ok=True)
    project = checkout_dir(build)
    if not project.exists():
        LOGGER.info("Cloning %s ...", build.repo_url)
        run(["git", "clone", authenticated_url(build.repo_url, token)], cwd=build.temp_dir, token=token)
    else:
        LOGGER.info("Updating %s ...", project.name)
        run(["git", "fetch", "origin"], cwd=project, token=token)
        run(["git", "reset", "--hard", f"origin/{build.branch}"], cwd=project, token=token)
    return project


def build_site(build: BuildSettings, token: str) -> Path:
    """Full pipeline; returns dist_dir. Temp state is removed either way."""
    if not build.repo_url:
        raise BuildError("no repo_url configured ([build].repo_url or --repo-url)")

    try:
        project = sync_repo(build, token)

        LOGGER.info("Cleaning dist directory %s ...", build.dist_dir)
        remove_tree(build.dist_dir)
        build.dist_dir.mkdir(parents=True, exist_ok=True)

        LOGGER.info("Installing dependencies ...")
        run(build.install_cmd, cwd=project, token=token)

        LOGGER.info("Building ...")
        run(build.build_cmd, cwd=project, token=token)

        LOGGER.info("Copying build output ...")
        copy_tree(project / build.build_output, build.dist_dir.resolve())
        LOGGER.info("Build completed successfully!")
        return build.dist_dir
    finally:
        LOGGER.info("Cleaning up temporary files ...")
        remove_tree(build.temp_dir)


# ---------- CLI ----------

def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Build a private site repo into a local dist folder.")
    ap.add_argument("--config", help="Path to photoshelf.toml (default: auto-detect)")
    ap.add_argument("--repo-url", help="https URL of the repository to build")
    ap.add_argument("--branch", help="Branch to reset to when the checkout already exists")
    ap.add_argument("--dist-dir", help="Where the build output is copied")
    ap.add_argument("--temp-dir", help="Scratch directory for the checkout")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return ap.parse_args(argv)


def settings_from_args(args: argparse.Namespace) -> BuildSettings:
    cfg_path = Path(args.config).expanduser() if args.config else find_config_path()
    cfg = load_config_toml(cfg_path).get("build", {}) if cfg_path else {}
    # config-file paths are relative to the file; CLI paths to the CWD
    overrides = {
        "repo_url": args.repo_url,
        "branch": args.branch,
        "dist_dir": str(Path(args.dist_dir).resolve()) if args.dist_dir else None,
        "temp_dir": str(Path(args.temp_dir).resolve()) if args.temp_dir else None,
    }
    cfg = {**cfg, **{k: v for k, v in overrides.items() if v}}
    base = cfg_path.resolve().parent if cfg_path else Path.cwd()
    return BuildSettings(cfg, base)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging("DEBUG" if args.verbose else "INFO")

    token = os.getenv(TOKEN_ENV)
    if not token:
        LOGGER.error("Error: %s environment variable is required for private repositories", TOKEN_ENV)
        LOGGER.info("Please set %s with your GitHub Personal Access Token", TOKEN_ENV)
        return 1

    try:
        build = settings_from_args(args)
        LOGGER.debug("%r", build)
        build_site(build, token)
    except (BuildError, OSError) as e:
        LOGGER.error("Build failed: %s", redact(str(e), token))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
