import subprocess
from pathlib import Path

import pytest

from app.core.config import BuildSettings
from scripts import build_site
from scripts.build_site import BuildError, authenticated_url, checkout_dir

TOKEN = "ghp_secret123"
REPO = "https://github.com/owner/site.git"


def _build(tmp_path):
    return BuildSettings({"repo_url": REPO, "temp_dir": "tmp", "dist_dir": "out"}, tmp_path)


def _fake_subprocess(calls, fail_on=None):
    """Stand-in for subprocess.run: clone makes the checkout, build makes dist/."""
    def run(cmd, cwd, check):
        calls.append(list(cmd))
        if fail_on and cmd[: len(fail_on)] == fail_on:
            raise subprocess.CalledProcessError(2, cmd)
        if cmd[:2] == ["git", "clone"]:
            (Path(cwd) / "site").mkdir()
        elif cmd == ["npm", "run", "build"]:
            out = Path(cwd) / "dist"
            (out / "assets").mkdir(parents=True)
            (out / "index.html").write_text("<html></html>")
            (out / "assets" / "app.js").write_text("console.log(1)")
        return subprocess.CompletedProcess(cmd, 0)
    return run


def test_authenticated_url():
    assert authenticated_url(REPO, TOKEN) == f"https://{TOKEN}@github.com/owner/site.git"

def test_authenticated_url_needs_https():
    with pytest.raises(BuildError):
        authenticated_url("git@github.com:owner/site.git", TOKEN)

def test_checkout_dir_strips_git_suffix(tmp_path):
    assert checkout_dir(_build(tmp_path)) == tmp_path / "tmp" / "site"

def test_build_copies_output_and_cleans_up(tmp_path, monkeypatch):
    calls = []
    monkeypatch.setattr(build_site.subprocess, "run", _fake_subprocess(calls))
    b = _build(tmp_path)
    (tmp_path / "out").mkdir()
    (tmp_path / "out" / "stale.txt").write_text("old")

    build_site.build_site(b, TOKEN)

    assert (tmp_path / "out" / "index.html").exists()
    assert (tmp_path / "out" / "assets" / "app.js").exists()
    assert not (tmp_path / "out" / "stale.txt").exists()
    assert not (tmp_path / "tmp").exists()
    assert calls[0][:2] == ["git", "clone"]
    assert calls[1:] == [["npm", "install"], ["npm", "run", "build"]]

def test_existing_checkout_is_reset_not_cloned(tmp_path, monkeypatch):
    calls = []
    monkeypatch.setattr(build_site.subprocess, "run", _fake_subprocess(calls))
    (tmp_path / "tmp" / "site").mkdir(parents=True)
    build_site.build_site(_build(tmp_path), TOKEN)
    assert calls[:2] == [["git", "fetch", "origin"], ["git", "reset", "--hard", "origin/main"]]

def test_failed_step_still_cleans_temp(tmp_path, monkeypatch):
    calls = []
    monkeypatch.setattr(build_site.subprocess, "run", _fake_subprocess(calls, fail_on=["npm", "run"]))
    with pytest.raises(BuildError):
        build_site.build_site(_build(tmp_path), TOKEN)
    assert not (tmp_path / "tmp").exists()

def test_missing_build_output_is_an_error(tmp_path, monkeypatch):
    calls = []
    fake = _fake_subprocess(calls)

    def no_output(cmd, cwd, check):
        if cmd == ["npm", "run", "build"]:
            calls.append(list(cmd))
            return subprocess.CompletedProcess(cmd, 0)
        return fake(cmd, cwd, check)

    monkeypatch.setattr(build_site.subprocess, "run", no_output)
    with pytest.raises(BuildError, match="Source directory does not exist"):
        build_site.build_site(_build(tmp_path), TOKEN)

def test_clone_failure_does_not_leak_token(tmp_path, monkeypatch):
    calls = []
    monkeypatch.setattr(build_site.subprocess, "run", _fake_subprocess(calls, fail_on=["git", "clone"]))
    with pytest.raises(BuildError) as ei:
        build_site.build_site(_build(tmp_path), TOKEN)
    assert TOKEN not in str(ei.value)
    assert TOKEN in calls[0][2]

def test_main_requires_token(monkeypatch):
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    assert build_site.main(["--repo-url", REPO]) == 1

def test_main_exit_codes(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("PHOTOSHELF_CONFIG", raising=False)
    monkeypatch.setenv("GITHUB_TOKEN", TOKEN)
    args = ["--repo-url", REPO, "--temp-dir", "tmp", "--dist-dir", "out"]

    monkeypatch.setattr(build_site.subprocess, "run", _fake_subprocess([]))
    assert build_site.main(args) == 0
    assert (tmp_path / "out" / "index.html").exists()

    monkeypatch.setattr(build_site.subprocess, "run", _fake_subprocess([], fail_on=["npm", "install"]))
    assert build_site.main(args) == 1
    assert not (tmp_path / "tmp").exists()
