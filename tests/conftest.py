"""Shared fixtures: throwaway home directory, fake Steam libraries and a fake HTTP session."""

import logging
import subprocess
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import pytest
import requests

from lvlinker.core.wine_runtime import WineRuntime


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Point HOME at a temporary directory so nothing touches the real one."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USER", "tester")
    return home


@pytest.fixture(autouse=True)
def restore_logging():
    """Drop the handlers setup_logging installs so they do not outlive the test."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in root.handlers[:]:
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


def write_manifest(root: Path, app_id: str, installdir: Optional[str] = None, name: Optional[str] = None) -> Path:
    """Write steamapps/appmanifest_<id>.acf under a library root."""
    steamapps = root / "steamapps"
    steamapps.mkdir(parents=True, exist_ok=True)
    lines = ['"AppState"', "{", f'\t"appid"\t\t"{app_id}"']
    if name is not None:
        lines.append(f'\t"name"\t\t"{name}"')
    if installdir is not None:
        lines.append(f'\t"installdir"\t\t"{installdir}"')
    lines.append("}")
    manifest = steamapps / f"appmanifest_{app_id}.acf"
    manifest.write_text("\n".join(lines) + "\n")
    return manifest


def add_game_dir(root: Path, dirname: str, files: Iterable[str] = ("game.exe",)) -> Path:
    """Create steamapps/common/<dirname> with some files in it."""
    game_dir = root / "steamapps" / "common" / dirname
    game_dir.mkdir(parents=True, exist_ok=True)
    for name in files:
        (game_dir / name).write_text("data")
    return game_dir


def write_library_index(root: Path, paths: List[Path]) -> Path:
    """Write a current-style steamapps/libraryfolders.vdf listing the given roots."""
    steamapps = root / "steamapps"
    steamapps.mkdir(parents=True, exist_ok=True)
    lines = ['"libraryfolders"', "{"]
    for index, path in enumerate(paths):
        lines += [f'\t"{index}"', "\t{", f'\t\t"path"\t\t"{path}"', "\t}"]
    lines.append("}")
    index_file = steamapps / "libraryfolders.vdf"
    index_file.write_text("\n".join(lines) + "\n")
    return index_file


class FakeResponse:
    def __init__(self, payload, status_code: int = 200):
        self.payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


class FakeSession:
    """Stands in for requests.Session; answers appdetails requests from a dict."""

    def __init__(self, names: Optional[Dict[str, str]] = None, error: Optional[Exception] = None,
                 payloads: Optional[dict] = None, status_code: int = 200):
        self.names = names or {}
        self.error = error
        self.payloads = payloads or {}
        self.status_code = status_code
        self.calls: List[dict] = []

    def get(self, url, params=None, timeout=None):
        self.calls.append({"url": url, "params": params, "timeout": timeout})
        if self.error is not None:
            raise self.error
        app_id = params["appids"]
        if app_id in self.payloads:
            return FakeResponse(self.payloads[app_id], self.status_code)
        if app_id in self.names:
            return FakeResponse({app_id: {"success": True, "data": {"name": self.names[app_id]}}}, self.status_code)
        return FakeResponse({app_id: {"success": False}}, self.status_code)


class FakeRuntime(WineRuntime):
    """WineRuntime that never starts wine; commands are recorded and answered by a handler."""

    def __init__(self, prefix: Path, available: bool = True, handler=None):
        super().__init__(prefix, "wine", timeout=5)
        self.available = available
        self.handler = handler
        self.commands: List[List[str]] = []

    def is_available(self) -> bool:
        return self.available

    def run(self, args, timeout=None):
        self.commands.append(list(args))
        if self.handler is not None:
            return self.handler(list(args))
        return subprocess.CompletedProcess(self.command(args), 0, "", "")


@pytest.fixture
def library(tmp_path):
    root = tmp_path / "steam"
    (root / "steamapps").mkdir(parents=True)
    return root


@pytest.fixture
def prefix(tmp_path):
    prefix = tmp_path / "prefix"
    (prefix / "drive_c").mkdir(parents=True)
    return prefix
