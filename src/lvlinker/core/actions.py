"""
Filesystem action recorder
Every mutation goes through here so a dry run can describe it instead of doing it
"""

import os
import shutil
from pathlib import Path
from typing import Any, Callable, List, Optional

from lvlinker.utils.logger import get_logger


def quote(path) -> str:
    return f'"{path}"'


def remove_path(path: Path):
    """Remove a symlink, file or directory tree without following symlinks"""
    if path.is_symlink() or path.is_file():
        path.unlink()
    elif path.is_dir():
        shutil.rmtree(path)


class ActionRecorder:
    """Records descriptions of mutating actions and runs them unless dry_run

    Descriptions depend only on their inputs, so identical runs produce
    identical action lists.
    """

    def __init__(self, dry_run: bool = False):
        self.logger = get_logger(__name__)
        self.dry_run = dry_run
        self.actions: List[str] = []

    def perform(self, description: str, func: Optional[Callable[..., Any]] = None, *args, **kwargs) -> Any:
        self.actions.append(description)
        if self.dry_run:
            self.logger.info(f"DRY RUN: {description}")
            return None
        self.logger.debug(f"Running: {description}")
        if func is None:
            return None
        return func(*args, **kwargs)

    def remove(self, path: Path):
        flag = "-rf" if path.is_dir() and not path.is_symlink() else "-f"
        self.perform(f"rm {flag} {quote(path)}", remove_path, path)

    def mkdir(self, path: Path):
        self.perform(f"mkdir -p {quote(path)}", path.mkdir, parents=True, exist_ok=True)

    def symlink(self, source: Path, target: Path):
        self.perform(f"ln -s {quote(source)} {quote(target)}", os.symlink, str(source), str(target), True)

    def copytree(self, source: Path, target: Path):
        self.perform(f"cp -a {quote(str(source) + '/.')} {quote(target)}", shutil.copytree, source, target, symlinks=True)
