"""
Backup Facility
Snapshots the prefix directories a run is about to change into a timestamped tar.gz
"""

import tarfile
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional

from lvlinker.core.actions import ActionRecorder, quote
from lvlinker.core.errors import BackupFailed
from lvlinker.utils.logger import get_logger


ARCHIVE_PREFIX = "lvlinker_backup_"


def collapse_paths(paths: Iterable[Path]) -> List[Path]:
    """Drop duplicates and paths nested inside another listed path, keeping order"""
    unique: List[Path] = []
    for path in paths:
        path = Path(path)
        if path not in unique:
            unique.append(path)
    return [p for p in unique if not any(other != p and other in p.parents for other in unique)]


class BackupManager:
    """Creates one backup archive per run"""

    def __init__(self, backup_dir: Path):
        self.logger = get_logger(__name__)
        self.backup_dir = Path(backup_dir)

    def _archive_path(self) -> Path:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        archive = self.backup_dir / f"{ARCHIVE_PREFIX}{timestamp}.tar.gz"
        counter = 1
        while archive.exists():
            archive = self.backup_dir / f"{ARCHIVE_PREFIX}{timestamp}_{counter}.tar.gz"
            counter += 1
        return archive

    def backup(self, paths: Iterable[Path], recorder: Optional[ActionRecorder] = None) -> Optional[Path]:
        """
        Archive the given directories

        Symlinks are stored as symlinks, so linked game folders are not pulled
        into the archive. Missing paths are left out.

        Args:
            paths: Directories about to be changed
            recorder: In a dry run, the archive is only described

        Returns:
            Path of the archive, or None in a dry run

        Raises:
            BackupFailed: The archive could not be written
        """
        targets = [p for p in collapse_paths(paths) if p.exists() or p.is_symlink()]

        if recorder is not None and recorder.dry_run:
            listed = " ".join(quote(p) for p in targets)
            recorder.perform(
                f"tar -czf {quote(self.backup_dir / (ARCHIVE_PREFIX + '<timestamp>.tar.gz'))} {listed}".rstrip()
            )
            return None

        archive = None
        try:
            self.backup_dir.mkdir(parents=True, exist_ok=True)
            archive = self._archive_path()
            self.logger.info(f"Creating backup of {len(targets)} folder(s)...")
            with tarfile.open(archive, "w:gz") as tar:
                for path in targets:
                    self.logger.debug(f"Backing up {path}")
                    tar.add(str(path), arcname=str(path).lstrip("/"))
        except (OSError, tarfile.TarError) as e:
            if archive is not None and archive.exists():
                try:
                    archive.unlink()
                except OSError:
                    self.logger.warning(f"Could not remove incomplete backup {archive}")
            raise BackupFailed(f"Failed to create backup in {self.backup_dir}: {e}") from e

        self.logger.info(f"Backup saved to {archive}")
        return archive
