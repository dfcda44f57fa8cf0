"""
Linker
Replaces a target in the Wine prefix with a link to a host directory, walking the
strategy chain, and links the per-game Documents/AppData folders best-effort
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from lvlinker.core.actions import ActionRecorder, remove_path
from lvlinker.core.errors import LinkStrategyExhausted
from lvlinker.core.link_strategies import LinkStrategy
from lvlinker.core.models import AttemptStatus, LinkResult
from lvlinker.utils.logger import get_logger


def is_same_location(source: Path, target_parent: Path, basename: str) -> bool:
    """True when target_parent/basename is the source itself (e.g. through a symlinked parent)"""
    return Path(os.path.realpath(target_parent)) / basename == Path(os.path.realpath(source))


class Linker:
    """Links source directories into the target namespace"""

    def __init__(self, strategies: Sequence[LinkStrategy], dry_run: bool = False):
        self.logger = get_logger(__name__)
        self.strategies = list(strategies)
        self.dry_run = dry_run
        # Parents a dry run has already planned to create
        self._planned_dirs = set()

    def link(self, source_dir: Path, target_parent: Path, basename: str, app_id: str = "") -> LinkResult:
        """
        Make target_parent/basename point at source_dir

        An existing target is removed first. Strategies are tried in order
        until one succeeds; in a dry run the first applicable one is reported.

        Returns:
            LinkResult with the strategy used and the actions taken (or planned)

        Raises:
            LinkStrategyExhausted: No strategy could create the link
        """
        source_dir = Path(source_dir)
        target = Path(target_parent) / basename
        recorder = ActionRecorder(self.dry_run)

        if is_same_location(source_dir, Path(target_parent), basename):
            raise LinkStrategyExhausted(str(target), ["target is the source directory itself"])

        try:
            if target.exists() or target.is_symlink():
                self.logger.info(f"Target exists, removing it first: {target}")
                recorder.remove(target)
            target_parent = Path(target_parent)
            if not target_parent.is_dir() and target_parent not in self._planned_dirs:
                recorder.mkdir(target_parent)
                if self.dry_run:
                    self._planned_dirs.add(target_parent)
        except OSError as e:
            raise LinkStrategyExhausted(str(target), [f"could not prepare target: {e}"])

        attempts = []
        try:
            for strategy in self.strategies:
                result = strategy.attempt(source_dir, target, recorder)
                attempts.append(result)
                self.logger.debug(f"{target}: {result.describe()}")

                if result.status is AttemptStatus.OK:
                    return LinkResult(
                        app_id=app_id,
                        strategy_used=result.strategy,
                        target_path=target,
                        detail=result.detail,
                        actions=list(recorder.actions),
                        attempts=attempts,
                    )
                if result.status is AttemptStatus.FAILED and not self.dry_run:
                    self._clear(target, recorder)
        except KeyboardInterrupt:
            # Leave nothing half-made; the next run recreates the link
            if not self.dry_run:
                self._discard(target)
            raise

        raise LinkStrategyExhausted(str(target), [attempt.describe() for attempt in attempts])

    def _clear(self, target: Path, recorder: ActionRecorder):
        if target.exists() or target.is_symlink():
            try:
                recorder.remove(target)
            except OSError as e:
                self.logger.warning(f"Could not clean up after failed attempt at {target}: {e}")

    def _discard(self, target: Path):
        try:
            if target.exists() or target.is_symlink():
                remove_path(target)
        except OSError as e:
            self.logger.error(f"Could not remove interrupted link {target}: {e}")


@dataclass(frozen=True)
class AuxiliaryLink:
    """A per-game Documents or AppData folder to mirror into the prefix"""
    kind: str
    source: Path
    target_parent: Path
    basename: str

    @property
    def target(self) -> Path:
        return self.target_parent / self.basename


class AuxiliaryLinker:
    """Finds and links a game's Documents and AppData folders

    Failures never fail the game; they are returned as warnings.
    """

    def __init__(self, linker: Linker, prefix: Path, prefix_user: str, documents_dir: Optional[Path] = None):
        self.logger = get_logger(__name__)
        self.linker = linker
        self.prefix = Path(prefix)
        self.prefix_user = prefix_user
        self.documents_dir = Path(documents_dir) if documents_dir else Path.home() / "Documents"

    @property
    def prefix_user_dir(self) -> Path:
        return self.prefix / "drive_c" / "users" / self.prefix_user

    @staticmethod
    def _names(display_name: Optional[str], dir_name: str) -> List[str]:
        names = []
        for name in (display_name, dir_name):
            if name and "/" not in name and name not in names:
                names.append(name)
        return names

    def find(self, app_id: str, display_name: Optional[str], dir_name: str,
             library_roots: Sequence[Path]) -> List[AuxiliaryLink]:
        """Find the first existing Documents folder and the first existing AppData folder"""
        names = self._names(display_name, dir_name)
        found = []

        documents = [Path("My Games") / name for name in names] + [Path(name) for name in names]
        for relative in documents:
            source = self.documents_dir / relative
            if source.is_dir():
                target_parent = self.prefix_user_dir / "Documents" / relative.parent
                found.append(AuxiliaryLink("documents", source, target_parent, relative.name))
                break
        else:
            self.logger.debug(f"No documents folder for {app_id} (this is normal for some games)")

        appdata = [Path(area) / name for area in ("Local", "Roaming") for name in names]
        match = self._find_appdata(app_id, appdata, library_roots)
        if match:
            source, relative = match
            target_parent = self.prefix_user_dir / "AppData" / relative.parent
            found.append(AuxiliaryLink("appdata", source, target_parent, relative.name))
        else:
            self.logger.debug(f"No AppData folder for {app_id} (this is normal for most games)")

        return found

    def _find_appdata(self, app_id: str, candidates: List[Path],
                      library_roots: Sequence[Path]) -> Optional[Tuple[Path, Path]]:
        for root in library_roots:
            appdata_root = (Path(root) / "steamapps" / "compatdata" / app_id / "pfx" / "drive_c"
                            / "users" / "steamuser" / "AppData")
            for relative in candidates:
                source = appdata_root / relative
                if source.is_dir():
                    return source, relative
        return None

    def link_all(self, links: Sequence[AuxiliaryLink], app_id: str = "") -> Tuple[List[LinkResult], List[str]]:
        """
        Link every auxiliary folder

        Returns:
            (link results, warnings)
        """
        results = []
        warnings = []
        for aux in links:
            if is_same_location(aux.source, aux.target_parent, aux.basename):
                self.logger.debug(f"{aux.kind} folder is already visible in the prefix: {aux.source}")
                continue
            try:
                result = self.linker.link(aux.source, aux.target_parent, aux.basename, app_id)
            except (LinkStrategyExhausted, OSError) as e:
                warnings.append(f"{aux.kind} folder not linked: {e}")
                self.logger.warning(f"Failed to link {aux.kind} folder {aux.source}: {e}")
                continue
            self.logger.info(f"Linked {aux.kind} folder: {aux.target} -> {aux.source}")
            results.append(result)
        return results, warnings
