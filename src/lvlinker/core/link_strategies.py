"""
Link strategies
Ways of making a host directory appear inside the Wine prefix, tried in order
"""

import shutil
import subprocess
from pathlib import Path
from typing import List, Optional, Sequence

from lvlinker.core.actions import ActionRecorder, remove_path
from lvlinker.core.models import AttemptResult, AttemptStatus, StrategyKind
from lvlinker.core.wine_runtime import WineProbe, WineRuntime
from lvlinker.utils.logger import get_logger


class LinkStrategy:
    """Interface shared by all link strategies"""

    kind: StrategyKind

    def __init__(self):
        self.logger = get_logger(self.__class__.__name__)

    def attempt(self, source: Path, target: Path, recorder: ActionRecorder) -> AttemptResult:
        raise NotImplementedError

    def ok(self, detail: str = "") -> AttemptResult:
        return AttemptResult(self.kind, AttemptStatus.OK, detail)

    def failed(self, detail: str) -> AttemptResult:
        return AttemptResult(self.kind, AttemptStatus.FAILED, detail)

    def inapplicable(self, detail: str) -> AttemptResult:
        return AttemptResult(self.kind, AttemptStatus.INAPPLICABLE, detail)


class SymlinkStrategy(LinkStrategy):
    """Native symlink; fails if Wine is available but cannot follow it"""

    kind = StrategyKind.SYMLINK

    def __init__(self, probe: Optional[WineProbe] = None):
        super().__init__()
        self.probe = probe

    def attempt(self, source: Path, target: Path, recorder: ActionRecorder) -> AttemptResult:
        try:
            recorder.symlink(source, target)
        except OSError as e:
            self.logger.warning(f"Symlink failed ({e}), trying next strategy")
            return self.failed(str(e))

        if recorder.dry_run or self.probe is None:
            return self.ok("symlink")

        if self.probe.list_entries(target) is None:
            self.logger.warning(f"Wine cannot follow the symlink at {target}, removing it")
            recorder.remove(target)
            return self.failed("Wine cannot follow the symlink")
        return self.ok("symlink")


class JunctionStrategy(LinkStrategy):
    """Directory junction created by Wine's own mklink /J"""

    kind = StrategyKind.JUNCTION

    def __init__(self, runtime: Optional[WineRuntime]):
        super().__init__()
        self.runtime = runtime

    def attempt(self, source: Path, target: Path, recorder: ActionRecorder) -> AttemptResult:
        if self.runtime is None or not self.runtime.is_available():
            return self.inapplicable("Wine is not available")

        try:
            self.runtime.ensure_z_drive(recorder)
            result = self.runtime.create_junction(target, source, recorder)
        except (OSError, subprocess.SubprocessError) as e:
            self.logger.warning(f"Junction point failed ({e})")
            return self.failed(str(e))

        if recorder.dry_run:
            return self.ok("junction")
        if result is None or result.returncode != 0:
            reason = result.stderr.strip() if result is not None and result.stderr.strip() else "mklink /J failed"
            self.logger.warning(f"Junction point failed: {reason}")
            return self.failed(reason)
        if not (target.exists() or target.is_symlink()):
            return self.failed("mklink /J reported success but nothing was created")
        return self.ok("junction")


class CopyStrategy(LinkStrategy):
    """Recursive copy; a snapshot that no longer follows the source"""

    kind = StrategyKind.COPY

    def attempt(self, source: Path, target: Path, recorder: ActionRecorder) -> AttemptResult:
        if not recorder.dry_run:
            self.logger.warning(f"Copying {source} into the prefix (this may take a while)")
        try:
            recorder.copytree(source, target)
        except KeyboardInterrupt:
            self._discard(target)
            raise
        except OSError as e:
            self._discard(target)
            self.logger.error(f"Failed to copy game files: {e}")
            return self.failed(str(e))

        if not recorder.dry_run:
            self.logger.warning(f"{target} is a copy: changes to {source} will not be mirrored")
        return self.ok("copy (snapshot, not kept in sync)")

    def _discard(self, target: Path):
        try:
            if target.exists() or target.is_symlink():
                remove_path(target)
        except OSError as e:
            self.logger.error(f"Could not remove partial copy {target}: {e}")


def build_strategies(names: Sequence[str],
                     runtime: Optional[WineRuntime] = None,
                     probe: Optional[WineProbe] = None) -> List[LinkStrategy]:
    """Build the strategy chain from configured names ("symlink", "junction", "copy")"""
    strategies: List[LinkStrategy] = []
    for name in names:
        kind = StrategyKind(name)
        if kind is StrategyKind.SYMLINK:
            strategies.append(SymlinkStrategy(probe))
        elif kind is StrategyKind.JUNCTION:
            strategies.append(JunctionStrategy(runtime))
        else:
            strategies.append(CopyStrategy())
    return strategies
