"""
Game Directory Locator
Finds the steamapps/common directory that holds a game's files
"""

import re
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from lvlinker.core.choice_provider import ChoiceProvider, NonInteractiveChoiceProvider
from lvlinker.core.errors import DirectoryNotFound
from lvlinker.core.models import InstalledItem, ResolvedDirectory
from lvlinker.utils.logger import get_logger


def normalize_name(text: str) -> str:
    """Lower-case and drop whitespace and punctuation ("Example: Game!" -> "examplegame")"""
    return re.sub(r"[\W_]+", "", text).lower()


def _is_populated_dir(path: Path) -> bool:
    try:
        return path.is_dir() and any(path.iterdir())
    except OSError:
        return False


class DirectoryLocator:
    """Resolves a game's install directory with an ordered chain of matchers

    Each matcher is tried against every search root before the next matcher
    runs, so the earliest matcher wins across all libraries. Outcomes are
    memoised per AppID for the lifetime of the locator (one run).
    """

    def __init__(self, choice_provider: Optional[ChoiceProvider] = None):
        self.logger = get_logger(__name__)
        self.choice_provider = choice_provider or NonInteractiveChoiceProvider()
        self._resolved: Dict[str, ResolvedDirectory] = {}
        self._failed: Dict[str, DirectoryNotFound] = {}

        self.matchers: List[Tuple[str, Callable[[Path, InstalledItem, Optional[str]], List[Path]]]] = [
            ("installdir", self._match_declared),
            ("exact-name", self._match_exact),
            ("case-insensitive-name", self._match_case_insensitive),
            ("normalized-name", self._match_normalized),
            ("app-id", self._match_app_id),
        ]

    @staticmethod
    def search_dir(root: Path) -> Path:
        return Path(root) / "steamapps" / "common"

    def locate(self, item: InstalledItem, display_name: Optional[str], search_roots: Sequence[Path]) -> ResolvedDirectory:
        """
        Locate the install directory of a game

        Args:
            item: The scanned game
            display_name: Resolved name, or None when unknown (name matchers are skipped)
            search_roots: Steam library roots, in discovery order

        Returns:
            ResolvedDirectory pointing at an existing, non-empty directory

        Raises:
            DirectoryNotFound: No matcher found a usable directory and the operator skipped
        """
        if item.app_id in self._resolved:
            return self._resolved[item.app_id]
        if item.app_id in self._failed:
            raise self._failed[item.app_id]

        try:
            resolved = self._locate(item, display_name, list(search_roots))
        except DirectoryNotFound as e:
            self._failed[item.app_id] = e
            raise
        self._resolved[item.app_id] = resolved
        return resolved

    def _locate(self, item: InstalledItem, display_name: Optional[str], search_roots: List[Path]) -> ResolvedDirectory:
        search_dirs = [self.search_dir(root) for root in search_roots]
        search_dirs = [d for d in search_dirs if d.is_dir()]
        label = f"{display_name or 'Unknown game'} (ID: {item.app_id})"

        # Each manifest's installdir under its own library comes first
        for candidate in self._recorded_paths(item):
            if _is_populated_dir(candidate):
                self.logger.debug(f"Found {label} by installdir: {candidate}")
                return ResolvedDirectory(item.app_id, candidate, "installdir")
            self.logger.debug(f"Rejected manifest installdir for {label} (missing or empty): {candidate}")

        for step, matcher in self.matchers:
            for search_dir in search_dirs:
                for candidate in matcher(search_dir, item, display_name):
                    if _is_populated_dir(candidate):
                        self.logger.debug(f"Found {label} by {step}: {candidate}")
                        return ResolvedDirectory(item.app_id, candidate, step)
                    self.logger.debug(f"Rejected {step} candidate for {label} (missing or empty): {candidate}")

        chosen = self._ask_operator(label, search_dirs)
        if chosen is not None:
            return ResolvedDirectory(item.app_id, chosen, "operator")

        raise DirectoryNotFound(item.app_id, [str(d) for d in search_dirs])

    def _ask_operator(self, label: str, search_dirs: List[Path]) -> Optional[Path]:
        candidates: List[Path] = []
        for search_dir in search_dirs:
            candidates.extend(self._subdirs(search_dir))
        if not candidates:
            return None

        options = [f"{path.name}  [{path.parent}]" for path in candidates]
        index = self.choice_provider.choose_one(
            f"Could not automatically find the install directory for {label}. Choose it:",
            options,
        )
        if index is None:
            self.logger.info(f"No directory chosen for {label}, skipping")
            return None

        chosen = candidates[index]
        if not _is_populated_dir(chosen):
            self.logger.warning(f"Chosen directory is empty, skipping {label}: {chosen}")
            return None
        return chosen

    @staticmethod
    def _subdirs(search_dir: Path) -> List[Path]:
        try:
            return sorted((p for p in search_dir.iterdir() if p.is_dir()), key=lambda p: p.name)
        except OSError:
            return []

    def _recorded_paths(self, item: InstalledItem) -> List[Path]:
        paths: List[Path] = []
        for record in item.records:
            if record.declared_install_subdir:
                path = self.search_dir(record.library_root) / record.declared_install_subdir
                if path not in paths:
                    paths.append(path)
        return paths

    def _match_declared(self, search_dir: Path, item: InstalledItem, name: Optional[str]) -> List[Path]:
        declared = dict.fromkeys(r.declared_install_subdir for r in item.records if r.declared_install_subdir)
        return [search_dir / installdir for installdir in declared]

    def _match_exact(self, search_dir: Path, item: InstalledItem, name: Optional[str]) -> List[Path]:
        return [search_dir / name] if name and "/" not in name else []

    def _match_case_insensitive(self, search_dir: Path, item: InstalledItem, name: Optional[str]) -> List[Path]:
        if not name:
            return []
        wanted = name.lower()
        return [p for p in self._subdirs(search_dir) if p.name.lower() == wanted]

    def _match_normalized(self, search_dir: Path, item: InstalledItem, name: Optional[str]) -> List[Path]:
        wanted = normalize_name(name) if name else ""
        if not wanted:
            return []
        matches = [p for p in self._subdirs(search_dir) if wanted in normalize_name(p.name)]
        # Whole-name matches before substring matches
        return sorted(matches, key=lambda p: (normalize_name(p.name) != wanted, p.name))

    def _match_app_id(self, search_dir: Path, item: InstalledItem, name: Optional[str]) -> List[Path]:
        return [p for p in self._subdirs(search_dir) if item.app_id in p.name]
