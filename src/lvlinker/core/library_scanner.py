"""
Steam Library Scanner
Finds every Steam library root (following libraryfolders.vdf) and the games installed in them
"""

import re
from collections import deque
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import vdf

from lvlinker.core.errors import NoItemsFound, NoLibraryFound
from lvlinker.core.models import InstalledItem, ItemRecord, ScanResult
from lvlinker.utils.logger import get_logger


MANIFEST_PATTERN = re.compile(r"^appmanifest_(.+)\.acf$")
APP_ID_PATTERN = re.compile(r"^[0-9]+$")
INDEX_FILE = "libraryfolders.vdf"


def _get_key(data: Dict[str, Any], key: str) -> Any:
    """Case-insensitive KeyValues lookup (Steam is not consistent about casing)"""
    if key in data:
        return data[key]
    lowered = key.lower()
    for existing, value in data.items():
        if existing.lower() == lowered:
            return value
    return None


def parse_app_id(manifest_name: str) -> Optional[str]:
    """Extract the AppID from an appmanifest filename, or None if it is not a valid entry"""
    match = MANIFEST_PATTERN.match(manifest_name)
    if not match:
        return None
    app_id = match.group(1)
    return app_id if APP_ID_PATTERN.match(app_id) else None


class LibraryScanner:
    """Scans Steam library roots for installed games"""

    def __init__(self):
        self.logger = get_logger(__name__)

    def scan(self, roots: Iterable[Path]) -> ScanResult:
        """
        Scan the given Steam roots and every library they reference

        Args:
            roots: Candidate Steam library roots (directories containing steamapps/)

        Returns:
            ScanResult with one InstalledItem per AppID and the roots actually scanned

        Raises:
            NoLibraryFound: None of the roots exists
            NoItemsFound: No valid appmanifest was found in any library
        """
        existing = [Path(root) for root in roots if Path(root).is_dir()]
        if not existing:
            raise NoLibraryFound(
                "No Steam library found. Install Steam or pass the library location with --path"
            )

        roots_used = self._expand_roots(existing)
        self.logger.debug(f"Scanning {len(roots_used)} Steam library root(s)")

        items: Dict[str, InstalledItem] = {}
        for root in roots_used:
            for record in self._read_manifests(root):
                item = items.setdefault(record.app_id, InstalledItem(app_id=record.app_id))
                if item.records:
                    self.logger.debug(
                        f"AppID {record.app_id} also registered in {root} "
                        f"(first seen in {item.records[0].library_root})"
                    )
                item.records.append(record)

        if not items:
            raise NoItemsFound(
                f"No installed games found in {len(roots_used)} Steam library folder(s): "
                + ", ".join(str(root) for root in roots_used)
            )

        self.logger.info(f"Found {len(items)} installed game(s) in {len(roots_used)} Steam library folder(s)")
        return ScanResult(items=items, roots_used=roots_used)

    def _expand_roots(self, roots: List[Path]) -> List[Path]:
        """Follow libraryfolders.vdf from every root, visiting each real directory once"""
        queue = deque(roots)
        visited = set()
        expanded = []

        while queue:
            root = queue.popleft()
            try:
                key = root.resolve()
            except OSError:
                key = root
            if key in visited:
                self.logger.debug(f"Skipping already visited library root: {root}")
                continue
            visited.add(key)
            expanded.append(root)
            self.logger.debug(f"Found Steam library: {root}")

            for extra in self.read_library_index(root):
                if extra.is_dir():
                    queue.append(extra)
                else:
                    self.logger.debug(f"Library listed in {INDEX_FILE} does not exist: {extra}")

        return expanded

    def read_library_index(self, root: Path) -> List[Path]:
        """
        Read the additional library paths listed in a root's libraryfolders.vdf

        Handles both the current layout ("0" { "path" "..." }) and the legacy
        flat layout ("1" "/path").
        """
        index_file = root / "steamapps" / INDEX_FILE
        if not index_file.is_file():
            return []

        try:
            with open(index_file, 'r', encoding='utf-8', errors='ignore') as f:
                data = vdf.load(f)
        except (OSError, SyntaxError, ValueError) as e:
            self.logger.warning(f"Failed to parse {index_file}: {e}")
            return []

        section = _get_key(data, "libraryfolders")
        if not isinstance(section, dict):
            section = data

        paths = []
        for key, entry in section.items():
            path_str = None
            if isinstance(entry, dict):
                path_str = _get_key(entry, "path")
            elif isinstance(entry, str) and key.isdigit():
                path_str = entry
            if path_str:
                paths.append(Path(path_str))
        return paths

    def _read_manifests(self, root: Path) -> List[ItemRecord]:
        steamapps = root / "steamapps"
        if not steamapps.is_dir():
            self.logger.debug(f"No steamapps folder in {root}")
            return []

        records = []
        for manifest in sorted(steamapps.glob("appmanifest_*.acf")):
            app_id = parse_app_id(manifest.name)
            if app_id is None:
                self.logger.debug(f"Ignoring manifest with invalid AppID: {manifest.name}")
                continue
            records.append(self._read_manifest(manifest, app_id, root))

        self.logger.debug(f"Found {len(records)} ACF file(s) in {steamapps}")
        return records

    def _read_manifest(self, manifest: Path, app_id: str, root: Path) -> ItemRecord:
        install_dir = None
        name = None
        try:
            with open(manifest, 'r', encoding='utf-8', errors='ignore') as f:
                data = vdf.load(f)
            app_state = _get_key(data, "AppState")
            if isinstance(app_state, dict):
                install_dir = _get_key(app_state, "installdir") or None
                name = _get_key(app_state, "name") or None
            else:
                self.logger.warning(f"No AppState block in {manifest}")
        except (OSError, SyntaxError, ValueError) as e:
            self.logger.warning(f"Failed to parse {manifest}: {e}")

        return ItemRecord(
            app_id=app_id,
            manifest_path=manifest,
            library_root=root,
            declared_install_subdir=install_dir,
            declared_name=name,
        )
