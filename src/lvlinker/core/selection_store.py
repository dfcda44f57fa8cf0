"""
Selected games store
Append-only list of the AppIDs the operator chose to link, one per line
"""

from pathlib import Path
from typing import Iterable, List, Optional

from lvlinker.utils.logger import get_logger
from lvlinker.utils.paths import get_selection_file


class SelectionStore:
    """Persists the operator's game selection across runs

    Not safe for concurrent invocations (no file locking).
    """

    def __init__(self, path: Optional[Path] = None):
        self.logger = get_logger(__name__)
        self.path = Path(path) if path else get_selection_file()

    def load(self) -> List[str]:
        """Load the selection, deduplicated, in first-recorded order"""
        try:
            lines = self.path.read_text(encoding='utf-8').splitlines()
        except FileNotFoundError:
            return []

        selected: List[str] = []
        for line in lines:
            app_id = line.strip()
            if not app_id or app_id.startswith("#"):
                continue
            if app_id not in selected:
                selected.append(app_id)
        return selected

    def record(self, app_ids: Iterable[str]) -> List[str]:
        """
        Append AppIDs that are not recorded yet

        Returns:
            The AppIDs that were newly appended
        """
        existing = set(self.load())
        new_ids = []
        for app_id in app_ids:
            app_id = str(app_id).strip()
            if app_id and app_id not in existing:
                existing.add(app_id)
                new_ids.append(app_id)

        if new_ids:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, 'a', encoding='utf-8') as f:
                for app_id in new_ids:
                    f.write(f"{app_id}\n")
            self.logger.debug(f"Recorded selection: {', '.join(new_ids)}")
        return new_ids

    def clear(self):
        """Forget the selection (explicit re-selection only)"""
        if self.path.exists():
            self.path.write_text("", encoding='utf-8')
            self.logger.info("Cleared previously selected games")
