"""
Game name cache
One plain-text file per AppID holding exactly the resolved display name
"""

import time
from pathlib import Path
from typing import Optional

from lvlinker.utils.logger import get_logger
from lvlinker.utils.paths import get_name_cache_dir


class NameCache:
    """Flat-file AppID -> display name cache

    Entries never expire unless max_age (seconds) is given. Files can be
    inspected or deleted by hand.
    """

    def __init__(self, cache_dir: Optional[Path] = None, max_age: Optional[float] = None):
        self.logger = get_logger(__name__)
        self.cache_dir = Path(cache_dir) if cache_dir else get_name_cache_dir()
        self.max_age = max_age

    def _entry_path(self, app_id: str) -> Path:
        return self.cache_dir / str(app_id)

    def get(self, app_id: str) -> Optional[str]:
        """Get a cached name, or None on miss, expiry or unreadable entry"""
        entry = self._entry_path(app_id)
        try:
            if self.max_age is not None and time.time() - entry.stat().st_mtime > self.max_age:
                self.logger.debug(f"Cached name for {app_id} is older than {self.max_age:.0f}s, ignoring")
                return None
            name = entry.read_text(encoding='utf-8').strip()
        except FileNotFoundError:
            return None
        except OSError as e:
            self.logger.warning(f"Could not read cached name for {app_id}: {e}")
            return None
        return name or None

    def put(self, app_id: str, name: str):
        """Write a name through to the cache (failures are logged, not raised)"""
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            self._entry_path(app_id).write_text(name, encoding='utf-8')
        except OSError as e:
            self.logger.warning(f"Could not cache name for {app_id}: {e}")

    def invalidate(self, app_id: str):
        try:
            self._entry_path(app_id).unlink()
        except FileNotFoundError:
            pass
