"""
Settings Manager for lvlinker
Handles user preferences: Wine prefix, extra Steam libraries, lookup and linking behaviour
"""

import json
import os
from pathlib import Path
from typing import Dict, Any, List, Optional

from lvlinker.utils.logger import get_logger
from lvlinker.utils.paths import get_settings_file, get_default_backup_dir, get_default_wine_prefix


DEFAULT_LINK_STRATEGIES = ["symlink", "junction", "copy"]


def default_settings() -> Dict[str, Any]:
    """Get the default settings"""
    return {
        "wine_prefix": str(get_default_wine_prefix()),
        "wine_command": "wine",
        "prefix_user": os.environ.get("USER", "steamuser"),
        "extra_library_paths": [],  # Additional Steam library roots to scan
        "reserved_app_ids": [],  # AppIDs never offered as games (e.g. the Vortex shortcut itself)
        "name_cache_max_age": None,  # Seconds; None = cached names never expire
        "lookup_timeout": 10,
        "lookup_workers": 4,
        "link_strategies": list(DEFAULT_LINK_STRATEGIES),
        "backup_dir": str(get_default_backup_dir()),
        "write_registry_entries": True,
        "runtime_timeout": 120,
    }


class SettingsManager:
    """Manages user settings and preferences"""

    def __init__(self, settings_file: Optional[Path] = None):
        self.logger = get_logger(__name__)
        self.settings_file = Path(settings_file) if settings_file else get_settings_file()
        self.settings = self._load_settings()

    def _load_settings(self) -> Dict[str, Any]:
        """Load settings from file, filling in defaults for missing keys"""
        settings = default_settings()
        if self.settings_file.exists():
            try:
                with open(self.settings_file, 'r', encoding='utf-8') as f:
                    stored = json.load(f)
                if isinstance(stored, dict):
                    settings.update(stored)
                else:
                    self.logger.warning(f"Ignoring malformed settings file: {self.settings_file}")
            except (OSError, ValueError) as e:
                self.logger.warning(f"Failed to load settings: {e}")

        return settings

    def _save_settings(self):
        """Save settings to file"""
        try:
            self.settings_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.settings_file, 'w', encoding='utf-8') as f:
                json.dump(self.settings, f, indent=2)
        except OSError as e:
            self.logger.error(f"Failed to save settings: {e}")

    def get_wine_prefix(self) -> Path:
        """Get the Vortex Wine prefix path"""
        return Path(os.path.expanduser(self.settings["wine_prefix"]))

    def set_wine_prefix(self, path: str):
        """Set the Vortex Wine prefix path"""
        self.settings["wine_prefix"] = path
        self._save_settings()
        self.logger.info(f"Set Wine prefix: {path}")

    def get_wine_command(self) -> str:
        return self.settings.get("wine_command") or "wine"

    def get_prefix_user(self) -> str:
        """Get the Windows user name used inside the prefix (drive_c/users/<user>)"""
        return self.settings.get("prefix_user") or "steamuser"

    def get_extra_library_paths(self) -> List[Path]:
        return [Path(os.path.expanduser(p)) for p in self.settings.get("extra_library_paths", [])]

    def add_extra_library_path(self, path: str):
        """Remember an additional Steam library root"""
        paths = self.settings.setdefault("extra_library_paths", [])
        if path not in paths:
            paths.append(path)
            self._save_settings()
            self.logger.info(f"Added Steam library path: {path}")

    def get_reserved_app_ids(self) -> List[str]:
        return [str(app_id) for app_id in self.settings.get("reserved_app_ids", [])]

    def get_name_cache_max_age(self) -> Optional[float]:
        """Get the name cache max age in seconds (None = never expire)"""
        value = self.settings.get("name_cache_max_age")
        return float(value) if value is not None else None

    def get_lookup_timeout(self) -> float:
        return float(self.settings.get("lookup_timeout", 10))

    def get_lookup_workers(self) -> int:
        return max(1, int(self.settings.get("lookup_workers", 4)))

    def get_link_strategies(self) -> List[str]:
        """Get the ordered link strategy names"""
        strategies = self.settings.get("link_strategies") or DEFAULT_LINK_STRATEGIES
        unknown = [name for name in strategies if name not in DEFAULT_LINK_STRATEGIES]
        if unknown:
            self.logger.warning(f"Ignoring unknown link strategies: {', '.join(unknown)}")
        return [name for name in strategies if name in DEFAULT_LINK_STRATEGIES]

    def get_backup_dir(self) -> Path:
        return Path(os.path.expanduser(self.settings.get("backup_dir") or str(get_default_backup_dir())))

    def should_write_registry_entries(self) -> bool:
        return bool(self.settings.get("write_registry_entries", True))

    def get_runtime_timeout(self) -> float:
        return float(self.settings.get("runtime_timeout", 120))

    def get_all_settings(self) -> Dict[str, Any]:
        """Get all settings"""
        return self.settings.copy()

    def reset_to_defaults(self):
        """Reset all settings to defaults"""
        self.settings = default_settings()
        self._save_settings()
        self.logger.info("Reset settings to defaults")
