"""
Central lvlinker Paths Helper
Provides centralized path resolution for lvlinker directories
"""

from pathlib import Path


def get_config_dir() -> Path:
    """
    Get the lvlinker configuration directory

    Holds settings.json and the selected games list.

    Returns:
        Path to ~/.config/lvlinker
    """
    return Path.home() / ".config" / "lvlinker"


def get_settings_file() -> Path:
    """Get settings file path"""
    return get_config_dir() / "settings.json"


def get_selection_file() -> Path:
    """Get the selected games list path"""
    return get_config_dir() / "selected_games"


def get_cache_dir() -> Path:
    """Get cache directory path"""
    return Path.home() / ".cache" / "lvlinker"


def get_name_cache_dir() -> Path:
    """Get the per-game name cache directory path"""
    return get_cache_dir() / "names"


def get_log_dir() -> Path:
    """Get log directory path"""
    return Path.home() / ".local" / "state" / "lvlinker" / "logs"


def get_default_backup_dir() -> Path:
    """Get the default directory for pre-link backup archives"""
    return Path.home() / "vortex_backups"


def get_default_wine_prefix() -> Path:
    """Get the default Vortex Wine prefix path"""
    return Path.home() / ".vortex_wine"
