"""
Steam utilities module
Detects the Steam installations whose libraries lvlinker scans
"""

from pathlib import Path
from typing import List

from lvlinker.utils.logger import get_logger


class SteamUtils:
    """Minimal Steam utilities - only for detecting Steam installation roots"""

    def __init__(self):
        self.logger = get_logger(__name__)

    def get_candidate_roots(self) -> List[Path]:
        """
        Get every location a Steam installation commonly lives in

        Order matters: native Steam first, then Flatpak. Several of these are
        usually symlinks to the same directory; the library scanner folds them.
        """
        home_dir = Path.home()
        return [
            home_dir / ".local" / "share" / "Steam",
            home_dir / ".steam" / "steam",
            home_dir / ".steam" / "debian-installation",
            home_dir / ".var" / "app" / "com.valvesoftware.Steam" / "data" / "Steam",
        ]

    def get_steam_roots(self) -> List[Path]:
        """
        Find the existing Steam installation directories

        Returns:
            Existing candidate roots, possibly empty
        """
        roots = []
        for candidate in self.get_candidate_roots():
            if candidate.is_dir():
                steam_type = "Flatpak" if "com.valvesoftware.Steam" in str(candidate) else "Native"
                self.logger.debug(f"Found Steam root: {candidate} ({steam_type})")
                roots.append(candidate)

        if not roots:
            self.logger.warning("No Steam installation found in the default locations")
        return roots
