"""
Wine runtime helpers
Runs commands inside the Vortex Wine prefix: junctions, registry entries and the
checks the verification pass needs to see the prefix the way Vortex does
"""

import os
import shlex
import subprocess
import uuid
from pathlib import Path
from typing import List, Optional

from lvlinker.core.actions import ActionRecorder, quote, remove_path
from lvlinker.utils.command_cache import find_command
from lvlinker.utils.logger import get_logger


VORTEX_GAME_REGISTRY = "HKEY_CURRENT_USER\\Software\\Vortex\\gameRegistry"
SENTINEL_NAME = ".lvlinker_probe"


class WineRuntime:
    """A Wine prefix and the wine binary used to drive it"""

    def __init__(self, prefix: Path, wine_command: str = "wine", timeout: float = 120):
        self.logger = get_logger(__name__)
        self.prefix = Path(prefix)
        self.wine_command = wine_command
        self.timeout = timeout

    @property
    def drive_c(self) -> Path:
        return self.prefix / "drive_c"

    @property
    def z_drive(self) -> Path:
        return self.prefix / "dosdevices" / "z:"

    def is_available(self) -> bool:
        """Check that the wine binary exists and the prefix has been created"""
        executable = shlex.split(self.wine_command)[0] if self.wine_command.strip() else ""
        if not executable or not find_command(executable):
            return False
        return self.drive_c.is_dir()

    def to_windows_path(self, path: Path) -> str:
        """
        Convert a host path to the path Wine programs see

        Paths inside drive_c map to C:, everything else goes through the Z: drive.
        """
        path = Path(os.path.abspath(path))
        try:
            relative = path.relative_to(os.path.abspath(self.drive_c))
        except ValueError:
            return "Z:" + str(path).replace("/", "\\")
        return "C:\\" + "\\".join(relative.parts)

    def command(self, args: List[str]) -> List[str]:
        return shlex.split(self.wine_command) + list(args)

    def describe(self, args: List[str]) -> str:
        """Shell-style rendering of a wine command for logs and dry runs"""
        parts = []
        for arg in self.command(args):
            parts.append(quote(arg) if any(c in arg for c in ' \\()') else arg)
        return " ".join(parts)

    def environment(self) -> dict:
        env = os.environ.copy()
        env["WINEPREFIX"] = str(self.prefix)
        env["WINEDEBUG"] = "-all"
        env["WINEDLLOVERRIDES"] = "winemenubuilder.exe=d"
        return env

    def run(self, args: List[str], timeout: Optional[float] = None) -> subprocess.CompletedProcess:
        """
        Run a program inside the prefix

        Raises:
            subprocess.TimeoutExpired: The command did not finish in time
            OSError: The wine binary could not be started
        """
        result = subprocess.run(
            self.command(args),
            env=self.environment(),
            capture_output=True,
            text=True,
            timeout=timeout or self.timeout,
        )
        if result.returncode != 0:
            self.logger.debug(f"{self.describe(args)} exited with {result.returncode}: {result.stderr.strip()}")
        return result

    def ensure_z_drive(self, recorder: ActionRecorder):
        """Make sure Z: maps to the host root so junctions can point at any host path"""
        if self.z_drive.is_symlink() and os.readlink(self.z_drive) == "/":
            return
        if self.z_drive.exists() or self.z_drive.is_symlink():
            recorder.perform(f"rm -f {quote(self.z_drive)}", remove_path, self.z_drive)
        if not self.z_drive.parent.is_dir():
            recorder.mkdir(self.z_drive.parent)
        recorder.perform(f"ln -s / {quote(self.z_drive)}", os.symlink, "/", str(self.z_drive))

    def create_junction(self, target: Path, source: Path, recorder: ActionRecorder) -> Optional[subprocess.CompletedProcess]:
        """Create a directory junction at target pointing at source (None in dry runs)"""
        args = ["cmd", "/c", "mklink", "/J", self.to_windows_path(target), self.to_windows_path(source)]
        return recorder.perform(self.describe(args), self.run, args)

    def add_registry_value(self, key: str, name: str, value_type: str, data: str,
                           recorder: ActionRecorder) -> Optional[subprocess.CompletedProcess]:
        args = ["reg", "add", key, "/v", name, "/t", value_type, "/d", data, "/f"]
        return recorder.perform(self.describe(args), self.run, args)

    def register_vortex_game(self, app_id: str, name: str, game_path: Path, recorder: ActionRecorder) -> List[str]:
        """
        Write the gameRegistry entries Vortex uses to discover a game

        Returns:
            Problems encountered (empty on success or in dry runs)
        """
        key = f"{VORTEX_GAME_REGISTRY}\\{app_id}"
        values = [
            ("gamePath", "REG_SZ", self.to_windows_path(game_path)),
            ("gameName", "REG_SZ", name),
            ("discovered", "REG_DWORD", "1"),
        ]
        problems = []
        for value_name, value_type, data in values:
            try:
                result = self.add_registry_value(key, value_name, value_type, data, recorder)
            except (OSError, subprocess.SubprocessError) as e:
                problems.append(f"registry value {value_name} not written: {e}")
                continue
            if result is not None and result.returncode != 0:
                problems.append(f"registry value {value_name} not written: {result.stderr.strip() or result.returncode}")
        return problems

    def list_entries(self, path: Path) -> Optional[int]:
        """Count directory entries as Wine sees them, or None if Wine cannot list the path"""
        result = self.run(["cmd", "/c", "dir", "/b", self.to_windows_path(path)])
        lines = [line for line in result.stdout.splitlines() if line.strip()]
        if result.returncode == 0:
            return len(lines)
        # dir /b reports an empty directory as "File Not Found"
        output = (result.stdout + result.stderr).lower()
        if "file not found" in output and path.is_dir():
            return 0
        return None

    def write_file(self, path: Path, text: str) -> bool:
        """Write a one-line file through Wine's cmd"""
        result = self.run(["cmd", "/c", "echo", text, ">", self.to_windows_path(path)])
        return result.returncode == 0


class WineProbe:
    """Checks a link target from inside the Wine prefix"""

    def __init__(self, runtime: WineRuntime):
        self.logger = get_logger(__name__)
        self.runtime = runtime

    def list_entries(self, path: Path) -> Optional[int]:
        try:
            return self.runtime.list_entries(path)
        except (OSError, subprocess.SubprocessError) as e:
            self.logger.warning(f"Wine could not list {path}: {e}")
            return None

    def roundtrip(self, path: Path) -> bool:
        """Write a sentinel through Wine and read it back on the host"""
        sentinel = path / SENTINEL_NAME
        token = f"lvlinker-{uuid.uuid4().hex}"
        try:
            if not self.runtime.write_file(sentinel, token):
                return False
            return sentinel.read_text(encoding='utf-8', errors='ignore').strip() == token
        except (OSError, subprocess.SubprocessError) as e:
            self.logger.warning(f"Sentinel round-trip through Wine failed for {path}: {e}")
            return False
        finally:
            try:
                sentinel.unlink()
            except FileNotFoundError:
                pass
            except OSError as e:
                self.logger.warning(f"Could not remove sentinel {sentinel}: {e}")
