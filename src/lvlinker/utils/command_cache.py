"""
Cached executable lookups
The wine binary is resolved once per process, not once per junction or probe
"""
import os
import shutil
from functools import lru_cache
from typing import Optional


@lru_cache(maxsize=8)
def find_command(cmd: str) -> Optional[str]:
    """Resolve an executable name or path, or None if it cannot be run"""
    return shutil.which(os.path.expanduser(cmd))
