"""
Error types raised by the linking engine

Batch-scoped errors (NoLibraryFound, NoItemsFound, BackupFailed) abort a run.
Item-scoped errors are caught by the engine and reported per game.
"""

from typing import List, Optional


class LinkerError(Exception):
    """Base class for all lvlinker errors"""


class NoLibraryFound(LinkerError):
    """None of the given Steam library roots exists"""


class NoItemsFound(LinkerError):
    """The Steam libraries exist but contain no installed games"""


class NotResolvable(LinkerError):
    """A game's display name could not be resolved"""

    def __init__(self, app_id: str, reason: str):
        super().__init__(f"Could not resolve name for {app_id}: {reason}")
        self.app_id = app_id
        self.reason = reason


class DirectoryNotFound(LinkerError):
    """No install directory could be found for a game"""

    def __init__(self, app_id: str, searched: Optional[List[str]] = None):
        searched = searched or []
        where = f" (searched: {', '.join(searched)})" if searched else ""
        super().__init__(f"No install directory found for {app_id}{where}")
        self.app_id = app_id
        self.searched = searched


class LinkStrategyExhausted(LinkerError):
    """Every link strategy was inapplicable or failed"""

    def __init__(self, target: str, attempts: List[str]):
        super().__init__(f"All link strategies failed for {target}: {'; '.join(attempts)}")
        self.target = target
        self.attempts = attempts


class VerificationFailed(LinkerError):
    """A link exists but is not usable from the host or from Wine"""

    def __init__(self, target: str, problems: List[str]):
        super().__init__(f"Verification failed for {target}: {'; '.join(problems)}")
        self.target = target
        self.problems = problems


class BackupFailed(LinkerError):
    """The pre-link backup archive could not be written"""
