"""
Data model for the linking engine
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional


class NameSource(Enum):
    """Where a game's display name came from"""
    LOCAL_MANIFEST = "local-manifest"
    REMOTE_LOOKUP = "remote-lookup"
    CACHE_HIT = "cache-hit"


class StrategyKind(Enum):
    """Link strategies, in default fallback order"""
    SYMLINK = "symlink"
    JUNCTION = "junction"
    COPY = "copy"


class AttemptStatus(Enum):
    OK = "ok"
    INAPPLICABLE = "inapplicable"
    FAILED = "failed"


class ItemStatus(Enum):
    """Final per-game outcome shown in the report"""
    LINKED = "linked"
    COPIED = "copied"
    PLANNED = "planned"
    DEGRADED = "degraded"
    SKIPPED = "skipped"
    FAILED = "failed"

    @property
    def is_failure(self) -> bool:
        return self in (ItemStatus.DEGRADED, ItemStatus.SKIPPED, ItemStatus.FAILED)


@dataclass(frozen=True)
class ItemRecord:
    """One appmanifest_<id>.acf entry found in a Steam library"""
    app_id: str
    manifest_path: Path
    library_root: Path
    declared_install_subdir: Optional[str] = None
    declared_name: Optional[str] = None


@dataclass
class InstalledItem:
    """A game as seen across every library root it appeared in"""
    app_id: str
    records: List[ItemRecord] = field(default_factory=list)

    @property
    def declared_install_subdir(self) -> Optional[str]:
        for record in self.records:
            if record.declared_install_subdir:
                return record.declared_install_subdir
        return None

    @property
    def declared_name(self) -> Optional[str]:
        for record in self.records:
            if record.declared_name:
                return record.declared_name
        return None

    @property
    def library_roots(self) -> List[Path]:
        roots = []
        for record in self.records:
            if record.library_root not in roots:
                roots.append(record.library_root)
        return roots


@dataclass
class ScanResult:
    """Output of a library scan"""
    items: Dict[str, InstalledItem]
    roots_used: List[Path]


@dataclass(frozen=True)
class ItemMetadata:
    app_id: str
    display_name: str
    source: NameSource


@dataclass(frozen=True)
class ResolvedDirectory:
    """The directory holding a game's files, and which locator step found it"""
    app_id: str
    path: Path
    strategy: str


@dataclass(frozen=True)
class AttemptResult:
    """Outcome of one link strategy attempt"""
    strategy: StrategyKind
    status: AttemptStatus
    detail: str = ""

    def describe(self) -> str:
        text = f"{self.strategy.value}: {self.status.value}"
        return f"{text} ({self.detail})" if self.detail else text


@dataclass
class LinkResult:
    app_id: str
    strategy_used: Optional[StrategyKind]
    target_path: Path
    verified: bool = False
    detail: str = ""
    actions: List[str] = field(default_factory=list)
    attempts: List[AttemptResult] = field(default_factory=list)


@dataclass
class VerificationReport:
    """What the verification pass saw at a link target"""
    target_path: Path
    accessible: bool = False
    read: bool = False
    write: bool = False
    execute: bool = False
    entry_count: int = 0
    is_symlink: bool = False
    link_target_exists: Optional[bool] = None
    runtime_checked: bool = False
    runtime_listable: Optional[bool] = None
    runtime_entry_count: Optional[int] = None
    runtime_roundtrip: Optional[bool] = None
    problems: List[str] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        if not self.accessible or self.entry_count == 0:
            return False
        if self.runtime_checked:
            return bool(self.runtime_listable) and bool(self.runtime_roundtrip)
        return True


@dataclass
class ItemOutcome:
    """Everything the engine learned about one selected game"""
    app_id: str
    name: str
    status: ItemStatus
    source_dir: Optional[Path] = None
    link: Optional[LinkResult] = None
    verification: Optional[VerificationReport] = None
    warnings: List[str] = field(default_factory=list)
    actions: List[str] = field(default_factory=list)
    detail: str = ""
