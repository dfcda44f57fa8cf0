"""
Run report
Per-game table, details and summary printed at the end of a run
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from lvlinker.core.models import ItemOutcome, ItemStatus


EXIT_OK = 0
EXIT_ITEM_PROBLEMS = 1
EXIT_FATAL = 2
EXIT_INTERRUPTED = 130


def _table(headers: List[str], rows: List[List[str]]) -> List[str]:
    widths = [len(h) for h in headers]
    for row in rows:
        widths = [max(w, len(cell)) for w, cell in zip(widths, row)]
    lines = ["  ".join(cell.ljust(w) for cell, w in zip(headers, widths)).rstrip()]
    lines.append("  ".join("-" * w for w in widths))
    for row in rows:
        lines.append("  ".join(cell.ljust(w) for cell, w in zip(row, widths)).rstrip())
    return lines


@dataclass
class RunReport:
    """Outcome of one engine run"""
    outcomes: List[ItemOutcome] = field(default_factory=list)
    dry_run: bool = False
    backup_path: Optional[Path] = None
    backup_actions: List[str] = field(default_factory=list)

    def counts(self) -> Dict[ItemStatus, int]:
        counts = {status: 0 for status in ItemStatus}
        for outcome in self.outcomes:
            counts[outcome.status] += 1
        return counts

    @property
    def exit_code(self) -> int:
        """0 when every selected game is linked, copied or planned; 1 otherwise"""
        if any(outcome.status.is_failure for outcome in self.outcomes):
            return EXIT_ITEM_PROBLEMS
        return EXIT_OK

    def render(self, verbose: bool = False) -> str:
        """
        Render the report as text

        Identical outcomes always render identically. Dry-run actions are
        always listed; the actions of a real run only when verbose.
        """
        lines = ["", "DRY RUN - nothing was changed" if self.dry_run else "Linking results", ""]

        if not self.outcomes:
            lines.append("No games selected.")
        else:
            rows = []
            for outcome in self.outcomes:
                strategy = outcome.link.strategy_used.value if outcome.link and outcome.link.strategy_used else "-"
                target = str(outcome.link.target_path) if outcome.link else "-"
                entries = str(outcome.verification.entry_count) if outcome.verification else "-"
                rows.append([outcome.app_id, outcome.name, outcome.status.value, strategy, target, entries])
            lines.extend(_table(["ID", "Name", "Status", "Strategy", "Target", "Entries"], rows))

        details = self._render_details(verbose)
        if details:
            lines.append("")
            lines.extend(details)

        lines.append("")
        lines.append(self.summary())
        return "\n".join(lines)

    def _render_details(self, verbose: bool) -> List[str]:
        lines = []
        if self.backup_path is not None:
            lines.append(f"Backup: {self.backup_path}")
        if self.dry_run or verbose:
            for action in self.backup_actions:
                lines.append(f"  {action}")

        for outcome in self.outcomes:
            notes = []
            if outcome.detail:
                notes.append(outcome.detail)
            if outcome.source_dir is not None and verbose:
                notes.append(f"source: {outcome.source_dir}")
            notes.extend(f"warning: {w}" for w in outcome.warnings)
            if outcome.verification is not None:
                notes.extend(f"problem: {p}" for p in outcome.verification.problems)
            if self.dry_run or verbose:
                notes.extend(f"$ {action}" for action in outcome.actions)

            if notes:
                lines.append(f"{outcome.app_id} ({outcome.name}):")
                lines.extend(f"  {note}" for note in notes)
        return lines

    def summary(self) -> str:
        counts = self.counts()
        parts = [f"{counts[status]} {status.value}" for status in ItemStatus if counts[status]]
        total = len(self.outcomes)
        return f"Summary: {total} game(s)" + (f": {', '.join(parts)}" if parts else "")
