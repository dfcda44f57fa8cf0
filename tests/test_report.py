"""Tests for the run report."""

from pathlib import Path

from lvlinker.core.models import ItemOutcome, ItemStatus, LinkResult, StrategyKind, VerificationReport
from lvlinker.core.report import EXIT_ITEM_PROBLEMS, EXIT_OK, RunReport


def _linked(app_id="620", name="Portal 2"):
    target = Path("/prefix/common") / name
    return ItemOutcome(
        app_id, name, ItemStatus.LINKED,
        source_dir=Path("/steam/common") / name,
        link=LinkResult(app_id, StrategyKind.SYMLINK, target, verified=True),
        verification=VerificationReport(target_path=target, accessible=True, entry_count=12),
        actions=[f'ln -s "/steam/common/{name}" "{target}"'],
    )


def test_exit_codes():
    """Test that only linked, copied and planned games count as success."""
    assert RunReport().exit_code == EXIT_OK
    assert RunReport([_linked()]).exit_code == EXIT_OK
    copied = ItemOutcome("1", "a", ItemStatus.COPIED)
    planned = ItemOutcome("2", "b", ItemStatus.PLANNED)
    assert RunReport([copied, planned]).exit_code == EXIT_OK
    for status in (ItemStatus.DEGRADED, ItemStatus.SKIPPED, ItemStatus.FAILED):
        assert RunReport([_linked(), ItemOutcome("3", "c", status)]).exit_code == EXIT_ITEM_PROBLEMS


def test_render_table_and_summary():
    """Test the table columns and the aggregate summary."""
    skipped = ItemOutcome("999", "Unknown", ItemStatus.SKIPPED, detail="not installed in any scanned Steam library")

    text = RunReport([_linked(), skipped]).render()

    lines = text.splitlines()
    header = next(line for line in lines if line.startswith("ID"))
    assert header.split() == ["ID", "Name", "Status", "Strategy", "Target", "Entries"]
    row = next(line for line in lines if line.startswith("620"))
    assert "symlink" in row and "12" in row
    assert "  not installed in any scanned Steam library" in lines
    assert lines[-1] == "Summary: 2 game(s): 1 linked, 1 skipped"


def test_actions_only_in_dry_run_or_verbose():
    """Test that actions are listed for dry runs and verbose output."""
    action = '$ ln -s "/steam/common/Portal 2" "/prefix/common/Portal 2"'

    assert action not in RunReport([_linked()]).render()
    assert action in RunReport([_linked()]).render(verbose=True)
    assert action in RunReport([_linked()], dry_run=True).render()


def test_render_is_deterministic():
    """Test that identical inputs render identically."""
    first = RunReport([_linked(), _linked("440", "Team Fortress 2")], dry_run=True).render()
    second = RunReport([_linked(), _linked("440", "Team Fortress 2")], dry_run=True).render()

    assert first == second
    assert "DRY RUN" in first


def test_render_problems_and_warnings():
    """Test that verification problems and warnings are listed per game."""
    outcome = _linked()
    outcome.status = ItemStatus.DEGRADED
    outcome.verification.problems.append("Wine cannot list the directory")
    outcome.warnings.append("documents folder not linked: nope")

    text = RunReport([outcome]).render()

    assert "620 (Portal 2):" in text
    assert "  warning: documents folder not linked: nope" in text
    assert "  problem: Wine cannot list the directory" in text


def test_empty_report():
    """Test the report when nothing was selected."""
    text = RunReport().render()

    assert "No games selected." in text
    assert text.splitlines()[-1] == "Summary: 0 game(s)"
