"""Tests for the selected games store."""

from lvlinker.core.selection_store import SelectionStore


def test_load_missing_file(tmp_path):
    """Test that a missing store is an empty selection."""
    assert SelectionStore(tmp_path / "selected_games").load() == []


def test_record_appends_only_new_ids(tmp_path):
    """Test that record never rewrites or duplicates entries."""
    store = SelectionStore(tmp_path / "selected_games")

    assert store.record(["440", "620"]) == ["440", "620"]
    assert store.record(["620", "70", "70"]) == ["70"]

    assert store.load() == ["440", "620", "70"]
    assert (tmp_path / "selected_games").read_text() == "440\n620\n70\n"


def test_load_ignores_comments_and_duplicates(tmp_path):
    """Test that hand-edited files are tolerated."""
    path = tmp_path / "selected_games"
    path.write_text("# my games\n440\n\n  620  \n440\n")

    assert SelectionStore(path).load() == ["440", "620"]


def test_clear(tmp_path):
    """Test that clear forgets the selection."""
    store = SelectionStore(tmp_path / "selected_games")
    store.record(["440"])

    store.clear()

    assert store.load() == []


def test_default_location(isolated_home):
    """Test that the store lives in ~/.config/lvlinker."""
    assert SelectionStore().path == isolated_home / ".config" / "lvlinker" / "selected_games"
