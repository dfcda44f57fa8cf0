"""Tests for the install directory locator."""

import pytest

from lvlinker.core.choice_provider import StaticChoiceProvider
from lvlinker.core.directory_locator import DirectoryLocator, normalize_name
from lvlinker.core.errors import DirectoryNotFound
from lvlinker.core.models import InstalledItem, ItemRecord

from conftest import add_game_dir


def _item(root, app_id, installdir=None):
    record = ItemRecord(app_id=app_id, manifest_path=root / "steamapps" / f"appmanifest_{app_id}.acf",
                        library_root=root, declared_install_subdir=installdir)
    return InstalledItem(app_id=app_id, records=[record])


def test_normalize_name():
    """Test that whitespace and punctuation are dropped."""
    assert normalize_name("Example: Game!") == "examplegame"
    assert normalize_name("The Elder Scrolls V - Skyrim") == "theelderscrollsvskyrim"


def test_declared_installdir_wins(library):
    """Test that installdir is tried before the display name."""
    add_game_dir(library, "tf")
    add_game_dir(library, "Team Fortress 2")

    resolved = DirectoryLocator().locate(_item(library, "440", "tf"), "Team Fortress 2", [library])

    assert resolved.path == library / "steamapps" / "common" / "tf"
    assert resolved.strategy == "installdir"


def test_exact_name(library):
    """Test the exact display name match."""
    add_game_dir(library, "Portal 2")

    resolved = DirectoryLocator().locate(_item(library, "620"), "Portal 2", [library])

    assert resolved.strategy == "exact-name"


def test_case_insensitive_name(library):
    """Test the case-insensitive match."""
    add_game_dir(library, "PORTAL 2")

    resolved = DirectoryLocator().locate(_item(library, "620"), "Portal 2", [library])

    assert resolved.path.name == "PORTAL 2"
    assert resolved.strategy in ("exact-name", "case-insensitive-name")


def test_normalized_name(library):
    """Test that "Example: Game!" finds a directory called examplegame."""
    add_game_dir(library, "examplegame")

    resolved = DirectoryLocator().locate(_item(library, "12345"), "Example: Game!", [library])

    assert resolved.path == library / "steamapps" / "common" / "examplegame"
    assert resolved.strategy == "normalized-name"


def test_app_id_match(library):
    """Test matching a directory that carries the AppID."""
    add_game_dir(library, "game_55555_data")

    resolved = DirectoryLocator().locate(_item(library, "55555"), None, [library])

    assert resolved.strategy == "app-id"


def test_empty_directory_is_rejected(library):
    """Test that an empty installdir is skipped in favour of a populated match."""
    (library / "steamapps" / "common" / "tf").mkdir(parents=True)
    add_game_dir(library, "Team Fortress 2")

    resolved = DirectoryLocator().locate(_item(library, "440", "tf"), "Team Fortress 2", [library])

    assert resolved.path.name == "Team Fortress 2"


def test_earliest_step_wins_across_roots(tmp_path):
    """Test that an installdir match in the second root beats a name match in the first."""
    first = tmp_path / "lib1"
    second = tmp_path / "lib2"
    add_game_dir(first, "Team Fortress 2")
    add_game_dir(second, "tf")

    resolved = DirectoryLocator().locate(_item(first, "440", "tf"), "Team Fortress 2", [first, second])

    assert resolved.path == second / "steamapps" / "common" / "tf"


def test_operator_choice(library):
    """Test the interactive fallback over all subdirectories."""
    add_game_dir(library, "Alpha")
    add_game_dir(library, "Beta")
    provider = StaticChoiceProvider(one=1)

    resolved = DirectoryLocator(provider).locate(_item(library, "777"), "Unrelated", [library])

    assert resolved.path.name == "Beta"
    assert resolved.strategy == "operator"
    assert len(provider.questions) == 1


def test_not_found_without_operator(library):
    """Test that a skipped question raises DirectoryNotFound."""
    add_game_dir(library, "Alpha")

    with pytest.raises(DirectoryNotFound):
        DirectoryLocator().locate(_item(library, "777"), "Unrelated", [library])


def test_outcomes_are_memoised(library):
    """Test that each id is resolved once per locator."""
    add_game_dir(library, "Alpha")
    provider = StaticChoiceProvider(one=0)
    locator = DirectoryLocator(provider)
    item = _item(library, "777")

    first = locator.locate(item, "Unrelated", [library])
    second = locator.locate(item, "Unrelated", [library])

    assert first == second
    assert len(provider.questions) == 1


def test_failures_are_memoised(library):
    """Test that a failed lookup is not asked again."""
    add_game_dir(library, "Alpha")
    provider = StaticChoiceProvider()
    locator = DirectoryLocator(provider)
    item = _item(library, "777")

    for _ in range(2):
        with pytest.raises(DirectoryNotFound):
            locator.locate(item, "Unrelated", [library])
    assert len(provider.questions) == 1
