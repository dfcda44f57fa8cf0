"""Tests for the Steam library scanner."""

import pytest

from lvlinker.core.directory_locator import DirectoryLocator
from lvlinker.core.errors import NoItemsFound, NoLibraryFound
from lvlinker.core.library_scanner import LibraryScanner, parse_app_id

from conftest import add_game_dir, write_library_index, write_manifest


def test_parse_app_id():
    """Test AppID extraction from manifest filenames."""
    assert parse_app_id("appmanifest_440.acf") == "440"
    assert parse_app_id("appmanifest_abc.acf") is None
    assert parse_app_id("appmanifest_12x.acf") is None
    assert parse_app_id("libraryfolders.vdf") is None


def test_scan_reads_declared_fields(library):
    """Test that installdir and name come from the manifest."""
    write_manifest(library, "440", installdir="Team Fortress 2", name="Team Fortress 2")

    result = LibraryScanner().scan([library])

    assert list(result.items) == ["440"]
    item = result.items["440"]
    assert item.declared_install_subdir == "Team Fortress 2"
    assert item.declared_name == "Team Fortress 2"
    assert item.library_roots == [library]
    assert result.roots_used == [library]


def test_scan_excludes_invalid_app_ids(library):
    """Test that non-numeric manifest ids are discarded."""
    write_manifest(library, "440", installdir="tf")
    (library / "steamapps" / "appmanifest_abc.acf").write_text('"AppState"\n{\n}\n')

    result = LibraryScanner().scan([library])

    assert list(result.items) == ["440"]


def test_scan_deduplicates_across_roots(tmp_path):
    """Test that an id found in two libraries is one item with two records."""
    first = tmp_path / "lib1"
    second = tmp_path / "lib2"
    write_manifest(first, "440", installdir="tf")
    write_manifest(second, "440", installdir="tf2")
    write_manifest(second, "620", installdir="Portal 2")

    result = LibraryScanner().scan([first, second])

    assert sorted(result.items) == ["440", "620"]
    item = result.items["440"]
    assert len(item.records) == 2
    assert item.declared_install_subdir == "tf"
    assert item.library_roots == [first, second]


def test_mirrored_item_uses_later_installdir(tmp_path):
    """Test that the second library's installdir is found when the first one has no files."""
    first = tmp_path / "lib1"
    second = tmp_path / "lib2"
    write_manifest(first, "440", installdir="tf")
    write_manifest(second, "440", installdir="tf2")
    add_game_dir(second, "tf2", ["hl2.exe"])

    result = LibraryScanner().scan([first, second])
    resolved = DirectoryLocator().locate(result.items["440"], None, result.roots_used)

    assert resolved.path == second / "steamapps" / "common" / "tf2"
    assert resolved.strategy == "installdir"


def test_scan_follows_library_index(tmp_path):
    """Test that libraryfolders.vdf adds roots, recursively and without loops."""
    main = tmp_path / "main"
    extra = tmp_path / "extra"
    write_manifest(main, "440", installdir="tf")
    write_manifest(extra, "620", installdir="Portal 2")
    write_library_index(main, [main, extra, tmp_path / "missing"])
    write_library_index(extra, [main])

    result = LibraryScanner().scan([main])

    assert result.roots_used == [main, extra]
    assert sorted(result.items) == ["440", "620"]


def test_scan_folds_symlinked_roots(tmp_path):
    """Test that a symlink to an already scanned root is not scanned twice."""
    real = tmp_path / "real"
    write_manifest(real, "440", installdir="tf")
    alias = tmp_path / "alias"
    alias.symlink_to(real)

    result = LibraryScanner().scan([real, alias])

    assert result.roots_used == [real]
    assert len(result.items["440"].records) == 1


def test_read_legacy_library_index(tmp_path):
    """Test the old flat libraryfolders.vdf layout."""
    main = tmp_path / "main"
    extra = tmp_path / "extra"
    extra.mkdir()
    (main / "steamapps").mkdir(parents=True)
    (main / "steamapps" / "libraryfolders.vdf").write_text(
        '"LibraryFolders"\n{\n\t"TimeNextStatsReport"\t\t"1234"\n\t"1"\t\t"%s"\n}\n' % extra
    )

    assert LibraryScanner().read_library_index(main) == [extra]


def test_unparseable_manifest_still_yields_record(library):
    """Test that a broken manifest is kept without declared fields."""
    (library / "steamapps" / "appmanifest_700.acf").write_text('"AppState"\n{\n\t"name"\t\t"Broken"\n')

    result = LibraryScanner().scan([library])

    item = result.items["700"]
    assert item.declared_install_subdir is None
    assert item.declared_name is None


def test_scan_no_library_found(tmp_path):
    """Test that missing roots raise NoLibraryFound."""
    with pytest.raises(NoLibraryFound):
        LibraryScanner().scan([tmp_path / "nope", tmp_path / "also-nope"])


def test_scan_no_items_found(library):
    """Test that an empty library raises NoItemsFound."""
    with pytest.raises(NoItemsFound):
        LibraryScanner().scan([library])
