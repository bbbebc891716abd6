"""Tests for the playset repository."""

from __future__ import annotations

from pathlib import Path

import pytest

from Utils.file_utils import backup_path_for
from Utils.playset_file import PlaysetEntry
from Utils.playsets import (
    INITIAL_PLAYSET_NAME,
    PlaysetIOError,
    PlaysetNameConflictError,
    PlaysetNotFoundError,
    PlaysetRepository,
    sanitize_playset_name,
)


@pytest.fixture
def repo(tmp_path: Path) -> PlaysetRepository:
    """Repository over an empty playsets directory."""
    return PlaysetRepository(tmp_path / "data" / "playsets")


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


class TestListAndCreate:
    """Listing and creating playsets."""

    def test_missing_directory_lists_nothing(self, repo: PlaysetRepository) -> None:
        """A missing playsets directory is not an error."""
        assert repo.list_playsets() == []

    def test_create_writes_empty_file(self, repo: PlaysetRepository) -> None:
        """create() makes an empty .cfg named after the playset."""
        playset = repo.create("Foo")
        assert playset.name == "Foo"
        assert playset.file_path == repo.playsets_dir / "Foo.cfg"
        assert playset.file_path.read_text(encoding="utf-8") == ""

    def test_list_sorted_case_insensitive(self, repo: PlaysetRepository) -> None:
        """Playsets are listed by name regardless of case."""
        for name in ("b", "A", "c"):
            repo.create(name)
        assert [p.name for p in repo.list_playsets()] == ["A", "b", "c"]

    def test_other_files_are_ignored(self, repo: PlaysetRepository) -> None:
        """Only .cfg files are playsets."""
        repo.create("Real")
        _write(repo.playsets_dir / "notes.txt", "x")
        _write(repo.playsets_dir / "Real.cfg.bak", "x")
        assert [p.name for p in repo.list_playsets()] == ["Real"]

    def test_create_conflict_is_case_insensitive(self, repo: PlaysetRepository) -> None:
        """Create("Foo") then Create("foo") fails with a name conflict."""
        repo.create("Foo")
        with pytest.raises(PlaysetNameConflictError) as exc_info:
            repo.create("foo")
        assert exc_info.value.name == "foo"

    def test_name_is_sanitized(self, repo: PlaysetRepository) -> None:
        """Characters not allowed in file names are replaced."""
        playset = repo.create('Bad:Name?/x')
        assert playset.name == "Bad_Name__x"
        assert playset.file_path.is_file()

    def test_get(self, repo: PlaysetRepository) -> None:
        """get() finds a playset by name, case-insensitively."""
        repo.create("Main")
        assert repo.get("MAIN").name == "Main"
        assert repo.get("Other") is None

    def test_generate_name(self, repo: PlaysetRepository) -> None:
        """Generated names count up from 'Playset 1'."""
        assert repo.generate_name() == "Playset 1"
        repo.create("Playset 1")
        repo.create("Playset 3")
        assert repo.generate_name() == "Playset 2"

    def test_unique_name(self, repo: PlaysetRepository) -> None:
        """unique_name() adds ' (2)', ' (3)' to taken names."""
        assert repo.unique_name("Main") == "Main"
        repo.create("Main")
        assert repo.unique_name("main") == "main (2)"
        repo.create("Main (2)")
        assert repo.unique_name("Main") == "Main (3)"


class TestSanitize:
    """Tests for sanitize_playset_name."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("Plain", "Plain"),
            ("  spaced  ", "spaced"),
            ("a<b>c", "a_b_c"),
            ('q"u|o*te', "q_u_o_te"),
            ("dots...", "dots"),
            ("tab\there", "tab_here"),
        ],
    )
    def test_sanitize(self, raw: str, expected: str) -> None:
        """Unsafe characters become '_' and trailing dots go."""
        assert sanitize_playset_name(raw) == expected

    @pytest.mark.parametrize("raw", ["", "   ", "...", " . "])
    def test_empty_result_rejected(self, raw: str) -> None:
        """A name with nothing usable left is rejected."""
        with pytest.raises(ValueError):
            sanitize_playset_name(raw)


class TestRenameDuplicateDelete:
    """Rename, duplicate and delete."""

    def test_rename_keeps_content(self, repo: PlaysetRepository) -> None:
        """Renaming moves the file and keeps its lines."""
        old = repo.create("Old")
        repo.save_entries(old.file_path, ["A.mod"], ["B.mod"])

        renamed = repo.rename(old.file_path, "New")

        assert not old.file_path.exists()
        assert renamed.file_path.read_text(encoding="utf-8") == "A.mod\n#B.mod\n"
        assert [p.name for p in repo.list_playsets()] == ["New"]

    def test_rename_to_taken_name(self, repo: PlaysetRepository) -> None:
        """Renaming onto another playset's name fails."""
        a = repo.create("A")
        repo.create("B")
        with pytest.raises(PlaysetNameConflictError):
            repo.rename(a.file_path, "b")
        assert a.file_path.is_file()

    def test_rename_case_only(self, repo: PlaysetRepository) -> None:
        """Changing only the case of a name is allowed."""
        foo = repo.create("foo")
        renamed = repo.rename(foo.file_path, "Foo")
        assert renamed.name == "Foo"
        assert [p.name for p in repo.list_playsets()] == ["Foo"]

    def test_rename_missing(self, repo: PlaysetRepository) -> None:
        """Renaming a deleted playset reports NotFound."""
        gone = repo.create("Gone")
        gone.file_path.unlink()
        with pytest.raises(PlaysetNotFoundError):
            repo.rename(gone.file_path, "Other")

    def test_rename_moves_backup(self, repo: PlaysetRepository) -> None:
        """The .bak file follows its playset."""
        p = repo.create("P")
        repo.save_entries(p.file_path, ["A.mod"])
        repo.save_entries(p.file_path, ["B.mod"])
        renamed = repo.rename(p.file_path, "Q")
        assert backup_path_for(renamed.file_path).is_file()
        assert not backup_path_for(p.file_path).exists()

    def test_active_path_follows_rename_and_delete(self, repo: PlaysetRepository) -> None:
        """is_active tracks the loaded playset through rename and delete."""
        p = repo.create("P")
        repo.create("Other")
        repo.active_path = p.file_path
        assert [x.is_active for x in repo.list_playsets()] == [False, True]

        renamed = repo.rename(p.file_path, "Renamed")
        assert repo.active_path == renamed.file_path
        assert repo.get("Renamed").is_active

        repo.delete(renamed.file_path)
        assert repo.active_path is None

    def test_duplicate(self, repo: PlaysetRepository) -> None:
        """duplicate() copies the content under a new name."""
        src = repo.create("Src")
        repo.save_entries(src.file_path, ["A.mod", "B.mod"])

        copy = repo.duplicate(src.file_path, "Src Copy")

        assert copy.file_path.read_bytes() == src.file_path.read_bytes()
        with pytest.raises(PlaysetNameConflictError):
            repo.duplicate(src.file_path, "SRC")

    def test_duplicate_missing(self, repo: PlaysetRepository, tmp_path: Path) -> None:
        """Duplicating a missing playset reports NotFound."""
        with pytest.raises(PlaysetNotFoundError):
            repo.duplicate(tmp_path / "nope.cfg", "X")

    def test_delete(self, repo: PlaysetRepository) -> None:
        """delete() removes the file; a second delete is NotFound."""
        p = repo.create("P")
        repo.delete(p.file_path)
        assert repo.list_playsets() == []
        with pytest.raises(PlaysetNotFoundError):
            repo.delete(p.file_path)


class TestImportExport:
    """Copying playsets in and out of the managed directory."""

    def test_export_is_byte_identical(self, repo: PlaysetRepository, tmp_path: Path) -> None:
        """Exported files match the playset byte for byte."""
        p = repo.create("P")
        repo.save_entries(p.file_path, ["A.mod"], ["B.mod"])
        dest = tmp_path / "out" / "shared.cfg"

        assert repo.export(p.file_path, dest) == dest
        assert dest.read_bytes() == p.file_path.read_bytes()

    def test_import_uses_file_stem(self, repo: PlaysetRepository, tmp_path: Path) -> None:
        """An imported file is named after its stem."""
        src = _write(tmp_path / "Friend.cfg", "A.mod\n#B.mod\n")
        playset = repo.import_playset(src)
        assert playset.name == "Friend"
        assert playset.file_path.read_bytes() == src.read_bytes()

    def test_import_auto_suffixes(self, repo: PlaysetRepository, tmp_path: Path) -> None:
        """Importing a taken name adds ' (2)', then ' (3)'."""
        repo.create("Friend")
        src = _write(tmp_path / "Friend.cfg", "A.mod\n")
        assert repo.import_playset(src).name == "Friend (2)"
        assert repo.import_playset(src).name == "Friend (3)"

    def test_import_with_explicit_name(self, repo: PlaysetRepository, tmp_path: Path) -> None:
        """An explicit name is sanitized like create()."""
        src = _write(tmp_path / "x.cfg", "A.mod\n")
        assert repo.import_playset(src, name="My:Set").name == "My_Set"

    def test_import_missing_source(self, repo: PlaysetRepository, tmp_path: Path) -> None:
        """Importing a missing file reports NotFound."""
        with pytest.raises(PlaysetNotFoundError):
            repo.import_playset(tmp_path / "missing.cfg")


class TestEntries:
    """Loading and saving playset content."""

    def test_save_and_load(self, repo: PlaysetRepository) -> None:
        """save_entries then load_entries returns the same state."""
        p = repo.create("P")
        repo.save_entries(p.file_path, ["A.mod", "C.mod"], ["B.mod"])
        assert repo.load_entries(p.file_path) == [
            PlaysetEntry("A.mod", True),
            PlaysetEntry("C.mod", True),
            PlaysetEntry("B.mod", False),
        ]

    def test_load_missing(self, repo: PlaysetRepository, tmp_path: Path) -> None:
        """Loading a missing file reports NotFound."""
        with pytest.raises(PlaysetNotFoundError):
            repo.load_entries(tmp_path / "missing.cfg")

    def test_save_to_deleted_playset(self, repo: PlaysetRepository) -> None:
        """Saving does not resurrect a playset deleted outside the app."""
        p = repo.create("P")
        p.file_path.unlink()
        with pytest.raises(PlaysetNotFoundError):
            repo.save_entries(p.file_path, ["A.mod"])
        assert not p.file_path.exists()

    def test_save_failure_is_io_error(self, repo: PlaysetRepository, monkeypatch) -> None:
        """Filesystem errors surface as PlaysetIOError with the cause attached."""
        p = repo.create("P")

        def _disk_full(*_args, **_kwargs):
            raise OSError(28, "No space left on device")

        monkeypatch.setattr("Utils.playsets.write_playset", _disk_full)
        with pytest.raises(PlaysetIOError) as exc_info:
            repo.save_entries(p.file_path, ["A.mod"])
        assert isinstance(exc_info.value.__cause__, OSError)
        assert p.file_path.read_text(encoding="utf-8") == ""

    def test_backup_and_restore(self, repo: PlaysetRepository) -> None:
        """restore_backup() brings back the content before the last save."""
        p = repo.create("P")
        repo.save_entries(p.file_path, ["A.mod"])
        repo.save_entries(p.file_path, ["B.mod"])

        repo.restore_backup(p.file_path)

        assert [e.name for e in repo.load_entries(p.file_path)] == ["A.mod"]

    def test_no_backup_when_disabled(self, tmp_path: Path) -> None:
        """keep_backup=False writes no .bak."""
        repo = PlaysetRepository(tmp_path, keep_backup=False)
        p = repo.create("P")
        repo.save_entries(p.file_path, ["A.mod"])
        repo.save_entries(p.file_path, ["B.mod"])
        assert not backup_path_for(p.file_path).exists()
        with pytest.raises(PlaysetNotFoundError):
            repo.restore_backup(p.file_path)


class TestMigrateLegacy:
    """First-run migration from data/mods.cfg."""

    def test_seeds_initial_playset(self, repo: PlaysetRepository, tmp_path: Path) -> None:
        """A non-empty mods.cfg becomes 'Initial Playset'."""
        mods_cfg = _write(tmp_path / "data" / "mods.cfg", "A.mod\nB.mod\n")

        playset = repo.migrate_legacy(mods_cfg)

        assert playset.name == INITIAL_PLAYSET_NAME
        assert repo.load_entries(playset.file_path) == [
            PlaysetEntry("A.mod", True),
            PlaysetEntry("B.mod", True),
        ]

    def test_is_idempotent(self, repo: PlaysetRepository, tmp_path: Path) -> None:
        """Running the migration again changes nothing."""
        mods_cfg = _write(tmp_path / "data" / "mods.cfg", "A.mod\n")
        first = repo.migrate_legacy(mods_cfg)
        repo.save_entries(first.file_path, ["Edited.mod"])

        assert repo.migrate_legacy(mods_cfg) is None
        assert [e.name for e in repo.load_entries(first.file_path)] == ["Edited.mod"]
        assert len(repo.list_playsets()) == 1

    def test_skipped_when_playsets_exist(self, repo: PlaysetRepository, tmp_path: Path) -> None:
        """Existing playsets mean no migration."""
        repo.create("Mine")
        mods_cfg = _write(tmp_path / "data" / "mods.cfg", "A.mod\n")
        assert repo.migrate_legacy(mods_cfg) is None
        assert [p.name for p in repo.list_playsets()] == ["Mine"]

    @pytest.mark.parametrize("content", [None, "", "\n# nothing here\n"])
    def test_empty_initial_playset(self, repo: PlaysetRepository, tmp_path: Path,
                                   content: str | None) -> None:
        """Without usable legacy entries an empty 'Initial Playset' is created."""
        mods_cfg = tmp_path / "data" / "mods.cfg"
        if content is not None:
            _write(mods_cfg, content)

        playset = repo.migrate_legacy(mods_cfg)

        assert playset.name == INITIAL_PLAYSET_NAME
        assert repo.load_entries(playset.file_path) == []
