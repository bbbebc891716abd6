"""Tests for reading and writing playset .cfg files."""

from __future__ import annotations

from pathlib import Path

from Utils.file_utils import backup_path_for
from Utils.playset_file import (
    PlaysetEntry,
    format_playset,
    parse_playset,
    read_playset,
    write_playset,
)


class TestFormatPlayset:
    """Tests for format_playset."""

    def test_active_then_disabled(self) -> None:
        """Active names come first in order, disabled ones get a '#'."""
        assert format_playset(["A", "C"], ["B"]) == ["A", "C", "#B"]

    def test_disabled_order_is_kept(self) -> None:
        """Disabled names keep their relative order."""
        assert format_playset(["A"], ["Z", "B", "M"]) == ["A", "#Z", "#B", "#M"]

    def test_active_name_not_repeated_as_disabled(self) -> None:
        """A name that is active is not also written disabled."""
        assert format_playset(["A.mod"], ["a.MOD", "B.mod"]) == ["A.mod", "#B.mod"]

    def test_empty(self) -> None:
        """No mods gives no lines."""
        assert format_playset([], []) == []


class TestParsePlayset:
    """Tests for parse_playset."""

    def test_enabled_and_disabled(self) -> None:
        """Plain lines are enabled, '#Name' lines are disabled."""
        assert parse_playset(["A", "C", "#B"]) == [
            PlaysetEntry("A", True),
            PlaysetEntry("C", True),
            PlaysetEntry("B", False),
        ]

    def test_file_order_is_kept(self) -> None:
        """Entries come back in line order, disabled ones included."""
        entries = parse_playset(["ModA", "ModB", "#ModC", "ModD"])
        assert [e.name for e in entries] == ["ModA", "ModB", "ModC", "ModD"]
        assert [e.name for e in entries if e.enabled] == ["ModA", "ModB", "ModD"]

    def test_comments_and_blanks_are_skipped(self) -> None:
        """Blank lines, '# text' comments and '##' lines are ignored."""
        lines = ["", "   ", "# my favourite mods", "#", "## header", "A.mod", "\t"]
        assert parse_playset(lines) == [PlaysetEntry("A.mod", True)]

    def test_whitespace_is_trimmed(self) -> None:
        """Surrounding whitespace and CR line endings are dropped."""
        assert parse_playset(["  A.mod  \r", "#B.mod \r\n"]) == [
            PlaysetEntry("A.mod", True),
            PlaysetEntry("B.mod", False),
        ]

    def test_repeated_name_keeps_first(self) -> None:
        """A name listed twice (any case) keeps its first occurrence."""
        assert parse_playset(["A.mod", "#a.mod", "A.MOD"]) == [PlaysetEntry("A.mod", True)]

    def test_round_trip(self) -> None:
        """Parsing formatted lines gives back the same order and disabled names."""
        active = ["Z.mod", "A.mod", "M.mod"]
        disabled = ["Q.mod", "B.mod"]
        entries = parse_playset(format_playset(active, disabled))
        assert [e.name for e in entries if e.enabled] == active
        assert [e.name for e in entries if not e.enabled] == disabled


class TestPlaysetFiles:
    """Tests for read_playset and write_playset."""

    def test_write_then_read(self, tmp_path: Path) -> None:
        """A written file reads back the same entries."""
        path = tmp_path / "Test.cfg"
        write_playset(path, ["A", "C", "#B"])

        assert path.read_text(encoding="utf-8") == "A\nC\n#B\n"
        assert read_playset(path) == [
            PlaysetEntry("A", True),
            PlaysetEntry("C", True),
            PlaysetEntry("B", False),
        ]

    def test_empty_file(self, tmp_path: Path) -> None:
        """An empty playset is an empty file."""
        path = tmp_path / "Empty.cfg"
        write_playset(path, [])
        assert path.read_text(encoding="utf-8") == ""
        assert read_playset(path) == []

    def test_bom_and_crlf(self, tmp_path: Path) -> None:
        """Files saved by Windows editors still parse."""
        path = tmp_path / "Win.cfg"
        path.write_bytes("\ufeffA.mod\r\n#B.mod\r\n".encode("utf-8"))
        assert read_playset(path) == [
            PlaysetEntry("A.mod", True),
            PlaysetEntry("B.mod", False),
        ]

    def test_backup_holds_previous_content(self, tmp_path: Path) -> None:
        """keep_backup leaves the previous version in a .bak file."""
        path = tmp_path / "P.cfg"
        write_playset(path, ["Old.mod"])
        write_playset(path, ["New.mod"], keep_backup=True)

        assert path.read_text(encoding="utf-8") == "New.mod\n"
        assert backup_path_for(path).read_text(encoding="utf-8") == "Old.mod\n"

    def test_no_temp_files_left(self, tmp_path: Path) -> None:
        """The temporary file is renamed into place."""
        path = tmp_path / "P.cfg"
        write_playset(path, ["A.mod"])
        write_playset(path, ["B.mod"])
        assert sorted(p.name for p in tmp_path.iterdir()) == ["P.cfg"]
