"""
Tests for the command-line interface.
"""

import zipfile

import pytest

from cli.cli_entry import create_parser, main


@pytest.fixture
def workspace(tmp_path):
    mapping = tmp_path / "mapping.txt"
    mapping.write_text("id\tart\n42\tAPAU-0603\n43\tBX-1\n1\t\n", encoding="utf-8")

    photos = tmp_path / "photos"
    photos.mkdir()
    (photos / "APAU0603-1.jpg").write_bytes(b"one")
    (photos / "apau_0603-1.jpg").write_bytes(b"two")
    (photos / "BX1.png").write_bytes(b"three")
    (photos / "unknown.jpg").write_bytes(b"four")

    out = tmp_path / "out"
    out.mkdir()
    return tmp_path, mapping, photos, out


class TestParser:
    """Tests for create_parser()."""

    def test_process_defaults(self):
        """Process defaults to sequential matching sorted by time."""
        args = create_parser().parse_args(["process", "m.txt", "a.jpg"])
        assert args.workers == 1
        assert args.sort == "timestamp"
        assert not args.duplicates_only

    def test_export_lists_repeatable(self):
        """--list can be given several times."""
        args = create_parser().parse_args([
            "export", "m.txt", "a.jpg", "--out", "o", "--list", "no_match", "--list", "error",
        ])
        assert args.lists == ["no_match", "error"]

    def test_export_requires_out(self):
        """--out is mandatory for export."""
        with pytest.raises(SystemExit):
            create_parser().parse_args(["export", "m.txt", "a.jpg"])


class TestCommands:
    """Tests for main() subcommands."""

    def test_parse_mapping(self, workspace, capsys):
        """Mapping statistics are printed."""
        _, mapping, _, _ = workspace
        assert main(["parse-mapping", str(mapping)]) == 0
        out = capsys.readouterr().out
        assert "Rows: 2" in out
        assert "Skipped rows: 1" in out

    def test_parse_mapping_missing(self, tmp_path, capsys):
        """An unreadable mapping file exits with status 1."""
        assert main(["parse-mapping", str(tmp_path / "missing.txt")]) == 1
        assert "Error" in capsys.readouterr().out

    def test_process(self, workspace, capsys):
        """Results and statistics are printed."""
        _, mapping, photos, _ = workspace
        assert main(["process", str(mapping), str(photos), "--sort", "new_name"]) == 0
        out = capsys.readouterr().out
        assert "42_1.jpg" in out
        assert "43_1.png" in out
        assert "3 successful, 1 not found, 1 duplicate" in out

    def test_process_duplicates_only(self, workspace, capsys):
        """Only the colliding rows are shown."""
        _, mapping, photos, _ = workspace
        assert main(["process", str(mapping), str(photos), "--duplicates-only"]) == 0
        out = capsys.readouterr().out
        assert "43_1.png" not in out
        assert "unknown.jpg" not in out
        assert "2x" in out

    def test_process_no_files(self, workspace, capsys):
        """An empty input folder is reported without failing."""
        tmp_path, mapping, _, _ = workspace
        empty = tmp_path / "empty"
        empty.mkdir()
        assert main(["process", str(mapping), str(empty)]) == 0
        assert "No image files found" in capsys.readouterr().out

    def test_export_zip_and_list(self, workspace):
        """Archive and list files are written into the output directory."""
        _, mapping, photos, out = workspace
        code = main([
            "export", str(mapping), str(photos),
            "--out", str(out), "--zip", "--list", "no_match", "--yes",
        ])
        assert code == 0

        archives = list(out.glob("processed_files_*.zip"))
        assert len(archives) == 1
        with zipfile.ZipFile(archives[0]) as zf:
            assert sorted(zf.namelist()) == ["42_1.jpg", "42_1_1.jpg", "43_1.png"]

        lists = list(out.glob("not_matched_*.txt"))
        assert len(lists) == 1
        assert lists[0].read_text(encoding="utf-8") == "unknown.jpg - no corresponding entry in mapping"

    def test_export_empty_category_fails(self, workspace, capsys):
        """Asking for a category without results is a failure."""
        _, mapping, photos, out = workspace
        code = main(["export", str(mapping), str(photos), "--out", str(out), "--list", "error", "--yes"])
        assert code == 1
        assert "Nothing to export" in capsys.readouterr().out
        assert list(out.iterdir()) == []

    def test_export_reject_policy(self, workspace):
        """The reject policy refuses an archive with duplicate names."""
        _, mapping, photos, out = workspace
        code = main([
            "export", str(mapping), str(photos),
            "--out", str(out), "--zip", "--conflict", "reject", "--yes",
        ])
        assert code == 1
        assert list(out.iterdir()) == []

    def test_export_nothing_requested(self, workspace, capsys):
        """Export without --zip or --list does nothing."""
        _, mapping, photos, out = workspace
        assert main(["export", str(mapping), str(photos), "--out", str(out), "--yes"]) == 1
        assert "Nothing to export" in capsys.readouterr().out

    def test_export_cancelled(self, workspace, monkeypatch):
        """Declining the confirmation writes nothing."""
        _, mapping, photos, out = workspace
        monkeypatch.setattr("builtins.input", lambda prompt="": "n")
        assert main(["export", str(mapping), str(photos), "--out", str(out), "--zip"]) == 0
        assert list(out.iterdir()) == []
