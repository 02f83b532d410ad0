"""
Unit tests for archive export.
"""

from datetime import datetime, timezone
import io
import zipfile

import pytest

from core.byte_sources import MemorySource
from core.errors import ArchiveBuildError, EmptyExportError
from core.export_archive import (
    ConflictResolver,
    archive_filename,
    build_archive,
    plan_archive,
    save_archive,
)
from core.models_batch import ConflictPolicy, RenameResult, RenameStatus

NOW = datetime(2024, 5, 1, 12, 30, 5, 123000, tzinfo=timezone.utc)


def ok(old, new, data=None):
    data = data if data is not None else old.encode()
    return RenameResult(old, new, RenameStatus.SUCCESS, source=MemorySource(data, old))


def no_match(old):
    return RenameResult(old, "", RenameStatus.NO_MATCH, message="no corresponding entry in mapping")


def read_zip(data):
    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        return {name: zf.read(name) for name in zf.namelist()}


class TestConflictResolver:
    """Tests for ConflictResolver."""

    def test_first_name_kept(self):
        """An unused name is returned as is."""
        resolver = ConflictResolver()
        assert resolver.resolve("42_1.jpg") == ("42_1.jpg", False)

    def test_suffix_added(self):
        """Later duplicates get increasing suffixes."""
        resolver = ConflictResolver()
        resolver.resolve("42_1.jpg")
        assert resolver.resolve("42_1.jpg") == ("42_1_1.jpg", True)
        assert resolver.resolve("42_1.jpg") == ("42_1_2.jpg", True)

    def test_reserved_names_avoided(self):
        """Generated names never take a name another entry asked for."""
        resolver = ConflictResolver()
        resolver.reserve(["42_1.jpg", "42_1_1.jpg"])
        resolver.resolve("42_1.jpg")
        assert resolver.resolve("42_1.jpg") == ("42_1_2.jpg", True)

    def test_case_insensitive(self):
        """Names differing by case collide when requested."""
        resolver = ConflictResolver(case_insensitive=True)
        resolver.resolve("A_1.jpg")
        assert resolver.resolve("a_1.JPG")[1] is True


class TestPlanArchive:
    """Tests for plan_archive()."""

    def test_no_success_is_error(self):
        """An archive without successes is refused."""
        with pytest.raises(EmptyExportError):
            plan_archive([no_match("a.jpg"), no_match("b.jpg")])

    def test_only_successes_included(self):
        """Failed results are not packaged."""
        plan = plan_archive([ok("a.jpg", "1_1.jpg"), no_match("b.jpg")])
        assert [e.arcname for e in plan.entries] == ["1_1.jpg"]

    def test_suffix_policy(self):
        """Duplicates are all kept under distinct names."""
        results = [
            ok("A-1.jpg", "42_1.jpg"),
            ok("a_1.jpg", "42_1.jpg"),
            ok("x.jpg", "42_1_1.jpg"),
        ]
        plan = plan_archive(results)
        assert [e.arcname for e in plan.entries] == ["42_1.jpg", "42_1_2.jpg", "42_1_1.jpg"]
        assert plan.conflict_count == 1
        assert plan.total_count == 3

    def test_skip_policy(self):
        """Skip keeps the first entry and warns."""
        results = [ok("first.jpg", "42_1.jpg"), ok("second.jpg", "42_1.jpg")]
        plan = plan_archive(results, ConflictPolicy.SKIP)
        assert [e.result.old_name for e in plan.entries] == ["first.jpg"]
        assert len(plan.warnings) == 1

    def test_overwrite_policy(self):
        """Overwrite keeps the last entry and warns."""
        results = [ok("first.jpg", "42_1.jpg"), ok("second.jpg", "42_1.jpg")]
        plan = plan_archive(results, ConflictPolicy.OVERWRITE)
        assert [e.result.old_name for e in plan.entries] == ["second.jpg"]
        assert plan.warnings

    def test_reject_policy(self):
        """Reject refuses to build an archive with duplicates."""
        results = [ok("first.jpg", "42_1.jpg"), ok("second.jpg", "42_1.jpg")]
        with pytest.raises(ArchiveBuildError):
            plan_archive(results, ConflictPolicy.REJECT)

    def test_invalid_name_sanitized(self):
        """Names that are not valid entry names are cleaned with a warning."""
        plan = plan_archive([ok("a.jpg", "a/b_1.jpg")])
        assert plan.entries[0].arcname == "a_b_1.jpg"
        assert plan.warnings


class TestBuildArchive:
    """Tests for build_archive()."""

    def test_contents(self):
        """Entries carry the new names and the original bytes."""
        data = build_archive([
            ok("A-1.jpg", "42_1.jpg", b"one"),
            no_match("zz.jpg"),
            ok("B.png", "43_1.png", b"two"),
        ])
        assert read_zip(data) == {"42_1.jpg": b"one", "43_1.png": b"two"}

    def test_duplicates_all_present(self):
        """No content is lost to a name collision."""
        data = build_archive([ok("a.jpg", "42_1.jpg", b"a"), ok("b.jpg", "42_1.jpg", b"b")])
        assert read_zip(data) == {"42_1.jpg": b"a", "42_1_1.jpg": b"b"}

    def test_missing_source(self):
        """A success without retained content cannot be packaged."""
        result = RenameResult("a.jpg", "1_1.jpg", RenameStatus.SUCCESS)
        with pytest.raises(ArchiveBuildError):
            build_archive([result])

    def test_released_source(self):
        """A released source is reported as an archive error."""
        result = ok("a.jpg", "1_1.jpg")
        result.source.release()
        with pytest.raises(ArchiveBuildError):
            build_archive([result])


class TestSaveArchive:
    """Tests for save_archive()."""

    def test_filename(self):
        """Archive name is label plus export timestamp."""
        assert archive_filename("processed_files", NOW) == "processed_files_2024-05-01T12-30-05-123Z.zip"

    def test_writes_file(self, tmp_path):
        """The archive is written into the target directory."""
        path, plan = save_archive([ok("a.jpg", "1_1.jpg", b"x")], tmp_path, now=NOW)
        assert path == tmp_path / "processed_files_2024-05-01T12-30-05-123Z.zip"
        assert read_zip(path.read_bytes()) == {"1_1.jpg": b"x"}
        assert plan.total_count == 1

    def test_empty_creates_nothing(self, tmp_path):
        """No file appears when there is nothing to export."""
        with pytest.raises(EmptyExportError):
            save_archive([no_match("a.jpg")], tmp_path, now=NOW)
        assert list(tmp_path.iterdir()) == []

    def test_partial_file_removed(self, tmp_path):
        """A failed build leaves no partial archive behind."""
        broken = RenameResult("b.jpg", "2_1.jpg", RenameStatus.SUCCESS)
        with pytest.raises(ArchiveBuildError):
            save_archive([ok("a.jpg", "1_1.jpg"), broken], tmp_path, now=NOW)
        assert list(tmp_path.iterdir()) == []

    def test_existing_file_not_overwritten(self, tmp_path):
        """An existing archive with the same name is refused."""
        (tmp_path / archive_filename("processed_files", NOW)).write_bytes(b"old")
        with pytest.raises(ArchiveBuildError):
            save_archive([ok("a.jpg", "1_1.jpg")], tmp_path, now=NOW)

    def test_missing_directory(self, tmp_path):
        """The output directory must exist."""
        with pytest.raises(ArchiveBuildError):
            save_archive([ok("a.jpg", "1_1.jpg")], tmp_path / "nope", now=NOW)

    def test_release_sources(self, tmp_path):
        """Sources are released once stored when requested."""
        results = [ok("a.jpg", "1_1.jpg"), ok("b.jpg", "2_1.jpg")]
        save_archive(results, tmp_path, release_sources=True, now=NOW)
        assert all(r.source.released for r in results)

    def test_sources_kept_by_default(self, tmp_path):
        """Without release the results can be exported again."""
        results = [ok("a.jpg", "1_1.jpg")]
        save_archive(results, tmp_path, now=NOW)
        assert not results[0].source.released
        save_archive(results, tmp_path, label="again", now=NOW)
