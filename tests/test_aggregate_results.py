"""
Unit tests for result statistics, sorting and filtering.
"""

from datetime import datetime, timedelta, timezone

import pytest

from core.aggregate_results import aggregate, filter_duplicates, filter_status
from core.models_batch import RenameResult, RenameStatus, SortKey
from core.sort_rules import sort_results

T0 = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


def ok(old, new, seconds=0):
    return RenameResult(old, new, RenameStatus.SUCCESS, timestamp=T0 + timedelta(seconds=seconds))


def fail(old, status, message, seconds=0):
    return RenameResult(old, "", status, message=message, timestamp=T0 + timedelta(seconds=seconds))


@pytest.fixture
def results():
    return [
        ok("A-1.jpg", "10_1.jpg", 0),
        fail("zz.jpg", RenameStatus.NO_MATCH, "no corresponding entry in mapping", 1),
        ok("a_1.jpg", "10_1.jpg", 2),
        fail("doc.txt", RenameStatus.INVALID_FORMAT, "not an image", 3),
        ok("B.jpg", "11_1.jpg", 4),
        fail("noext", RenameStatus.ERROR, "invalid filename format", 5),
    ]


class TestAggregate:
    """Tests for aggregate()."""

    def test_counts(self, results):
        """Every status is counted."""
        report = aggregate(results)
        assert report.count(RenameStatus.SUCCESS) == 3
        assert report.count(RenameStatus.NO_MATCH) == 1
        assert report.count(RenameStatus.INVALID_FORMAT) == 1
        assert report.count(RenameStatus.ERROR) == 1
        assert report.total == 6

    def test_all_statuses_present(self):
        """Statuses without entries count zero."""
        report = aggregate([])
        assert all(report.count(s) == 0 for s in RenameStatus)
        assert report.duplicates == {}

    def test_duplicates(self, results):
        """Colliding new names are reported with their count."""
        report = aggregate(results)
        assert report.duplicates == {"10_1.jpg": 2}
        assert report.duplicate_names == 1

    def test_duplicate_count_defaults(self, results):
        """Absent names count 1 for successes and 0 for failures."""
        report = aggregate(results)
        assert report.duplicate_count(results[0]) == 2
        assert report.duplicate_count(results[4]) == 1
        assert report.duplicate_count(results[1]) == 0

    def test_failures_never_duplicates(self):
        """Failures share an empty new name but are not duplicates."""
        report = aggregate([
            fail("a", RenameStatus.NO_MATCH, "x"),
            fail("b", RenameStatus.NO_MATCH, "x"),
        ])
        assert report.duplicates == {}

    def test_summary_mentions_counts(self, results):
        """Summary lists totals."""
        summary = aggregate(results).summary()
        assert "Total files: 6" in summary
        assert "Duplicate names: 1" in summary


class TestFilters:
    """Tests for filter_duplicates() and filter_status()."""

    def test_filter_duplicates(self, results):
        """Only successes sharing a name are kept, in order."""
        kept = filter_duplicates(results)
        assert [r.old_name for r in kept] == ["A-1.jpg", "a_1.jpg"]

    def test_filter_status(self, results):
        """Only the requested status is kept."""
        kept = filter_status(results, RenameStatus.INVALID_FORMAT)
        assert [r.old_name for r in kept] == ["doc.txt"]


class TestSortResults:
    """Tests for sort_results()."""

    def test_by_status(self, results):
        """Status sort is alphabetical on the status value."""
        ordered = sort_results(results, SortKey.STATUS)
        assert [r.status.value for r in ordered] == [
            "error", "invalid_format", "no_match", "success", "success", "success",
        ]

    def test_by_status_stable(self, results):
        """Equal statuses keep their input order."""
        ordered = sort_results(results, SortKey.STATUS)
        assert [r.old_name for r in ordered[3:]] == ["A-1.jpg", "a_1.jpg", "B.jpg"]

    def test_by_old_name(self, results):
        """Old name sort ignores case."""
        ordered = sort_results(results, SortKey.OLD_NAME)
        assert [r.old_name for r in ordered] == ["A-1.jpg", "a_1.jpg", "B.jpg", "doc.txt", "noext", "zz.jpg"]

    def test_by_new_name(self, results):
        """Successes first by new name, then failures by message."""
        ordered = sort_results(results, SortKey.NEW_NAME)
        assert [r.old_name for r in ordered] == [
            "A-1.jpg", "a_1.jpg", "B.jpg",   # 10_1, 10_1, 11_1
            "noext",                          # invalid filename format
            "zz.jpg",                         # no corresponding entry
            "doc.txt",                        # not an image
        ]

    def test_by_new_name_reversed(self, results):
        """Reverse puts failures first."""
        ordered = sort_results(results, SortKey.NEW_NAME, reverse=True)
        assert ordered[0].old_name == "doc.txt"
        assert ordered[-1].new_name == "10_1.jpg"

    def test_by_timestamp_desc(self, results):
        """Newest first when reversed."""
        ordered = sort_results(results, SortKey.TIMESTAMP, reverse=True)
        assert [r.old_name for r in ordered] == [r.old_name for r in reversed(results)]

    def test_missing_timestamp_sorts_first(self, results):
        """Results without timestamp count as oldest."""
        untimed = RenameResult("x.jpg", "9_1.jpg", RenameStatus.SUCCESS)
        ordered = sort_results(results + [untimed], SortKey.TIMESTAMP)
        assert ordered[0] is untimed

    def test_by_duplicate_count(self, results):
        """Duplicate sort puts the largest groups first."""
        ordered = sort_results(results, SortKey.DUPLICATE)
        assert [r.old_name for r in ordered[:2]] == ["A-1.jpg", "a_1.jpg"]
        assert ordered[2].old_name == "B.jpg"

    def test_returns_new_list(self, results):
        """The input list is not reordered."""
        before = list(results)
        sort_results(results, SortKey.OLD_NAME)
        assert results == before
