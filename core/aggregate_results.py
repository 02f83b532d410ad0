"""
aggregate_results.py - Result Statistics

Per-status counts and duplicate output names over a result set
"""

from collections import Counter
from typing import Iterable, List, Optional

from .models_batch import BatchReport, RenameResult, RenameStatus


def aggregate(results: Iterable[RenameResult]) -> BatchReport:
    """
    Compute the batch report

    Args:
        results: Rename results

    Returns:
        Counts for every status, and new names produced by more than one success
    """
    report = BatchReport()
    names: Counter = Counter()

    for r in results:
        report.counts[r.status] = report.counts.get(r.status, 0) + 1
        if r.status is RenameStatus.SUCCESS:
            names[r.new_name] += 1

    report.duplicates = {name: count for name, count in names.items() if count > 1}
    return report


def filter_duplicates(
    results: Iterable[RenameResult],
    report: Optional[BatchReport] = None
) -> List[RenameResult]:
    """Keep only successes whose new name is shared with another success"""
    results = list(results)
    if report is None:
        report = aggregate(results)
    return [r for r in results if report.duplicate_count(r) > 1]


def filter_status(results: Iterable[RenameResult], status: RenameStatus) -> List[RenameResult]:
    """Keep only results with the given status"""
    return [r for r in results if r.status is status]
