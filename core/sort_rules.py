"""
sort_rules.py - Sorting Rules Module

Provides the result table orderings
"""

from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional

from .aggregate_results import aggregate
from .models_batch import BatchReport, RenameResult, SortKey

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _text_key(text: str) -> tuple:
    # Case-insensitive first, original text breaks ties
    return (text.casefold(), text)


def get_sort_key(
    sort_by: SortKey,
    report: Optional[BatchReport] = None
) -> Callable[[RenameResult], tuple]:
    """
    Get sort key function

    Args:
        sort_by: Sorting method
        report: Batch report (required for SortKey.DUPLICATE)

    Returns:
        Sort key function
    """
    if sort_by == SortKey.STATUS:
        return lambda r: r.status.value
    elif sort_by == SortKey.OLD_NAME:
        return lambda r: _text_key(r.old_name)
    elif sort_by == SortKey.NEW_NAME:
        # Successes by new name, then failures by message
        return lambda r: (0, _text_key(r.new_name)) if r.is_success else (1, _text_key(r.message or ""))
    elif sort_by == SortKey.TIMESTAMP:
        return lambda r: r.timestamp or _EPOCH
    elif sort_by == SortKey.DUPLICATE:
        if report is None:
            raise ValueError("Duplicate sort needs a batch report")
        return lambda r: -report.duplicate_count(r)
    else:
        return lambda r: _text_key(r.old_name)


def sort_results(
    results: Iterable[RenameResult],
    sort_by: SortKey = SortKey.TIMESTAMP,
    reverse: bool = False,
    report: Optional[BatchReport] = None
) -> List[RenameResult]:
    """
    Sort result list

    Args:
        results: Rename results
        sort_by: Sorting method
        reverse: Whether to sort in reverse
        report: Batch report, computed if needed and not given

    Returns:
        Sorted result list (new list, stable)
    """
    results = list(results)
    if sort_by == SortKey.DUPLICATE and report is None:
        report = aggregate(results)
    key_func = get_sort_key(sort_by, report)
    return sorted(results, key=key_func, reverse=reverse)
