"""
export_list.py - Text Report Export

One plain-text line per result of a single status category
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional, Union
import logging

from .errors import ReportBuildError
from .models_batch import RenameResult, RenameStatus
from .safety_checks import check_output_file

logger = logging.getLogger(__name__)


def export_timestamp(now: Optional[datetime] = None) -> str:
    """
    Timestamp used in export filenames

    ISO-8601 UTC with milliseconds, ':' and '.' replaced by '-',
    e.g. 2024-05-01T12-30-05-123Z

    Args:
        now: Instant to render (defaults to current time, naive values are local time)
    """
    if now is None:
        now = datetime.now(timezone.utc)
    else:
        now = now.astimezone(timezone.utc)
    text = now.strftime("%Y-%m-%dT%H:%M:%S") + f".{now.microsecond // 1000:03d}Z"
    return text.replace(":", "-").replace(".", "-")


def format_line(result: RenameResult) -> str:
    """Render one report line"""
    if result.status is RenameStatus.SUCCESS:
        return f"{result.old_name} -> {result.new_name}"
    return f"{result.old_name} - {result.message or ''}"


def render_list(results: Iterable[RenameResult], status: RenameStatus) -> str:
    """
    Render the report text for one category

    Args:
        results: Rename results (any statuses)
        status: Category to keep

    Returns:
        Newline-joined lines, empty string if nothing matches
    """
    return "\n".join(format_line(r) for r in results if r.status is status)


def export_list(results: Iterable[RenameResult], status: RenameStatus) -> bytes:
    """Report content as UTF-8 bytes"""
    return render_list(results, status).encode("utf-8")


def list_filename(status: RenameStatus, now: Optional[datetime] = None) -> str:
    """Report filename: <category-label>_<timestamp>.txt"""
    return f"{status.report_label}_{export_timestamp(now)}.txt"


def save_list(
    results: Iterable[RenameResult],
    status: RenameStatus,
    directory: Union[str, Path],
    now: Optional[datetime] = None
) -> Path:
    """
    Write the category report into a directory

    Args:
        results: Rename results
        status: Category to export
        directory: Output directory
        now: Timestamp for the filename

    Returns:
        Path of the written report

    Raises:
        ReportBuildError: Target not writable or write failed
    """
    path = Path(directory) / list_filename(status, now)

    valid, error = check_output_file(path)
    if not valid:
        raise ReportBuildError(error)

    try:
        path.write_bytes(export_list(results, status))
    except OSError as e:
        raise ReportBuildError(f"Cannot write report {path}: {e}") from e

    logger.info("Report written: %s", path)
    return path
