"""
process_batch.py - Batch Processing Module

Responsibilities:
- Match every input file against the mapping
- Keep results in input order, whatever the worker count
- Attach capture timestamps and byte sources
- Cooperative cancellation between files
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union
import logging
import threading

from .byte_sources import ImageFile
from .errors import BatchCancelledError, EmptyBatchError
from .match_files import match_file
from .models_batch import MappingTable, RenameResult
from .parse_mapping import read_mapping

logger = logging.getLogger(__name__)


def _process_one(
    file: ImageFile,
    mapping: MappingTable,
    cancel_event: Optional[threading.Event]
) -> RenameResult:
    if cancel_event is not None and cancel_event.is_set():
        raise BatchCancelledError("Batch cancelled")
    result = match_file(file, mapping)
    return replace(result, timestamp=datetime.now(timezone.utc), source=file.source)


def process_files(
    files: Sequence[ImageFile],
    mapping: MappingTable,
    max_workers: int = 1,
    cancel_event: Optional[threading.Event] = None,
    progress_callback: Optional[Callable[[int, int, str], None]] = None
) -> List[RenameResult]:
    """
    Match a batch of files

    Args:
        files: Input files, in display order
        mapping: Parsed mapping table
        max_workers: Worker threads (1 = sequential)
        cancel_event: Set it to stop the batch between files
        progress_callback: Progress callback (current, total, message)

    Returns:
        One result per input file, same order as files

    Raises:
        EmptyBatchError: No files supplied
        BatchCancelledError: cancel_event was set before the batch finished
    """
    files = list(files)
    total = len(files)
    if total == 0:
        raise EmptyBatchError("No files to process")

    results: List[Optional[RenameResult]] = [None] * total

    if max_workers <= 1:
        for i, f in enumerate(files):
            results[i] = _process_one(f, mapping, cancel_event)
            if progress_callback:
                progress_callback(i + 1, total, f.name)
    else:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = [
                executor.submit(_process_one, f, mapping, cancel_event)
                for f in files
            ]
            try:
                for i, future in enumerate(futures):
                    results[i] = future.result()
                    if progress_callback:
                        progress_callback(i + 1, total, files[i].name)
            except BatchCancelledError:
                for future in futures:
                    future.cancel()
                raise

    logger.info("Processed %d files", total)
    return results


def process_batch(
    files: Sequence[ImageFile],
    mapping_path: Union[str, Path],
    encoding: str = "utf-8-sig",
    **kwargs
) -> List[RenameResult]:
    """
    Read the mapping file, then match the files

    A mapping read failure aborts the whole batch (MappingReadError),
    nothing partial is returned.
    """
    if not files:
        raise EmptyBatchError("No files to process")
    mapping = read_mapping(mapping_path, encoding=encoding)
    return process_files(files, mapping, **kwargs)
