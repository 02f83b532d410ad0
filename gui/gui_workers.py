"""
gui_workers.py - GUI Worker Threads

Provides background execution of long tasks to avoid blocking UI
"""

import sys
import threading
from pathlib import Path
from typing import Optional, List

from PySide6.QtCore import QThread, Signal, QObject

# Ensure core module can be imported
sys.path.insert(0, str(Path(__file__).parent.parent))

from core import (
    collect_images, read_mapping, process_files, save_archive, save_list,
    ImageFile, ProcessOptions, RenameResult, RenameStatus,
    BatchCancelledError, RenamerError,
)


class CollectWorker(QThread):
    """Collects image files from dropped / selected paths"""

    # Signals
    progress = Signal(str)          # Progress message
    finished = Signal(object)       # CollectResult
    error = Signal(str)             # Error message

    def __init__(
        self,
        paths: List[Path],
        options: ProcessOptions,
        already_selected: int = 0,
        parent: Optional[QObject] = None
    ):
        super().__init__(parent)
        self.paths = paths
        self.options = options
        self.already_selected = already_selected

    def run(self):
        try:
            collected = collect_images(
                self.paths,
                self.options,
                already_selected=self.already_selected,
                progress_callback=self.progress.emit,
            )
            self.finished.emit(collected)
        except (OSError, ValueError) as e:
            self.error.emit(str(e))


class ProcessWorker(QThread):
    """Reads the mapping file and matches the batch"""

    # Signals
    progress = Signal(int, int, str)    # current, total, message
    finished = Signal(object)           # (MappingTable, List[RenameResult])
    cancelled = Signal()
    error = Signal(str)                 # Error message

    def __init__(
        self,
        files: List[ImageFile],
        mapping_path: Path,
        options: ProcessOptions,
        parent: Optional[QObject] = None
    ):
        super().__init__(parent)
        self.files = files
        self.mapping_path = mapping_path
        self.options = options
        self._cancel_event = threading.Event()

    def cancel(self):
        """Cancel processing"""
        self._cancel_event.set()

    def run(self):
        try:
            mapping = read_mapping(self.mapping_path, encoding=self.options.mapping_encoding)
            results = process_files(
                self.files,
                mapping,
                max_workers=self.options.max_workers,
                cancel_event=self._cancel_event,
                progress_callback=self.progress.emit,
            )
            self.finished.emit((mapping, results))
        except BatchCancelledError:
            self.cancelled.emit()
        except RenamerError as e:
            self.error.emit(str(e))


class ExportWorker(QThread):
    """Writes the archive or one category list"""

    # Signals
    finished = Signal(str)              # Written file path
    error = Signal(str)                 # Error message

    def __init__(
        self,
        results: List[RenameResult],
        out_dir: Path,
        options: ProcessOptions,
        status: Optional[RenameStatus] = None,  # None = archive
        parent: Optional[QObject] = None
    ):
        super().__init__(parent)
        self.results = results
        self.out_dir = out_dir
        self.options = options
        self.status = status

    def run(self):
        try:
            if self.status is None:
                path, _ = save_archive(
                    self.results,
                    self.out_dir,
                    label=self.options.archive_label,
                    policy=self.options.conflict_policy,
                    compress_level=self.options.compress_level,
                    release_sources=self.options.release_after_export,
                )
            else:
                path = save_list(self.results, self.status, self.out_dir)
            self.finished.emit(str(path))
        except RenamerError as e:
            self.error.emit(str(e))
