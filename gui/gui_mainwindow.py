"""
gui_mainwindow.py - GUI Main Window

Contains:
1. Mapping file selection and image drop zone
2. Results table with sorting, duplicate filter and exports
"""

import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

from PySide6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QGridLayout, QFrame,
    QLabel, QLineEdit, QPushButton, QTableWidget, QTableWidgetItem,
    QProgressBar, QFileDialog, QMessageBox, QHeaderView, QGroupBox,
    QSplitter, QListWidget, QListWidgetItem, QTextBrowser, QPlainTextEdit,
    QListView
)
from PySide6.QtCore import Qt, Slot, Signal, QObject, QSize
from PySide6.QtGui import QColor, QIcon, QPixmap

# Ensure core module can be imported
sys.path.insert(0, str(Path(__file__).parent.parent))

from core import (
    aggregate, sort_results, filter_duplicates,
    BatchReport, FileSession, ProcessOptions, RenameResult, RenameStatus, SortKey,
)
from .gui_workers import CollectWorker, ProcessWorker, ExportWorker

logger = logging.getLogger(__name__)

STATUS_COLORS = {
    RenameStatus.SUCCESS: QColor(39, 174, 96),
    RenameStatus.NO_MATCH: QColor(243, 156, 18),
    RenameStatus.INVALID_FORMAT: QColor(127, 140, 141),
    RenameStatus.ERROR: QColor(231, 76, 60),
}
DUPLICATE_BACKGROUND = QColor(243, 229, 245)
DUPLICATE_FOREGROUND = QColor(155, 89, 182)

IMAGE_FILTER = "Images (*.jpg *.jpeg *.png *.gif *.webp *.bmp *.tif *.tiff);;All files (*)"
PREVIEW_LIMIT = 200

INSTRUCTIONS_HTML = """
<h3>How to use</h3>
<ol>
<li><b>Mapping file.</b> Prepare a .txt or .csv file with two tab-separated
columns: ID and article number. The first line is a header and is ignored.</li>
<li><b>Images.</b> Drag photos or whole folders into the drop area, or click it
to choose files. Names look like <code>ARTICLE.jpg</code> or
<code>ARTICLE-2.jpg</code> for additional photos.</li>
<li><b>Rename.</b> Each image becomes <code>ID_N.ext</code>, where N is the
photo number (1 when the name has none).</li>
<li><b>Download.</b> Save the archive of renamed files, or lists of files per
result category.</li>
</ol>
"""

# Table column -> sort key
COLUMN_SORT_KEYS = {
    1: SortKey.STATUS,
    2: SortKey.OLD_NAME,
    3: SortKey.NEW_NAME,
    4: SortKey.TIMESTAMP,
    5: SortKey.DUPLICATE,
}


class _LogEmitter(QObject):
    message = Signal(str)


class QtLogHandler(logging.Handler):
    """Forwards log records to the GUI thread through a signal"""

    def __init__(self):
        super().__init__()
        self.emitter = _LogEmitter()

    def emit(self, record: logging.LogRecord) -> None:
        self.emitter.message.emit(self.format(record))


class DropZone(QFrame):
    """Accepts dragged files and folders; click to browse"""

    paths_dropped = Signal(list)

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setAcceptDrops(True)
        self.setFrameShape(QFrame.Shape.StyledPanel)
        self.setMinimumHeight(110)
        self._set_active(False)

        layout = QVBoxLayout(self)
        self.label = QLabel("Drag files or folders here, or click to select")
        self.label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        hint = QLabel("Supported: JPG, PNG, GIF, WebP")
        hint.setAlignment(Qt.AlignmentFlag.AlignCenter)
        hint.setStyleSheet("color: #7f8c8d;")
        layout.addWidget(self.label)
        layout.addWidget(hint)

    def _set_active(self, active: bool):
        color = "#3498db" if active else "#bdc3c7"
        background = "#ebf5fb" if active else "transparent"
        self.setStyleSheet(f"DropZone {{ border: 2px dashed {color}; border-radius: 8px; background: {background}; }}")

    def dragEnterEvent(self, event):
        if event.mimeData().hasUrls():
            self._set_active(True)
            event.acceptProposedAction()

    def dragLeaveEvent(self, event):
        self._set_active(False)

    def dropEvent(self, event):
        self._set_active(False)
        paths = [Path(url.toLocalFile()) for url in event.mimeData().urls() if url.isLocalFile()]
        if paths:
            self.paths_dropped.emit(paths)
        event.acceptProposedAction()

    def mousePressEvent(self, event):
        files, _ = QFileDialog.getOpenFileNames(self, "Select Images", "", IMAGE_FILTER)
        if files:
            self.paths_dropped.emit([Path(f) for f in files])


class MainWindow(QMainWindow):
    """Main window"""

    def __init__(self):
        super().__init__()
        self.setWindowTitle("Image Batch Renamer")
        self.setMinimumSize(1000, 700)

        self.options = ProcessOptions()
        self.session = FileSession()
        self.results: List[RenameResult] = []
        self.report: Optional[BatchReport] = None
        self.sort_key = SortKey.TIMESTAMP
        self.sort_reverse = True
        self.duplicates_only = False

        self.collect_worker: Optional[CollectWorker] = None
        self.process_worker: Optional[ProcessWorker] = None
        self.export_worker: Optional[ExportWorker] = None

        self._init_ui()
        self._init_logging()
        self.statusBar().showMessage("Ready")

    def _init_ui(self):
        central = QWidget()
        self.setCentralWidget(central)
        layout = QVBoxLayout(central)

        # Header with instructions toggle
        header = QHBoxLayout()
        title = QLabel("Image Renaming")
        title.setStyleSheet("font-size: 18px; font-weight: bold; color: #2c3e50;")
        header.addWidget(title)
        header.addStretch()
        self.instructions_btn = QPushButton("Show Instructions")
        self.instructions_btn.clicked.connect(self._toggle_instructions)
        header.addWidget(self.instructions_btn)
        layout.addLayout(header)

        self.instructions = QTextBrowser()
        self.instructions.setHtml(INSTRUCTIONS_HTML)
        self.instructions.setMaximumHeight(170)
        self.instructions.setVisible(False)
        layout.addWidget(self.instructions)

        splitter = QSplitter(Qt.Orientation.Horizontal)
        splitter.addWidget(self._build_input_panel())
        splitter.addWidget(self._build_results_panel())
        splitter.setStretchFactor(1, 2)
        layout.addWidget(splitter, 1)

    def _build_input_panel(self) -> QWidget:
        panel = QWidget()
        layout = QVBoxLayout(panel)

        # Mapping file group
        mapping_group = QGroupBox("Mapping File")
        mapping_layout = QGridLayout(mapping_group)
        self.mapping_edit = QLineEdit()
        self.mapping_edit.setPlaceholderText("Select .txt or .csv mapping file...")
        mapping_layout.addWidget(self.mapping_edit, 0, 0)
        browse_btn = QPushButton("Browse...")
        browse_btn.clicked.connect(self._browse_mapping)
        mapping_layout.addWidget(browse_btn, 0, 1)
        hint = QLabel("Tab-separated: ID, article number (first row is a header)")
        hint.setStyleSheet("color: #7f8c8d;")
        mapping_layout.addWidget(hint, 1, 0, 1, 2)
        layout.addWidget(mapping_group)

        # Images group
        images_group = QGroupBox("Images")
        images_layout = QVBoxLayout(images_group)
        self.drop_zone = DropZone()
        self.drop_zone.paths_dropped.connect(self._add_paths)
        images_layout.addWidget(self.drop_zone)

        row = QHBoxLayout()
        self.selected_label = QLabel("")
        row.addWidget(self.selected_label, 1)
        add_folder_btn = QPushButton("Add Folder...")
        add_folder_btn.clicked.connect(self._browse_folder)
        row.addWidget(add_folder_btn)
        self.preview_btn = QPushButton("Show Previews")
        self.preview_btn.setEnabled(False)
        self.preview_btn.clicked.connect(self._toggle_previews)
        row.addWidget(self.preview_btn)
        self.clear_btn = QPushButton("Clear")
        self.clear_btn.clicked.connect(self._clear_files)
        row.addWidget(self.clear_btn)
        images_layout.addLayout(row)

        self.preview_list = QListWidget()
        self.preview_list.setViewMode(QListView.ViewMode.IconMode)
        self.preview_list.setIconSize(QSize(96, 96))
        self.preview_list.setResizeMode(QListView.ResizeMode.Adjust)
        self.preview_list.setVisible(False)
        images_layout.addWidget(self.preview_list, 1)
        layout.addWidget(images_group, 1)

        # Process
        bottom = QHBoxLayout()
        self.progress_bar = QProgressBar()
        self.progress_bar.setVisible(False)
        bottom.addWidget(self.progress_bar, 1)
        self.cancel_btn = QPushButton("Cancel")
        self.cancel_btn.setVisible(False)
        self.cancel_btn.clicked.connect(self._cancel_process)
        bottom.addWidget(self.cancel_btn)
        self.process_btn = QPushButton("Rename")
        self.process_btn.clicked.connect(self._do_process)
        self.process_btn.setStyleSheet("QPushButton { background-color: #3498db; color: white; font-weight: bold; padding: 8px 16px; }")
        bottom.addWidget(self.process_btn)
        layout.addLayout(bottom)

        self.log_view = QPlainTextEdit()
        self.log_view.setReadOnly(True)
        self.log_view.setMaximumHeight(90)
        layout.addWidget(self.log_view)

        self._update_selected_label()
        return panel

    def _build_results_panel(self) -> QWidget:
        group = QGroupBox("Results")
        layout = QVBoxLayout(group)

        self.stats_label = QLabel("")
        layout.addWidget(self.stats_label)

        buttons = QHBoxLayout()
        self.duplicates_btn = QPushButton("Show Duplicates")
        self.duplicates_btn.clicked.connect(self._toggle_duplicates)
        buttons.addWidget(self.duplicates_btn)
        self.archive_btn = QPushButton("Download Files")
        self.archive_btn.clicked.connect(lambda: self._do_export(None))
        buttons.addWidget(self.archive_btn)

        self.list_buttons: Dict[RenameStatus, QPushButton] = {}
        list_labels = {
            RenameStatus.SUCCESS: "Successful List",
            RenameStatus.NO_MATCH: "Not Found List",
            RenameStatus.INVALID_FORMAT: "Not Images List",
            RenameStatus.ERROR: "Errors List",
        }
        for status, text in list_labels.items():
            btn = QPushButton(text)
            btn.clicked.connect(lambda checked=False, s=status: self._do_export(s))
            buttons.addWidget(btn)
            self.list_buttons[status] = btn
        buttons.addStretch()
        layout.addLayout(buttons)

        self.table = QTableWidget()
        self.table.setColumnCount(6)
        self.table.setHorizontalHeaderLabels(["#", "Status", "Original Name", "New Name", "Time", "Duplicates"])
        header = self.table.horizontalHeader()
        header.setSectionResizeMode(0, QHeaderView.ResizeMode.ResizeToContents)
        header.setSectionResizeMode(1, QHeaderView.ResizeMode.ResizeToContents)
        header.setSectionResizeMode(2, QHeaderView.ResizeMode.Stretch)
        header.setSectionResizeMode(3, QHeaderView.ResizeMode.Stretch)
        header.setSectionResizeMode(4, QHeaderView.ResizeMode.ResizeToContents)
        header.setSectionResizeMode(5, QHeaderView.ResizeMode.ResizeToContents)
        header.setSectionsClickable(True)
        header.sectionClicked.connect(self._on_header_clicked)
        self.table.verticalHeader().setVisible(False)
        self.table.setEditTriggers(QTableWidget.EditTrigger.NoEditTriggers)
        self.table.setSelectionBehavior(QTableWidget.SelectionBehavior.SelectRows)
        layout.addWidget(self.table, 1)

        self._update_result_controls()
        return group

    def _init_logging(self):
        self.log_handler = QtLogHandler()
        self.log_handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s: %(message)s", "%H:%M:%S"))
        self.log_handler.setLevel(logging.INFO)
        self.log_handler.emitter.message.connect(self.log_view.appendPlainText)
        logging.getLogger().addHandler(self.log_handler)
        if logging.getLogger().level > logging.INFO:
            logging.getLogger().setLevel(logging.INFO)

    # Inputs

    def _toggle_instructions(self):
        visible = not self.instructions.isVisible()
        self.instructions.setVisible(visible)
        self.instructions_btn.setText("Hide Instructions" if visible else "Show Instructions")

    def _browse_mapping(self):
        path, _ = QFileDialog.getOpenFileName(self, "Select Mapping File", "", "Mapping files (*.txt *.csv)")
        if path:
            self.mapping_edit.setText(path)

    def _browse_folder(self):
        directory = QFileDialog.getExistingDirectory(self, "Select Folder")
        if directory:
            self._add_paths([Path(directory)])

    @Slot(list)
    def _add_paths(self, paths: List[Path]):
        if self.collect_worker is not None and self.collect_worker.isRunning():
            return
        self.statusBar().showMessage("Collecting files...")
        self.collect_worker = CollectWorker(paths, self.options, already_selected=len(self.session))
        self.collect_worker.progress.connect(self._on_collect_progress)
        self.collect_worker.finished.connect(self._on_collect_finished)
        self.collect_worker.error.connect(self._on_collect_error)
        self.collect_worker.start()

    @Slot(str)
    def _on_collect_progress(self, msg: str):
        self.statusBar().showMessage(msg[-80:] if len(msg) > 80 else msg)

    @Slot(object)
    def _on_collect_finished(self, collected):
        self.session.add(collected.files)
        self._update_selected_label()
        if self.preview_list.isVisible():
            self._load_previews()
        self.statusBar().showMessage(f"Added {len(collected.files)} files")
        if collected.rejected:
            QMessageBox.warning(self, "Warning", collected.rejected[0])

    @Slot(str)
    def _on_collect_error(self, error: str):
        self.statusBar().showMessage("Ready")
        QMessageBox.critical(self, "Error", f"Failed to add files: {error}")

    def _update_selected_label(self):
        count = len(self.session)
        self.selected_label.setText(f"Selected {count} of {self.options.max_files} files")
        if hasattr(self, "preview_btn"):
            self.preview_btn.setEnabled(count > 0)

    def _toggle_previews(self):
        visible = not self.preview_list.isVisible()
        self.preview_list.setVisible(visible)
        self.preview_btn.setText("Hide Previews" if visible else "Show Previews")
        if visible:
            self._load_previews()

    def _load_previews(self):
        self.preview_list.clear()
        for f in self.session.files[:PREVIEW_LIMIT]:
            item = QListWidgetItem(f.name)
            path = getattr(f.source, "path", None)
            if path is not None:
                pixmap = QPixmap(str(path))
                if not pixmap.isNull():
                    item.setIcon(QIcon(pixmap.scaled(
                        96, 96,
                        Qt.AspectRatioMode.KeepAspectRatio,
                        Qt.TransformationMode.SmoothTransformation,
                    )))
            self.preview_list.addItem(item)

    def _clear_files(self):
        if self.process_worker is not None and self.process_worker.isRunning():
            return
        if self.export_worker is not None and self.export_worker.isRunning():
            QMessageBox.information(self, "Export Running", "Wait for the export to finish before clearing")
            return
        released = self.session.clear()
        logger.info("Selection cleared, released %d files", released)
        self.preview_list.clear()
        self.results = []
        self.report = None
        self._update_selected_label()
        self._refresh_table()

    # Processing

    def _do_process(self):
        mapping_path = self.mapping_edit.text().strip()
        if not mapping_path or not len(self.session):
            QMessageBox.warning(self, "Warning", "Please select the files to rename and a mapping file")
            return
        if not Path(mapping_path).is_file():
            QMessageBox.warning(self, "Warning", f"Mapping file does not exist: {mapping_path}")
            return

        self.process_btn.setEnabled(False)
        self.process_btn.setText("Processing...")
        self.clear_btn.setEnabled(False)
        self.cancel_btn.setVisible(True)
        self.progress_bar.setVisible(True)
        self.progress_bar.setRange(0, len(self.session))
        self.progress_bar.setValue(0)

        self.process_worker = ProcessWorker(list(self.session.files), Path(mapping_path), self.options)
        self.process_worker.progress.connect(self._on_process_progress)
        self.process_worker.finished.connect(self._on_process_finished)
        self.process_worker.cancelled.connect(self._on_process_cancelled)
        self.process_worker.error.connect(self._on_process_error)
        self.process_worker.start()

    def _cancel_process(self):
        if self.process_worker is not None:
            self.process_worker.cancel()

    def _reset_process_controls(self):
        self.process_btn.setEnabled(True)
        self.process_btn.setText("Rename")
        self.clear_btn.setEnabled(True)
        self.cancel_btn.setVisible(False)
        self.progress_bar.setVisible(False)

    @Slot(int, int, str)
    def _on_process_progress(self, current: int, total: int, msg: str):
        self.progress_bar.setValue(current)
        self.statusBar().showMessage(msg)

    @Slot(object)
    def _on_process_finished(self, payload):
        mapping, results = payload
        self._reset_process_controls()
        self.results = results
        self.report = aggregate(results)
        self.duplicates_only = False
        self._refresh_table()
        msg = f"Processed {len(results)} files"
        if mapping.skipped_rows:
            msg += f" ({mapping.skipped_rows} mapping rows skipped)"
        self.statusBar().showMessage(msg)

    @Slot()
    def _on_process_cancelled(self):
        self._reset_process_controls()
        self.statusBar().showMessage("Processing cancelled")

    @Slot(str)
    def _on_process_error(self, error: str):
        self._reset_process_controls()
        QMessageBox.critical(self, "Error", f"Failed to process files: {error}")

    # Results

    def _on_header_clicked(self, column: int):
        sort_key = COLUMN_SORT_KEYS.get(column)
        if sort_key is None:
            return
        if sort_key == self.sort_key:
            self.sort_reverse = not self.sort_reverse
        else:
            self.sort_key = sort_key
            self.sort_reverse = False
        self._refresh_table()

    def _toggle_duplicates(self):
        self.duplicates_only = not self.duplicates_only
        self._refresh_table()

    def _update_result_controls(self):
        report = self.report
        has_results = report is not None and report.total > 0
        duplicates = report.duplicate_names if report else 0

        self.duplicates_btn.setVisible(duplicates > 0)
        self.duplicates_btn.setText("Show All" if self.duplicates_only else "Show Duplicates")
        self.archive_btn.setVisible(has_results and report.count(RenameStatus.SUCCESS) > 0)
        for status, btn in self.list_buttons.items():
            btn.setVisible(has_results and report.count(status) > 0)
        self.table.setColumnHidden(5, duplicates == 0)

        if not has_results:
            self.stats_label.setText("")
            return
        parts = [f"{report.count(RenameStatus.SUCCESS)} successful"]
        if report.count(RenameStatus.NO_MATCH):
            parts.append(f"{report.count(RenameStatus.NO_MATCH)} not found")
        if report.count(RenameStatus.INVALID_FORMAT):
            parts.append(f"{report.count(RenameStatus.INVALID_FORMAT)} not images")
        if report.count(RenameStatus.ERROR):
            parts.append(f"{report.count(RenameStatus.ERROR)} errors")
        if duplicates:
            parts.append(f"{duplicates} {'duplicate' if duplicates == 1 else 'duplicates'}")
        self.stats_label.setText(", ".join(parts))

    def _refresh_table(self):
        self._update_result_controls()
        if self.report is None:
            self.table.setRowCount(0)
            return

        rows = filter_duplicates(self.results, self.report) if self.duplicates_only else self.results
        rows = sort_results(rows, self.sort_key, reverse=self.sort_reverse, report=self.report)

        self.table.setRowCount(len(rows))
        for i, r in enumerate(rows):
            dup = self.report.duplicate_count(r)

            status_item = QTableWidgetItem(r.status.label)
            status_item.setForeground(STATUS_COLORS[r.status])
            new_item = QTableWidgetItem(r.new_name if r.is_success else (r.message or ""))
            if not r.is_success:
                new_item.setForeground(QColor(127, 140, 141))
            time_text = r.timestamp.astimezone().strftime("%H:%M:%S") if r.timestamp else ""
            dup_item = QTableWidgetItem(f"{dup}x" if dup > 1 else "")
            dup_item.setForeground(DUPLICATE_FOREGROUND)

            items = [
                QTableWidgetItem(str(i + 1)),
                status_item,
                QTableWidgetItem(r.old_name),
                new_item,
                QTableWidgetItem(time_text),
                dup_item,
            ]
            for col, item in enumerate(items):
                if dup > 1:
                    item.setBackground(DUPLICATE_BACKGROUND)
                self.table.setItem(i, col, item)

    # Exports

    def _do_export(self, status: Optional[RenameStatus]):
        if not self.results:
            return
        if status is not None and self.report.count(status) == 0:
            QMessageBox.warning(self, "Warning", f"No files with status: {status.label}")
            return
        if self.export_worker is not None and self.export_worker.isRunning():
            return

        directory = QFileDialog.getExistingDirectory(self, "Select Output Directory")
        if not directory:
            return

        self.statusBar().showMessage("Exporting...")
        self.export_worker = ExportWorker(self.results, Path(directory), self.options, status=status)
        self.export_worker.finished.connect(self._on_export_finished)
        self.export_worker.error.connect(self._on_export_error)
        self.export_worker.start()

    @Slot(str)
    def _on_export_finished(self, path: str):
        self.statusBar().showMessage(f"Saved {path}")
        QMessageBox.information(self, "Complete", f"Saved:\n{path}")

    @Slot(str)
    def _on_export_error(self, error: str):
        self.statusBar().showMessage("Export failed")
        QMessageBox.critical(self, "Error", f"Export failed: {error}")

    def closeEvent(self, event):
        if self.process_worker is not None and self.process_worker.isRunning():
            self.process_worker.cancel()
            self.process_worker.wait()
        if self.export_worker is not None and self.export_worker.isRunning():
            self.export_worker.wait()
        self.session.close()
        logging.getLogger().removeHandler(self.log_handler)
        super().closeEvent(event)
