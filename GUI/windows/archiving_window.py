# Copyright (C) 2025
# Archiving Window for Sample Buddy
from __future__ import annotations

import logging
from typing import Optional, List

from PySide6.QtCore import Qt, Signal
from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QFrame, QLabel, QPushButton,
    QMainWindow, QComboBox, QLineEdit, QTableWidget, QTableWidgetItem,
    QHeaderView, QAbstractItemView, QTabWidget, QPlainTextEdit,
    QInputDialog, QFileDialog
)
from PySide6.QtGui import QColor, QBrush

from database.utils import export_logs_to_csv
from samplebuddy.inventory.models import ItemKind, ItemStatus, LogEntry, Selection
from samplebuddy.inventory.workflow import ArchivingStatus, ArchivingStep, STEP_ORDER
from samplebuddy.manager import SampleManager

from GUI.theme import Theme, get_status_color

logger = logging.getLogger(__name__)

STEP_TITLES = {
    ArchivingStep.SHELF: "1. Shelf",
    ArchivingStep.BOX: "2. Box",
    ArchivingStep.SAMPLE: "3. Sample",
}


class ArchivingStatusPanel(QFrame):
    """Step indicators plus the current shelf and box of the archiving cycle."""

    reset_requested = Signal()

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setFrameStyle(QFrame.Shape.StyledPanel | QFrame.Shadow.Raised)
        self.step_labels = {}
        self.init_ui()

    def init_ui(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(Theme.SPACING_MD, Theme.SPACING_MD, Theme.SPACING_MD, Theme.SPACING_MD)

        steps = QHBoxLayout()
        for step in STEP_ORDER:
            label = QLabel(STEP_TITLES[step])
            label.setAlignment(Qt.AlignmentFlag.AlignCenter)
            self.step_labels[step] = label
            steps.addWidget(label)
        layout.addLayout(steps)

        self.shelf_label = QLabel()
        self.box_label = QLabel()
        self.next_label = QLabel()
        self.next_label.setStyleSheet(Theme.title_label_style())
        layout.addWidget(self.shelf_label)
        layout.addWidget(self.box_label)
        layout.addWidget(self.next_label)

        self.reset_button = QPushButton("Reset cycle")
        self.reset_button.clicked.connect(self.reset_requested.emit)
        layout.addWidget(self.reset_button, alignment=Qt.AlignmentFlag.AlignRight)

    def update_status(self, status: ArchivingStatus):
        for step, label in self.step_labels.items():
            label.setStyleSheet(Theme.step_badge_style(status.step_state(step)))
        self.shelf_label.setText(f"Shelf: {status.current_shelf_code or '-'}")
        self.box_label.setText(f"Box: {status.current_box_code or '-'}")
        self.next_label.setText(f"Scan a {status.step.value}")


class ActivityLogTable(QTableWidget):
    """Read-only table of log entries, newest first."""

    COLUMNS = ["Date/time", "Operator", "Action", "Type", "Code", "Details"]

    def __init__(self, parent=None):
        super().__init__(0, len(self.COLUMNS), parent)
        self.setHorizontalHeaderLabels(self.COLUMNS)
        self.setEditTriggers(QAbstractItemView.EditTrigger.NoEditTriggers)
        self.setSelectionBehavior(QAbstractItemView.SelectionBehavior.SelectRows)
        self.setAlternatingRowColors(True)
        self.verticalHeader().setVisible(False)
        self.horizontalHeader().setSectionResizeMode(len(self.COLUMNS) - 1, QHeaderView.ResizeMode.Stretch)

    def set_logs(self, logs: List[LogEntry]):
        self.setRowCount(len(logs))
        for row, entry in enumerate(logs):
            values = [
                entry.timestamp.strftime('%d/%m/%Y %H:%M:%S'),
                entry.operator,
                entry.action,
                entry.item_type.value,
                entry.item_code,
                entry.details,
            ]
            for column, value in enumerate(values):
                self.setItem(row, column, QTableWidgetItem(value))


class SearchTab(QWidget):
    """Search by code and run bulk dispose / delete on the selected rows."""

    COLUMNS = ["Code", "Type", "Shelf", "Box", "Status"]

    def __init__(self, manager: SampleManager, parent=None):
        super().__init__(parent)
        self.manager = manager
        self.init_ui()

    def init_ui(self):
        layout = QVBoxLayout(self)

        controls = QHBoxLayout()
        self.search_input = QLineEdit()
        self.search_input.setPlaceholderText("Search shelves, boxes and samples...")
        self.search_input.returnPressed.connect(self.run_search)
        controls.addWidget(self.search_input)

        self.status_filter = QComboBox()
        self.status_filter.addItem("All", None)
        for status in ItemStatus:
            self.status_filter.addItem(status.value.title(), status)
        self.status_filter.currentIndexChanged.connect(self.run_search)
        controls.addWidget(self.status_filter)

        search_button = QPushButton("Search")
        search_button.clicked.connect(self.run_search)
        controls.addWidget(search_button)
        layout.addLayout(controls)

        self.results = QTableWidget(0, len(self.COLUMNS))
        self.results.setHorizontalHeaderLabels(self.COLUMNS)
        self.results.setEditTriggers(QAbstractItemView.EditTrigger.NoEditTriggers)
        self.results.setSelectionBehavior(QAbstractItemView.SelectionBehavior.SelectRows)
        self.results.setSelectionMode(QAbstractItemView.SelectionMode.ExtendedSelection)
        self.results.verticalHeader().setVisible(False)
        self.results.horizontalHeader().setSectionResizeMode(QHeaderView.ResizeMode.Stretch)
        layout.addWidget(self.results)

        actions = QHBoxLayout()
        actions.addStretch()
        self.dispose_button = QPushButton("Dispose selected")
        self.dispose_button.clicked.connect(self.dispose_selected)
        actions.addWidget(self.dispose_button)
        self.delete_button = QPushButton("Delete selected")
        self.delete_button.setStyleSheet(Theme.danger_button_style())
        self.delete_button.clicked.connect(lambda: self.delete_selected())
        actions.addWidget(self.delete_button)
        layout.addLayout(actions)

        self.message_label = QLabel()
        layout.addWidget(self.message_label)

    def _add_row(self, kind: ItemKind, item_id: str, values: List[str], status: ItemStatus):
        row = self.results.rowCount()
        self.results.insertRow(row)
        background = QBrush(QColor(get_status_color(status.value)))
        for column, value in enumerate(values):
            item = QTableWidgetItem(value)
            item.setBackground(background)
            if column == 0:
                item.setData(Qt.ItemDataRole.UserRole, (kind, item_id))
            self.results.setItem(row, column, item)

    def run_search(self):
        term = self.search_input.text().strip()
        self.results.setRowCount(0)
        if not term:
            return
        results = self.manager.search(term, self.status_filter.currentData())
        state = self.manager.get_state()

        for shelf in results.shelves:
            self._add_row(ItemKind.SHELF, shelf.id,
                          [shelf.code, "shelf", shelf.code, "", shelf.status.value], shelf.status)
            for box in state.iter_boxes(shelf):
                if term.lower() in box.code.lower():
                    self._add_row(ItemKind.BOX, box.id,
                                  [box.code, "box", shelf.code, box.code, box.status.value], box.status)
        for hit in results.samples:
            sample = hit.sample
            self._add_row(ItemKind.SAMPLE, sample.id,
                          [sample.code, sample.type.value, hit.shelf_code, hit.box_code, sample.status.value],
                          sample.status)

    def selection(self) -> Selection:
        selection = Selection()
        for index in self.results.selectionModel().selectedRows():
            kind, item_id = self.results.item(index.row(), 0).data(Qt.ItemDataRole.UserRole)
            {
                ItemKind.SHELF: selection.shelves,
                ItemKind.BOX: selection.boxes,
                ItemKind.SAMPLE: selection.samples,
            }[kind].append(item_id)
        return selection

    def _show_result(self, result: dict):
        if result['success']:
            self.message_label.setText(result['message'])
            self.message_label.setStyleSheet(f"color: {Theme.colors.accent_success};")
        else:
            self.message_label.setText(result['error'])
            self.message_label.setStyleSheet(f"color: {Theme.colors.accent_error};")
        self.run_search()

    def dispose_selected(self):
        selection = self.selection()
        if selection.is_empty():
            return
        self._show_result(self.manager.on_bulk_dispose(selection))

    def delete_selected(self, password: Optional[str] = None):
        selection = self.selection()
        if selection.is_empty():
            return
        if password is None:
            password, ok = QInputDialog.getText(
                self, "Delete", "Delete password:", QLineEdit.EchoMode.Password
            )
            if not ok:
                return
        self._show_result(self.manager.on_bulk_delete(selection, password))


class ArchivingWindow(QMainWindow):
    """
    Main window.

    Shows:
    - Barcode field driving the archiving cycle
    - Archiving status panel with reset
    - Search tab with bulk dispose / delete
    - Activity log with print preview and CSV export
    """

    def __init__(self, manager: SampleManager, prompt_login: bool = True, parent: Optional[QWidget] = None):
        super().__init__(parent)
        self.manager = manager
        self.manager.on_persist_error = self.show_persist_error

        self.init_ui()
        self.setWindowTitle("Sample Buddy")
        self.resize(1000, 700)

        if prompt_login and not self.manager.current_operator:
            self.prompt_login()
        self.refresh()

    def init_ui(self):
        self.tabs = QTabWidget()
        self.setCentralWidget(self.tabs)

        # Archiving tab
        archiving = QWidget()
        layout = QVBoxLayout(archiving)
        self.scan_input = QLineEdit()
        self.scan_input.setPlaceholderText("Scan or type a code and press Enter")
        self.scan_input.setStyleSheet(Theme.scan_input_style())
        self.scan_input.returnPressed.connect(self.submit_scan)
        layout.addWidget(self.scan_input)

        self.scan_message = QLabel()
        layout.addWidget(self.scan_message)

        self.status_panel = ArchivingStatusPanel()
        self.status_panel.reset_requested.connect(self.reset_archiving)
        layout.addWidget(self.status_panel)
        layout.addStretch()
        self.tabs.addTab(archiving, "Archiving")

        self.search_tab = SearchTab(self.manager)
        self.tabs.addTab(self.search_tab, "Search")

        # Log tab
        log_page = QWidget()
        log_layout = QVBoxLayout(log_page)
        self.log_table = ActivityLogTable()
        log_layout.addWidget(self.log_table)

        log_actions = QHBoxLayout()
        log_actions.addStretch()
        print_button = QPushButton("Print log")
        print_button.clicked.connect(self.print_log)
        log_actions.addWidget(print_button)
        csv_button = QPushButton("Export CSV...")
        csv_button.clicked.connect(lambda: self.export_log_csv())
        log_actions.addWidget(csv_button)
        log_layout.addLayout(log_actions)

        self.log_preview = QPlainTextEdit()
        self.log_preview.setReadOnly(True)
        self.log_preview.setStyleSheet(Theme.log_text_style())
        self.log_preview.setVisible(False)
        log_layout.addWidget(self.log_preview)
        self.tabs.addTab(log_page, "Log")

        self.operator_label = QLabel()
        self.statusBar().addPermanentWidget(self.operator_label)

    # ==================== Actions ====================

    def prompt_login(self):
        operator, ok = QInputDialog.getText(self, "Login", "Operator name:")
        if ok:
            self.login(operator)

    def login(self, operator: str) -> dict:
        result = self.manager.login(operator)
        if not result['success']:
            self.statusBar().showMessage(result['error'], 5000)
        self.refresh()
        return result

    def submit_scan(self):
        code = self.scan_input.text()
        self.scan_input.clear()
        result = self.manager.on_scan(code)
        if result['success']:
            self.scan_message.setText(result['message'])
            self.scan_message.setStyleSheet(f"color: {Theme.colors.accent_success};")
        else:
            self.scan_message.setText(result['error'])
            self.scan_message.setStyleSheet(f"color: {Theme.colors.accent_error};")
        self.refresh()

    def reset_archiving(self):
        self.manager.reset_archiving()
        self.scan_message.clear()
        self.refresh()

    def print_log(self):
        self.log_preview.setPlainText(self.manager.print_log())
        self.log_preview.setVisible(True)
        self.refresh()

    def export_log_csv(self, path: Optional[str] = None):
        if path is None:
            path, _ = QFileDialog.getSaveFileName(self, "Export log", "activity_log.csv", "CSV files (*.csv)")
            if not path:
                return
        export_logs_to_csv(self.manager.recent_logs(), path)
        self.statusBar().showMessage(f"Log exported to {path}", 5000)

    def show_persist_error(self, error: Exception):
        logger.error(f"Changes could not be saved: {error}")
        self.statusBar().showMessage(f"Changes could not be saved: {error}", 10000)

    def refresh(self):
        self.status_panel.update_status(self.manager.archiving_status())
        self.log_table.set_logs(self.manager.recent_logs())
        operator = self.manager.current_operator
        self.operator_label.setText(f"Operator: {operator}" if operator else "Not logged in")
