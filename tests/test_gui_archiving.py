"""
Sample Buddy GUI Tests

Tests for the archiving window. Uses pytest-qt for Qt widget testing.
"""

import os
import pytest

# Configure Qt API before importing any Qt modules
os.environ.setdefault('QT_API', 'pyside6')
os.environ.setdefault('QT_QPA_PLATFORM', 'offscreen')

# Skip entire module if PySide6 is not available
pytest.importorskip("PySide6", reason="PySide6 not installed")

from PySide6.QtCore import Qt
from PySide6.QtWidgets import QApplication

from samplebuddy.inventory.models import ItemStatus
from samplebuddy.inventory.workflow import ArchivingStep


pytestmark = pytest.mark.gui


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture(scope="session")
def qapp():
    """Create the QApplication instance for the test session."""
    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    yield app


@pytest.fixture
def window(qapp, qtbot, manager):
    from GUI.windows.archiving_window import ArchivingWindow
    window = ArchivingWindow(manager, prompt_login=False)
    qtbot.addWidget(window)
    return window


def _scan(qtbot, window, code):
    window.scan_input.setText(code)
    qtbot.keyClick(window.scan_input, Qt.Key.Key_Return)


# =============================================================================
# Tests
# =============================================================================

class TestArchivingWindow:

    def test_initial_state(self, window):
        assert window.windowTitle() == "Sample Buddy"
        assert window.status_panel.next_label.text() == "Scan a shelf"
        assert window.operator_label.text() == "Operator: Mario"

    def test_scan_cycle_updates_panel(self, qtbot, window, manager):
        _scan(qtbot, window, "SC-01")
        assert window.scan_input.text() == ""
        assert window.status_panel.shelf_label.text() == "Shelf: SC-01"
        assert manager.archiving_status().step == ArchivingStep.BOX

        _scan(qtbot, window, "CA-01")
        _scan(qtbot, window, "2501234-001")

        assert window.scan_message.text() == "Sample 2501234-001 TQ archived"
        assert window.status_panel.next_label.text() == "Scan a shelf"
        assert window.log_table.item(0, 2).text() == "CAMPIONE_ARCHIVIATO"

    def test_rejected_scan_shows_error(self, qtbot, window):
        _scan(qtbot, window, "2501234-001")
        assert "Scan a shelf and a box first" in window.scan_message.text()

    def test_reset_button(self, qtbot, window, manager):
        _scan(qtbot, window, "SC-01")
        qtbot.mouseClick(window.status_panel.reset_button, Qt.MouseButton.LeftButton)
        assert manager.archiving_status().step == ArchivingStep.SHELF
        assert window.status_panel.shelf_label.text() == "Shelf: -"

    def test_print_log_preview(self, window):
        window.print_log()
        assert window.log_preview.toPlainText().startswith("SAMPLE MANAGEMENT ACTIVITY LOG")

    def test_export_log_csv(self, window, tmp_path):
        path = tmp_path / "log.csv"
        window.export_log_csv(str(path))
        assert path.exists()


class TestSearchTab:

    def test_search_and_dispose(self, qtbot, window, manager):
        for code in ["SC-01", "CA-01", "2501234-001"]:
            _scan(qtbot, window, code)

        tab = window.search_tab
        tab.search_input.setText("2501234")
        tab.run_search()
        codes = [tab.results.item(row, 0).text() for row in range(tab.results.rowCount())]
        assert "2501234-001 TQ" in codes

        tab.results.selectRow(codes.index("2501234-001 TQ"))
        tab.dispose_selected()

        sample = next(iter(manager.get_state().samples.values()))
        assert sample.status == ItemStatus.DISPOSED
        assert tab.message_label.text() == "1 items disposed"

    def test_delete_with_wrong_password(self, qtbot, window, manager):
        for code in ["SC-01", "CA-01", "2501234-001"]:
            _scan(qtbot, window, code)

        tab = window.search_tab
        tab.search_input.setText("SC-01")
        tab.run_search()
        tab.results.selectRow(0)
        tab.delete_selected(password="wrong")

        assert tab.message_label.text() == "Incorrect password"
        assert all(s.status == ItemStatus.ACTIVE for s in manager.get_state().shelves.values())
