# Copyright (C) 2025
# Sample Buddy GUI Application Entry Point
"""
Main application entry point for the Sample Buddy window.

This module provides the application setup and initialization,
including logging, theme application and database loading.
"""

import argparse
import logging
import sys

from PySide6.QtWidgets import QApplication, QMessageBox

from GUI.theme import apply_theme

logger = logging.getLogger(__name__)


def create_app(argv=None) -> QApplication:
    """Create and configure the QApplication instance.

    Returns:
        Configured QApplication instance with theme applied.
    """
    app = QApplication.instance() or QApplication(argv if argv is not None else sys.argv)
    app.setApplicationName("Sample Buddy")
    app.setOrganizationName("Sample Buddy")

    apply_theme(app)

    return app


def main():
    """Main entry point for the Sample Buddy GUI application."""
    parser = argparse.ArgumentParser(description="Sample Buddy desktop application")
    parser.add_argument('--database', default=None, help='Database URL')
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable debug logging')
    args, qt_args = parser.parse_known_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    app = create_app([sys.argv[0]] + qt_args)

    from database.session import init_db
    from samplebuddy.inventory.exceptions import SnapshotError
    from samplebuddy.manager import SampleManager
    from GUI.windows.archiving_window import ArchivingWindow

    db = init_db(args.database)
    try:
        manager = SampleManager(db=db)
    except SnapshotError as e:
        logger.error(f"Saved data could not be loaded: {e}")
        QMessageBox.critical(None, "Sample Buddy", f"Saved data could not be loaded:\n{e.message}")
        sys.exit(1)

    main_window = ArchivingWindow(manager)
    main_window.show()

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
