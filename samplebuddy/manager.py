"""
Sample Buddy Manager
====================
Application facade used by the desktop window and the command line.

Wires the inventory store, the archiving workflow, the persistence gateway and
the delete-password authenticator together. Every ``on_*`` operation returns a
result dict and writes the new snapshot after a successful mutation:

    {'success': True, 'message': ..., 'saved': True, ...}
    {'success': False, 'error': ..., 'code': 'DuplicateSample'}

Rejected operations leave the state unchanged and are never persisted.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

from database.auth import PasswordAuthenticator
from database.persistence import PersistenceGateway
from database.session import DatabaseManager
from samplebuddy.inventory.audit import AuditAction
from samplebuddy.inventory.exceptions import InventoryError, SnapshotError
from samplebuddy.inventory.models import (
    AppState, ItemKind, ItemStatus, Selection, new_id
)
from samplebuddy.inventory.search import SearchResults, build_report, format_log, search
from samplebuddy.inventory.store import InventoryStore
from samplebuddy.inventory.workflow import ArchivingStatus, ArchivingWorkflow

logger = logging.getLogger(__name__)


class SampleManager:
    """
    Single entry point for everything an operator can do.

    Usage:
        manager = SampleManager(db=DatabaseManager("sqlite:///:memory:"))
        manager.login("Mario")
        manager.on_scan("SC-01")
        manager.on_scan("CA-01")
        result = manager.on_scan("2501234-001")
        # result['event'].code == "2501234-001 TQ"
    """

    def __init__(
        self,
        db: Optional[DatabaseManager] = None,
        gateway: Optional[PersistenceGateway] = None,
        authenticator=None,
        clock: Callable[[], datetime] = datetime.now,
        id_factory: Callable[[], str] = new_id,
        backup_dir: Optional[Union[str, Path]] = None,
        on_persist_error: Optional[Callable[[Exception], None]] = None,
    ):
        """
        Args:
            db: Database for the default gateway. Ignored when ``gateway`` is given.
            gateway: Persistence gateway. Built from ``db`` if None.
            authenticator: Delete-password checker. Defaults to a
                ``PasswordAuthenticator`` over the gateway.
            clock: Current time for entities, log entries and reports.
            id_factory: New unique ids.
            backup_dir: Import backup directory for the default gateway.
            on_persist_error: Called with the exception when a save fails.

        Raises:
            SnapshotError: The saved state cannot be read.
        """
        self.on_persist_error = on_persist_error
        if gateway is None:
            gateway = PersistenceGateway(db=db, backup_dir=backup_dir)
        if gateway.on_error is None:
            gateway.on_error = self._report_persist_error
        self.gateway = gateway
        self.authenticator = authenticator or PasswordAuthenticator(gateway)
        self._clock = clock

        self.store = InventoryStore(
            state=gateway.load(),
            clock=clock,
            id_factory=id_factory,
            authenticator=self.authenticator,
        )
        self.workflow = ArchivingWorkflow()

    # ==================== Helpers ====================

    def _report_persist_error(self, error: Exception):
        if self.on_persist_error is not None:
            self.on_persist_error(error)

    def _persist(self) -> bool:
        return self.gateway.save(self.store.state)

    def _ok(self, message: str, **extra) -> Dict[str, Any]:
        result = {'success': True, 'message': message, 'saved': self._persist()}
        result.update(extra)
        return result

    @staticmethod
    def _fail(error: Union[InventoryError, str], code: Optional[str] = None) -> Dict[str, Any]:
        if isinstance(error, InventoryError):
            logger.warning(f"Operation rejected: {error}")
            return {'success': False, 'error': error.message, 'code': error.code}
        logger.warning(f"Operation rejected: [{code}] {error}")
        return {'success': False, 'error': error, 'code': code}

    @property
    def current_operator(self) -> Optional[str]:
        return self.store.state.current_operator

    def get_state(self) -> AppState:
        """Current snapshot for rendering, search and reports. Do not modify."""
        return self.store.state

    # ==================== Session ====================

    def login(self, operator: str) -> Dict[str, Any]:
        operator = (operator or "").strip()
        if not operator:
            return self._fail("Enter the operator name", 'InvalidOperator')
        self.store.login(operator)
        return self._ok(f"Welcome, {operator}")

    def logout(self) -> Dict[str, Any]:
        operator = self.current_operator
        if operator is None:
            return self._fail("Nobody is logged in", 'NotLoggedIn')
        self.store.logout()
        self.workflow.reset()
        return self._ok(f"Goodbye, {operator}")

    # ==================== Archiving ====================

    def archiving_status(self) -> ArchivingStatus:
        return self.workflow.snapshot()

    def reset_archiving(self) -> ArchivingStatus:
        logger.debug("Archiving cycle reset")
        return self.workflow.reset()

    def on_scan(self, code: str) -> Dict[str, Any]:
        """
        Handle a scanned barcode.

        The code is classified against the current archiving step and handed
        to the store with the current shelf/box context. The cursor only moves
        when the store accepts the scan.
        """
        code = (code or "").strip()
        if not code:
            return self._fail("Empty code", 'InvalidCode')

        kind = self.workflow.classify(code)
        try:
            event = self.store.scan(
                code,
                current_shelf_code=self.workflow.current_shelf_code,
                current_box_code=self.workflow.current_box_code,
                kind=kind,
            )
        except InventoryError as e:
            return self._fail(e)

        status = self.workflow.advance(kind, code)
        if kind == ItemKind.SAMPLE:
            message = f"Sample {event.code} archived"
        elif event.created:
            message = f"{kind.value.title()} {code} created"
        else:
            message = f"{kind.value.title()} {code} selected"
        return self._ok(message, event=event, status=status)

    # ==================== Manual creation ====================

    def on_create_shelf(self, code: str) -> Dict[str, Any]:
        code = (code or "").strip()
        if not code:
            return self._fail("Enter the shelf code", 'InvalidCode')
        try:
            shelf = self.store.create_shelf(code)
        except InventoryError as e:
            return self._fail(e)
        return self._ok(f"Shelf {code} created", shelf=shelf)

    def on_create_box(self, shelf_code: str, box_code: str) -> Dict[str, Any]:
        box_code = (box_code or "").strip()
        if not box_code:
            return self._fail("Enter the box code", 'InvalidCode')
        try:
            box = self.store.create_box(shelf_code, box_code)
        except InventoryError as e:
            return self._fail(e)
        return self._ok(f"Box {box_code} created in shelf {shelf_code}", box=box)

    def on_create_sample(self, shelf_code: str, box_code: str, sample_code: str) -> Dict[str, Any]:
        sample_code = (sample_code or "").strip()
        if not sample_code:
            return self._fail("Enter the sample code", 'InvalidCode')
        try:
            sample = self.store.create_sample(shelf_code, box_code, sample_code)
        except InventoryError as e:
            return self._fail(e)
        return self._ok(f"Sample {sample.code} created", sample=sample)

    # ==================== Edit ====================

    def on_rename(self, kind: Union[ItemKind, str], item_id: str, new_code: str) -> Dict[str, Any]:
        new_code = (new_code or "").strip()
        if not new_code:
            return self._fail("Enter the new code", 'InvalidCode')
        try:
            item = self.store.rename(kind, item_id, new_code)
        except InventoryError as e:
            return self._fail(e)
        return self._ok(f"Renamed to {new_code}", item=item)

    def on_move(self, kind: Union[ItemKind, str], item_id: str, target_parent_id: str) -> Dict[str, Any]:
        try:
            item = self.store.move(kind, item_id, target_parent_id)
        except InventoryError as e:
            return self._fail(e)
        except ValueError as e:
            return self._fail(str(e), 'InvalidMove')
        return self._ok(f"{item.code} moved", item=item)

    # ==================== Bulk operations ====================

    def on_bulk_dispose(self, selection: Union[Selection, dict]) -> Dict[str, Any]:
        result = self.store.bulk_dispose(selection)
        return self._ok(f"{result.count} items disposed", result=result)

    def on_bulk_delete(self, selection: Union[Selection, dict], password: str) -> Dict[str, Any]:
        try:
            result = self.store.bulk_delete(selection, password)
        except InventoryError as e:
            return self._fail(e)
        return self._ok(f"{result.count} items deleted", result=result)

    # ==================== Settings ====================

    def change_password(self, old_password: str, new_password: str, confirm_password: str) -> Dict[str, Any]:
        if new_password != confirm_password:
            return self._fail("The new passwords do not match", 'PasswordMismatch')
        outcome = self.authenticator.change_password(old_password, new_password)
        if not outcome['success']:
            return self._fail(outcome['error'], outcome.get('code'))
        self.store.record(AuditAction.PASSWORD_CHANGED, "Delete password changed")
        return self._ok("Password changed")

    def update_printer_settings(
        self,
        default_width: float,
        default_height: float,
        selected_printer: str = "",
    ) -> Dict[str, Any]:
        if default_width <= 0 or default_height <= 0:
            return self._fail("Label size must be positive", 'InvalidSettings')
        self.store.update_printer_settings(default_width, default_height, selected_printer)
        return self._ok("Printer settings saved")

    # ==================== Export / import ====================

    def export_database(self, path: Union[str, Path]) -> Dict[str, Any]:
        try:
            written = self.gateway.export_to(path)
        except OSError as e:
            logger.error(f"Export to {path} failed: {e}")
            return self._fail(f"Export failed: {e}", 'IOError')
        self.store.record(AuditAction.DATABASE_EXPORTED,
                          f"Database exported to {written.name}", ItemKind.SHELF, "")
        return self._ok(f"Database exported to {written}", path=written)

    def import_database(self, path: Union[str, Path]) -> Dict[str, Any]:
        """
        Replace the whole inventory with an exported file.

        The current operator stays logged in and the archiving cycle restarts.
        """
        try:
            state = self.gateway.import_from(path)
        except SnapshotError as e:
            return self._fail(e)
        except OSError as e:
            logger.error(f"Import from {path} failed: {e}")
            return self._fail(f"Import failed: {e}", 'IOError')

        state.current_operator = self.current_operator
        self.store.replace_state(state)
        self.workflow.reset()
        self.store.record(AuditAction.DATABASE_IMPORTED,
                          f"Database imported from {Path(path).name}", ItemKind.SHELF, "")
        return self._ok("Database imported")

    # ==================== Queries ====================

    def search(self, term: str, status: Optional[ItemStatus] = None) -> SearchResults:
        return search(self.store.state, term, status)

    def report(self, selection: Union[Selection, dict]) -> str:
        """Text report of the selection. Logged as a generated report."""
        if not isinstance(selection, Selection):
            selection = Selection.from_dict(selection)
        text = build_report(self.store.state, selection, self._clock())
        count = len(selection.shelves) + len(selection.boxes) + len(selection.samples)
        self.store.record(AuditAction.REPORT_GENERATED,
                          f"Report generated for {count} items", ItemKind.SAMPLE, "")
        self._persist()
        return text

    def print_log(self) -> str:
        """Printable activity log, newest first. Logged as a print."""
        logs = list(self.store.state.logs)
        text = format_log(logs, self._clock())
        self.store.record(AuditAction.LOG_PRINTED,
                          f"Activity log printed ({len(logs)} records)", ItemKind.SAMPLE, "")
        self._persist()
        return text

    def recent_logs(self, limit: Optional[int] = None) -> list:
        logs = self.store.state.logs
        return list(logs[:limit] if limit else logs)
