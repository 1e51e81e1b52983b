"""
Sample Buddy Persistence Gateway
================================
Reads and writes the application store.

Features:
- Load / save the full application state snapshot
- Append new audit log entries to the audit_log table on every save
- Export the snapshot and password record to one JSON file
- Import a JSON file after writing a timestamped backup of the current store

Saving is best-effort: a failed write is logged and reported to the error
callback, and the in-memory state the caller holds stays as it is.
"""

import json
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from database.models import AuditLog, StoreEntry
from database.session import DatabaseManager, get_data_dir, get_db
from samplebuddy.inventory.exceptions import SnapshotError
from samplebuddy.inventory.models import AppState
from samplebuddy.inventory.serialization import state_from_dict, state_to_dict

logger = logging.getLogger(__name__)

STATE_KEY = "appState"
PASSWORD_KEY = "deletePassword"


class PersistenceGateway:
    """Durable storage for ``AppState`` snapshots and store settings."""

    def __init__(
        self,
        db: Optional[DatabaseManager] = None,
        backup_dir: Optional[Union[str, Path]] = None,
        on_error: Optional[Callable[[Exception], None]] = None,
    ):
        """
        Args:
            db: Database to use. Defaults to the global database manager.
            backup_dir: Where import backups go. Defaults to
                SAMPLE_BUDDY_BACKUP_DIR or the data directory.
            on_error: Called with the exception when a save fails.
        """
        self.db = db or get_db()
        if backup_dir is None:
            backup_dir = os.environ.get('SAMPLE_BUDDY_BACKUP_DIR') or get_data_dir()
        self.backup_dir = Path(backup_dir)
        self.on_error = on_error

    # ==================== Raw key-value access ====================

    def get_value(self, key: str, default: Any = None) -> Any:
        with self.db.session() as session:
            entry = session.get(StoreEntry, key)
            if entry is None:
                return default
            return entry.value

    def set_value(self, key: str, value: Any) -> None:
        with self.db.session() as session:
            entry = session.get(StoreEntry, key)
            if entry is None:
                session.add(StoreEntry(key=key, value=value))
            else:
                entry.value = value

    # ==================== State snapshots ====================

    def load(self) -> Optional[AppState]:
        """
        Load the saved state.

        Returns:
            The state, or None when nothing has been saved yet.

        Raises:
            SnapshotError: The stored snapshot is unreadable.
        """
        data = self.get_value(STATE_KEY)
        if data is None:
            logger.info("No saved state found, starting empty")
            return None
        state = state_from_dict(data)
        logger.info(f"Loaded state with {len(state.shelves)} shelves and {len(state.logs)} log entries")
        return state

    def save(self, state: AppState) -> bool:
        """
        Write the snapshot and append unseen log entries to the audit table.

        Returns:
            True on success, False if the write failed (already reported).
        """
        try:
            with self.db.session() as session:
                snapshot = state_to_dict(state)
                entry = session.get(StoreEntry, STATE_KEY)
                if entry is None:
                    session.add(StoreEntry(key=STATE_KEY, value=snapshot))
                else:
                    entry.value = snapshot
                self._append_audit_rows(session, state)
            return True
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Failed to save state: {e}")
            if self.on_error is not None:
                self.on_error(e)
            return False

    def _append_audit_rows(self, session, state: AppState) -> int:
        if not state.logs:
            return 0
        entry_ids = [entry.id for entry in state.logs]
        existing = set(session.execute(
            select(AuditLog.entry_id).where(AuditLog.entry_id.in_(entry_ids))
        ).scalars().all())

        added = 0
        # Oldest first so autoincrement ids follow chronological order.
        # Imported logs may repeat an id; only the first one is mirrored.
        for entry in reversed(state.logs):
            if entry.id in existing:
                continue
            session.add(AuditLog(
                entry_id=entry.id,
                timestamp=entry.timestamp,
                operator=entry.operator,
                action=entry.action,
                details=entry.details,
                item_type=entry.item_type.value,
                item_code=entry.item_code,
            ))
            existing.add(entry.id)
            added += 1
        return added

    def get_audit_trail(self, limit: Optional[int] = None) -> list:
        """Audit rows newest first, as plain dicts."""
        with self.db.session() as session:
            query = select(AuditLog).order_by(AuditLog.id.desc())
            if limit:
                query = query.limit(limit)
            return [
                {
                    'id': row.entry_id,
                    'timestamp': row.timestamp,
                    'operator': row.operator,
                    'action': row.action,
                    'details': row.details,
                    'item_type': row.item_type,
                    'item_code': row.item_code,
                }
                for row in session.execute(query).scalars().all()
            ]

    # ==================== Export / import ====================

    def export_document(self) -> Dict[str, Any]:
        """
        The current store as one JSON document.

        The document is the state snapshot itself with the password record
        added under its own key.
        """
        document = dict(self.get_value(STATE_KEY) or state_to_dict(AppState()))
        password = self.get_value(PASSWORD_KEY)
        if password is not None:
            document[PASSWORD_KEY] = password
        return document

    def export_to(self, path: Union[str, Path]) -> Path:
        """Write the store to ``path`` as indented JSON."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(self.export_document(), indent=2), encoding='utf-8')
        logger.info(f"Exported database to {path}")
        return path

    def backup(self) -> Path:
        """Write the current store to ``backup-<timestamp>.json`` in the backup directory."""
        self.backup_dir.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now().strftime('%Y%m%d-%H%M%S-%f')
        backup_path = self.backup_dir / f"backup-{stamp}.json"
        backup_path.write_text(json.dumps(self.export_document(), indent=2), encoding='utf-8')
        logger.info(f"Backed up current database to {backup_path}")
        return backup_path

    def import_from(self, path: Union[str, Path]) -> AppState:
        """
        Replace the whole store with the contents of ``path``.

        Accepts files written by ``export_to`` as well as raw key-value dumps
        with the snapshot under 'appState'. The file is parsed and validated
        first; then the current store is backed up, cleared, and refilled.

        Raises:
            SnapshotError: The file is not a valid export.
            OSError: The file cannot be read or the backup cannot be written.
        """
        path = Path(path)
        try:
            data = json.loads(path.read_text(encoding='utf-8'))
        except json.JSONDecodeError as e:
            raise SnapshotError(f"{path.name} is not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise SnapshotError(f"{path.name} does not contain a database export")
        if STATE_KEY in data:
            state_data = data[STATE_KEY]
        else:
            state_data = {k: v for k, v in data.items() if k != PASSWORD_KEY}
        state = state_from_dict(state_data)

        self.backup()
        with self.db.session() as session:
            session.query(StoreEntry).delete()
            session.add(StoreEntry(key=STATE_KEY, value=state_to_dict(state)))
            if data.get(PASSWORD_KEY) is not None:
                session.add(StoreEntry(key=PASSWORD_KEY, value=data[PASSWORD_KEY]))

        logger.info(f"Imported database from {path}")
        return state
