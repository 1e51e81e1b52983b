"""
Audit log for inventory operations.

Entries are prepended to ``AppState.logs`` so the sequence reads newest first.
The action values match the ones written by earlier releases of the
application, so exported databases stay readable.
"""

import logging
from datetime import datetime
from enum import Enum
from typing import Callable, List, Optional

from samplebuddy.inventory.models import AppState, ItemKind, LogEntry, new_id

logger = logging.getLogger(__name__)


class AuditAction(str, Enum):
    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"

    SHELF_CREATED = "SCAFFALE_CREATO"
    SHELF_SCANNED = "SCAFFALE_SCANSIONATO"
    SHELF_CREATED_MANUALLY = "SCAFFALE_CREATO_MANUALMENTE"
    SHELF_RENAMED = "SCAFFALE_RINOMINATO"
    SHELF_DISPOSED = "SCAFFALE_SMALTITO"
    SHELF_DELETED = "SCAFFALE_ELIMINATO"

    BOX_CREATED = "CASSETTA_CREATA"
    BOX_SCANNED = "CASSETTA_SCANSIONATA"
    BOX_CREATED_MANUALLY = "CASSETTA_CREATA_MANUALMENTE"
    BOX_RENAMED = "CASSETTA_RINOMINATA"
    BOX_MOVED = "CASSETTA_SPOSTATA"
    BOX_DISPOSED = "CASSETTA_SMALTITA"
    BOX_DELETED = "CASSETTA_ELIMINATA"

    SAMPLE_ARCHIVED = "CAMPIONE_ARCHIVIATO"
    SAMPLE_CREATED_MANUALLY = "CAMPIONE_CREATO_MANUALMENTE"
    SAMPLE_RENAMED = "CAMPIONE_RINOMINATO"
    SAMPLE_MOVED = "CAMPIONE_SPOSTATO"
    SAMPLE_DISPOSED = "CAMPIONE_SMALTITO"
    SAMPLE_DELETED = "CAMPIONE_ELIMINATO"

    PASSWORD_CHANGED = "PASSWORD_CHANGED"
    PRINTER_SETTINGS = "IMPOSTAZIONI_STAMPANTE"
    DATABASE_EXPORTED = "DATABASE_ESPORTATO"
    DATABASE_IMPORTED = "DATABASE_IMPORTATO"
    LOG_PRINTED = "LOG_STAMPATO"
    REPORT_GENERATED = "REPORT_GENERATO"


class AuditLog:
    """Appends log entries attributed to the logged-in operator."""

    def __init__(
        self,
        clock: Callable[[], datetime] = datetime.now,
        id_factory: Callable[[], str] = new_id,
    ):
        self._clock = clock
        self._id_factory = id_factory

    def add(
        self,
        state: AppState,
        action: str,
        details: str,
        item_type: ItemKind,
        item_code: str,
    ) -> Optional[LogEntry]:
        """
        Prepend an entry to ``state.logs``.

        Returns the new entry, or None when nobody is logged in (the entry is
        dropped, this is not an error).
        """
        if not state.current_operator:
            logger.debug(f"No operator logged in, dropping log entry {action}")
            return None

        entry = LogEntry(
            id=self._id_factory(),
            timestamp=self._clock(),
            operator=state.current_operator,
            action=str(action.value if isinstance(action, AuditAction) else action),
            details=details,
            item_type=ItemKind(item_type),
            item_code=item_code,
        )
        state.logs.insert(0, entry)
        return entry


def filter_logs(
    logs: List[LogEntry],
    action: Optional[str] = None,
    operator: Optional[str] = None,
    item_type: Optional[ItemKind] = None,
) -> List[LogEntry]:
    """Return the entries matching every given filter, keeping their order."""
    if isinstance(action, AuditAction):
        action = action.value
    result = []
    for entry in logs:
        if action and entry.action != action:
            continue
        if operator and entry.operator != operator:
            continue
        if item_type and entry.item_type != ItemKind(item_type):
            continue
        result.append(entry)
    return result
