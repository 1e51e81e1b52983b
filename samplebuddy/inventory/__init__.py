# Sample Buddy Inventory Core
# ===========================
# Shelf -> box -> sample hierarchy, barcode classification, archiving
# workflow and audit log. No I/O: persistence, time and ids are injected.

from samplebuddy.inventory.models import (
    AppState,
    Box,
    ItemKind,
    ItemStatus,
    LogEntry,
    PrinterSettings,
    Sample,
    SampleType,
    Selection,
    Settings,
    Shelf,
    can_transition,
    new_id,
)

from samplebuddy.inventory.exceptions import (
    InventoryError,
    MissingParentError,
    AlreadyExistsError,
    DuplicateSampleError,
    NotFoundError,
    AuthFailedError,
    SnapshotError,
)

from samplebuddy.inventory.classifier import (
    classify,
    derive_sample_subtype,
    is_ambiguous,
)

from samplebuddy.inventory.audit import AuditAction, AuditLog, filter_logs
from samplebuddy.inventory.store import BulkResult, InventoryStore, ScanEvent
from samplebuddy.inventory.workflow import ArchivingStatus, ArchivingStep, ArchivingWorkflow
from samplebuddy.inventory.serialization import state_from_dict, state_to_dict
from samplebuddy.inventory.search import SampleHit, SearchResults, build_report, format_log, search

__all__ = [
    # Models
    "AppState",
    "Box",
    "ItemKind",
    "ItemStatus",
    "LogEntry",
    "PrinterSettings",
    "Sample",
    "SampleType",
    "Selection",
    "Settings",
    "Shelf",
    "can_transition",
    "new_id",
    # Errors
    "InventoryError",
    "MissingParentError",
    "AlreadyExistsError",
    "DuplicateSampleError",
    "NotFoundError",
    "AuthFailedError",
    "SnapshotError",
    # Classification
    "classify",
    "derive_sample_subtype",
    "is_ambiguous",
    # Store, audit, workflow
    "AuditAction",
    "AuditLog",
    "filter_logs",
    "BulkResult",
    "InventoryStore",
    "ScanEvent",
    "ArchivingStatus",
    "ArchivingStep",
    "ArchivingWorkflow",
    # Snapshots and queries
    "state_from_dict",
    "state_to_dict",
    "SampleHit",
    "SearchResults",
    "build_report",
    "format_log",
    "search",
]
