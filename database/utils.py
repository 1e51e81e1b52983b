"""
Sample Buddy Database Utilities
===============================
Tabular exports of the inventory and the activity log.
"""

import os
from typing import List, Dict, Any
import pandas as pd

from database.session import DatabaseManager
from samplebuddy.inventory.models import AppState, ItemStatus, LogEntry

LOG_COLUMNS = ['timestamp', 'operator', 'action', 'details', 'item_type', 'item_code']
SAMPLE_COLUMNS = ['shelf', 'box', 'code', 'type', 'status', 'created_at', 'disposed_at', 'deleted_at']


def logs_to_dataframe(logs: List[LogEntry]) -> pd.DataFrame:
    """One row per log entry, in the order given (newest first for state logs)."""
    rows = [
        {
            'timestamp': entry.timestamp,
            'operator': entry.operator,
            'action': entry.action,
            'details': entry.details,
            'item_type': entry.item_type.value,
            'item_code': entry.item_code,
        }
        for entry in logs
    ]
    return pd.DataFrame(rows, columns=LOG_COLUMNS)


def export_logs_to_csv(logs: List[LogEntry], filepath: str) -> str:
    """
    Export the activity log to a CSV file.

    Args:
        logs: Log entries to write
        filepath: Destination file; parent directories are created

    Returns:
        The path written
    """
    directory = os.path.dirname(os.path.abspath(filepath))
    os.makedirs(directory, exist_ok=True)

    df = logs_to_dataframe(logs)
    df.to_csv(filepath, index=False)
    return filepath


def samples_to_dataframe(state: AppState) -> pd.DataFrame:
    """Flat table of every sample with the codes of its shelf and box."""
    rows = []
    for shelf in state.iter_shelves():
        for box in state.iter_boxes(shelf):
            for sample in state.iter_samples(box):
                rows.append({
                    'shelf': shelf.code,
                    'box': box.code,
                    'code': sample.code,
                    'type': sample.type.value,
                    'status': sample.status.value,
                    'created_at': sample.created_at,
                    'disposed_at': sample.disposed_at,
                    'deleted_at': sample.deleted_at,
                })
    return pd.DataFrame(rows, columns=SAMPLE_COLUMNS)


def inventory_summary(state: AppState) -> pd.DataFrame:
    """
    Count shelves, boxes and samples per status.

    Returns:
        DataFrame indexed by item kind with one column per status
    """
    statuses = [status.value for status in ItemStatus]
    counts: Dict[str, Dict[str, int]] = {
        'shelf': dict.fromkeys(statuses, 0),
        'box': dict.fromkeys(statuses, 0),
        'sample': dict.fromkeys(statuses, 0),
    }
    for shelf in state.shelves.values():
        counts['shelf'][shelf.status.value] += 1
    for box in state.boxes.values():
        counts['box'][box.status.value] += 1
    for sample in state.samples.values():
        counts['sample'][sample.status.value] += 1

    return pd.DataFrame.from_dict(counts, orient='index', columns=statuses)


def get_database_stats(db: DatabaseManager) -> Dict[str, Any]:
    """
    Get statistics about the database contents.

    Returns:
        Dictionary with table row counts and a health flag
    """
    stats = db.get_table_stats()
    stats['healthy'] = db.health_check()
    return stats
