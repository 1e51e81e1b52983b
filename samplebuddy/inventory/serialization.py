"""
Conversion between ``AppState`` and its JSON snapshot.

The snapshot nests samples inside boxes inside shelves and uses camelCase keys,
the same shape earlier releases wrote, so exported files can be imported back.
Timestamps are stored as ISO-8601 strings.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from samplebuddy.inventory.exceptions import SnapshotError
from samplebuddy.inventory.models import (
    AppState, Box, ItemKind, ItemStatus, LogEntry, PrinterSettings,
    Sample, SampleType, Settings, Shelf
)


def _dt_to_str(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _str_to_dt(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    # JavaScript toISOString() ends with 'Z', which fromisoformat only accepts on 3.11+
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


def _status_fields(item, data: Dict[str, Any]) -> Dict[str, Any]:
    data["status"] = item.status.value
    data["createdAt"] = _dt_to_str(item.created_at)
    if item.disposed_at:
        data["disposedAt"] = _dt_to_str(item.disposed_at)
    if item.deleted_at:
        data["deletedAt"] = _dt_to_str(item.deleted_at)
    return data


def sample_to_dict(sample: Sample) -> Dict[str, Any]:
    return _status_fields(sample, {
        "id": sample.id,
        "code": sample.code,
        "type": sample.type.value,
        "shelfId": sample.shelf_id,
        "boxId": sample.box_id,
    })


def box_to_dict(state: AppState, box: Box) -> Dict[str, Any]:
    data = _status_fields(box, {
        "id": box.id,
        "code": box.code,
        "prefix": box.prefix,
        "shelfId": box.shelf_id,
    })
    data["samples"] = [sample_to_dict(s) for s in state.iter_samples(box)]
    return data


def shelf_to_dict(state: AppState, shelf: Shelf) -> Dict[str, Any]:
    data = _status_fields(shelf, {
        "id": shelf.id,
        "code": shelf.code,
        "prefix": shelf.prefix,
    })
    data["boxes"] = [box_to_dict(state, b) for b in state.iter_boxes(shelf)]
    return data


def log_to_dict(entry: LogEntry) -> Dict[str, Any]:
    return {
        "id": entry.id,
        "timestamp": _dt_to_str(entry.timestamp),
        "operator": entry.operator,
        "action": entry.action,
        "details": entry.details,
        "itemType": entry.item_type.value,
        "itemCode": entry.item_code,
    }


def state_to_dict(state: AppState) -> Dict[str, Any]:
    """Serialize the full state to a JSON-compatible dict."""
    printer = state.settings.printer_settings
    return {
        "currentOperator": state.current_operator,
        "shelves": [shelf_to_dict(state, s) for s in state.iter_shelves()],
        "logs": [log_to_dict(entry) for entry in state.logs],
        "settings": {
            "printerSettings": {
                "defaultWidth": printer.default_width,
                "defaultHeight": printer.default_height,
                "selectedPrinter": printer.selected_printer,
            },
        },
    }


def _status_kwargs(data: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "status": ItemStatus(data.get("status", ItemStatus.ACTIVE.value)),
        "created_at": _str_to_dt(data.get("createdAt")),
        "disposed_at": _str_to_dt(data.get("disposedAt")),
        "deleted_at": _str_to_dt(data.get("deletedAt")),
    }


def log_from_dict(data: Dict[str, Any]) -> LogEntry:
    return LogEntry(
        id=str(data["id"]),
        timestamp=_str_to_dt(data["timestamp"]),
        operator=data.get("operator", ""),
        action=data["action"],
        details=data.get("details", ""),
        item_type=ItemKind(data.get("itemType", ItemKind.SAMPLE.value)),
        item_code=data.get("itemCode", ""),
    )


def state_from_dict(data: Dict[str, Any]) -> AppState:
    """
    Rebuild an ``AppState`` from its snapshot.

    Arenas and back-references are derived from the nesting, so a stale
    ``shelfId``/``boxId`` in the file cannot disagree with where the item sits.

    Raises:
        SnapshotError: The data does not have the expected shape.
    """
    if not isinstance(data, dict):
        raise SnapshotError("Snapshot must be a JSON object")

    try:
        state = AppState(current_operator=data.get("currentOperator"))

        for shelf_data in data.get("shelves", []):
            shelf = Shelf(
                id=str(shelf_data["id"]),
                code=shelf_data["code"],
                prefix=shelf_data.get("prefix", ""),
                **_status_kwargs(shelf_data),
            )
            state.shelves[shelf.id] = shelf
            state.shelf_ids.append(shelf.id)

            for box_data in shelf_data.get("boxes", []):
                box = Box(
                    id=str(box_data["id"]),
                    code=box_data["code"],
                    prefix=box_data.get("prefix", ""),
                    shelf_id=shelf.id,
                    **_status_kwargs(box_data),
                )
                state.boxes[box.id] = box
                shelf.box_ids.append(box.id)

                for sample_data in box_data.get("samples", []):
                    sample = Sample(
                        id=str(sample_data["id"]),
                        code=sample_data["code"],
                        type=SampleType(sample_data.get("type", SampleType.TQ.value)),
                        box_id=box.id,
                        shelf_id=shelf.id,
                        **_status_kwargs(sample_data),
                    )
                    state.samples[sample.id] = sample
                    box.sample_ids.append(sample.id)

        state.logs = [log_from_dict(entry) for entry in data.get("logs", [])]

        printer_data = data.get("settings", {}).get("printerSettings", {})
        defaults = PrinterSettings()
        state.settings = Settings(printer_settings=PrinterSettings(
            default_width=printer_data.get("defaultWidth", defaults.default_width),
            default_height=printer_data.get("defaultHeight", defaults.default_height),
            selected_printer=printer_data.get("selectedPrinter", defaults.selected_printer),
        ))
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise SnapshotError(f"Invalid snapshot: {e}") from e

    return state
