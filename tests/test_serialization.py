"""
Tests for AppState snapshot conversion.
"""

import json

import pytest

from samplebuddy.inventory.exceptions import SnapshotError
from samplebuddy.inventory.models import ItemStatus, SampleType, Selection
from samplebuddy.inventory.serialization import state_from_dict, state_to_dict


def test_snapshot_shape(populated_store):
    data = state_to_dict(populated_store.state)

    assert data["currentOperator"] == "Mario"
    assert [s["code"] for s in data["shelves"]] == ["SC-01", "AL-01"]
    box = data["shelves"][0]["boxes"][0]
    assert box["code"] == "CA-01"
    assert box["shelfId"] == data["shelves"][0]["id"]
    assert box["samples"][0]["code"] == "2501234-001 TQ"
    assert box["samples"][0]["createdAt"] == "2025-03-14T09:30:07"
    assert "disposedAt" not in box["samples"][0]
    assert data["settings"]["printerSettings"] == {
        "defaultWidth": 4, "defaultHeight": 2, "selectedPrinter": ""
    }
    assert data["logs"][0]["itemType"] == "sample"
    # JSON-compatible as is
    json.dumps(data)


def test_round_trip_preserves_state(populated_store):
    shelf_id = populated_store.state.shelf_ids[0]
    populated_store.bulk_dispose(Selection(shelves=[shelf_id]))

    data = state_to_dict(populated_store.state)
    restored = state_from_dict(json.loads(json.dumps(data)))

    assert state_to_dict(restored) == data
    assert restored.shelves[shelf_id].status == ItemStatus.DISPOSED
    assert restored.shelves[shelf_id].disposed_at == populated_store.state.shelves[shelf_id].disposed_at
    assert restored.logs == populated_store.state.logs


def test_back_references_come_from_nesting():
    data = {
        "currentOperator": None,
        "shelves": [{
            "id": "s1", "code": "AL-01", "prefix": "AL", "status": "active",
            "createdAt": "2025-01-02T10:00:00.000Z",
            "boxes": [{
                "id": "b1", "code": "AL-B1", "prefix": "AL", "shelfId": "stale",
                "status": "active", "createdAt": "2025-01-02T10:00:00.000Z",
                "samples": [{
                    "id": "c1", "code": "2509999-001 MC", "type": "MC",
                    "shelfId": "stale", "boxId": "stale", "status": "disposed",
                    "createdAt": "2025-01-02T10:00:00.000Z",
                    "disposedAt": "2025-02-01T08:00:00.000Z",
                }],
            }],
        }],
        "logs": [],
        "settings": {"deletePassword": "legacy", "printerSettings": {"defaultWidth": 5}},
    }

    state = state_from_dict(data)

    sample = state.samples["c1"]
    assert sample.box_id == "b1"
    assert sample.shelf_id == "s1"
    assert sample.type == SampleType.MC
    assert sample.disposed_at.year == 2025
    assert state.boxes["b1"].shelf_id == "s1"
    assert state.settings.printer_settings.default_width == 5
    assert state.settings.printer_settings.default_height == 2


@pytest.mark.parametrize("data", [
    [],
    {"shelves": [{"code": "SC-01"}]},
    {"shelves": [{"id": "s1", "code": "SC-01", "status": "lost"}]},
    {"logs": [{"id": "l1"}]},
])
def test_invalid_snapshots(data):
    with pytest.raises(SnapshotError):
        state_from_dict(data)
