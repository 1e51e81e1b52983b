"""
Read-only queries over an ``AppState``: search, selection reports and the
printable activity log.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from samplebuddy.inventory.models import (
    AppState, Box, ItemStatus, LogEntry, Sample, Selection, Shelf
)


@dataclass(frozen=True)
class SampleHit:
    """A sample found by search, with the codes of where it sits."""
    sample: Sample
    shelf_code: str
    box_code: str


@dataclass
class SearchResults:
    shelves: List[Shelf] = field(default_factory=list)
    samples: List[SampleHit] = field(default_factory=list)


def search(state: AppState, term: str, status: Optional[ItemStatus] = None) -> SearchResults:
    """
    Case-insensitive substring search over shelf, box and sample codes.

    A shelf matches when its own code or any of its boxes or samples match.
    Samples are returned flattened. ``status`` restricts sample hits.
    """
    needle = term.lower()
    results = SearchResults()

    for shelf in state.iter_shelves():
        shelf_matches = needle in shelf.code.lower()
        for box in state.iter_boxes(shelf):
            if needle in box.code.lower():
                shelf_matches = True
            for sample in state.iter_samples(box):
                if needle not in sample.code.lower():
                    continue
                shelf_matches = True
                if status is not None and sample.status != ItemStatus(status):
                    continue
                results.samples.append(SampleHit(sample, shelf.code, box.code))
        if shelf_matches:
            results.shelves.append(shelf)

    return results


def _box_lines(state: AppState, box: Box, indent: str) -> List[str]:
    samples = list(state.iter_samples(box))
    lines = [
        f"{indent}Status: {box.status.value}",
        f"{indent}Samples: {len(samples)}",
    ]
    for sample in samples:
        lines.append(f"{indent}  - {sample.code} ({sample.type.value}) - {sample.status.value}")
    return lines


def build_report(state: AppState, selection: Selection, generated_at: datetime) -> str:
    """Plain-text report of the selected shelves, boxes and samples."""
    lines = [
        "SAMPLE REPORT",
        "=============",
        "",
        f"Generated: {generated_at.strftime('%d/%m/%Y %H:%M:%S')}",
        "",
    ]

    for shelf_id in selection.shelves:
        shelf = state.shelves.get(shelf_id)
        if shelf is None:
            continue
        boxes = list(state.iter_boxes(shelf))
        lines.append(f"SHELF: {shelf.code}")
        lines.append(f"Status: {shelf.status.value}")
        lines.append(f"Boxes: {len(boxes)}")
        lines.append(f"Total samples: {sum(len(b.sample_ids) for b in boxes)}")
        lines.append("")
        for box in boxes:
            lines.append(f"  BOX: {box.code}")
            lines.extend(_box_lines(state, box, "  "))
            lines.append("")

    for box_id in selection.boxes:
        box = state.boxes.get(box_id)
        if box is None:
            continue
        lines.append(f"BOX: {box.code}")
        lines.append(f"Shelf: {state.shelves[box.shelf_id].code}")
        lines.extend(_box_lines(state, box, ""))
        lines.append("")

    for sample_id in selection.samples:
        sample = state.samples.get(sample_id)
        if sample is None:
            continue
        lines.append(f"SAMPLE: {sample.code}")
        lines.append(f"Type: {sample.type.value}")
        lines.append(f"Shelf: {state.shelves[sample.shelf_id].code}")
        lines.append(f"Box: {state.boxes[sample.box_id].code}")
        lines.append(f"Status: {sample.status.value}")
        lines.append("")

    return "\n".join(lines)


def format_log(logs: List[LogEntry], printed_at: datetime) -> str:
    """Printable activity log, newest entry first."""
    lines = [
        "SAMPLE MANAGEMENT ACTIVITY LOG",
        "==============================",
        "",
        f"Printed: {printed_at.strftime('%d/%m/%Y %H:%M:%S')}",
        f"Total records: {len(logs)}",
        "",
    ]
    for index, entry in enumerate(logs, start=1):
        lines.extend([
            f"{index}. {entry.action}",
            f"   Date/time: {entry.timestamp.strftime('%d/%m/%Y %H:%M:%S')}",
            f"   Operator: {entry.operator}",
            f"   Type: {entry.item_type.value}",
            f"   Code: {entry.item_code}",
            f"   Details: {entry.details}",
            "",
        ])
    return "\n".join(lines)
