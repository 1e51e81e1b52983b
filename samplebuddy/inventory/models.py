"""
Sample Buddy Inventory Models
=============================
Plain data classes for the shelf -> box -> sample hierarchy.

Entities are kept in id-keyed arenas on ``AppState``; shelves and boxes only
hold ordered id lists of their children. Back-references (``shelf_id``,
``box_id``) are updated by the store together with the id lists.
"""

import copy
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Iterator, List, Optional, Set


class ItemKind(str, Enum):
    """Level of an item in the storage hierarchy."""
    SHELF = "shelf"
    BOX = "box"
    SAMPLE = "sample"


class ItemStatus(str, Enum):
    """Lifecycle status shared by shelves, boxes and samples."""
    ACTIVE = "active"
    DISPOSED = "disposed"
    DELETED = "deleted"


class SampleType(str, Enum):
    """Sample material subtype."""
    TQ = "TQ"  # tal quale (as-is)
    MC = "MC"  # macinato (ground)


# Valid status transitions. Disposal and deletion are both reachable from
# active; a disposed item can still be deleted.
VALID_STATUS_TRANSITIONS: Dict[ItemStatus, Set[ItemStatus]] = {
    ItemStatus.ACTIVE: {ItemStatus.DISPOSED, ItemStatus.DELETED},
    ItemStatus.DISPOSED: {ItemStatus.DELETED},
    ItemStatus.DELETED: set(),  # Terminal state
}


def can_transition(current: ItemStatus, target: ItemStatus) -> bool:
    """Check whether ``current`` may move to ``target``."""
    return target in VALID_STATUS_TRANSITIONS.get(current, set())


def new_id() -> str:
    """Default id factory."""
    return uuid.uuid4().hex


@dataclass
class Sample:
    id: str
    code: str
    type: SampleType
    box_id: str
    shelf_id: str
    status: ItemStatus = ItemStatus.ACTIVE
    created_at: Optional[datetime] = None
    disposed_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    @property
    def base_code(self) -> str:
        """The scanned code without the type suffix added at creation."""
        suffix = f" {self.type.value}"
        if self.code.endswith(suffix):
            return self.code[:-len(suffix)]
        return self.code


@dataclass
class Box:
    id: str
    code: str
    prefix: str
    shelf_id: str
    sample_ids: List[str] = field(default_factory=list)
    status: ItemStatus = ItemStatus.ACTIVE
    created_at: Optional[datetime] = None
    disposed_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None


@dataclass
class Shelf:
    id: str
    code: str
    prefix: str
    box_ids: List[str] = field(default_factory=list)
    status: ItemStatus = ItemStatus.ACTIVE
    created_at: Optional[datetime] = None
    disposed_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None


@dataclass(frozen=True)
class LogEntry:
    """A single audit log record. Never modified once created."""
    id: str
    timestamp: datetime
    operator: str
    action: str
    details: str
    item_type: ItemKind
    item_code: str

    def __str__(self):
        return (
            f"[{self.timestamp.strftime('%d/%m/%Y %H:%M:%S')}] {self.operator} - "
            f"{self.action}: {self.details} ({self.item_type.value}: {self.item_code})"
        )


@dataclass
class PrinterSettings:
    default_width: float = 4
    default_height: float = 2
    selected_printer: str = ""


@dataclass
class Settings:
    printer_settings: PrinterSettings = field(default_factory=PrinterSettings)


@dataclass
class Selection:
    """Ids picked by the operator for a bulk operation."""
    shelves: List[str] = field(default_factory=list)
    boxes: List[str] = field(default_factory=list)
    samples: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "Selection":
        data = data or {}
        return cls(
            shelves=list(data.get("shelves", [])),
            boxes=list(data.get("boxes", [])),
            samples=list(data.get("samples", [])),
        )

    def is_empty(self) -> bool:
        return not (self.shelves or self.boxes or self.samples)


@dataclass
class AppState:
    """
    Root aggregate and unit of persistence.

    ``shelf_ids`` keeps the display order of shelves; ``logs`` is newest first.
    """
    current_operator: Optional[str] = None
    shelf_ids: List[str] = field(default_factory=list)
    shelves: Dict[str, Shelf] = field(default_factory=dict)
    boxes: Dict[str, Box] = field(default_factory=dict)
    samples: Dict[str, Sample] = field(default_factory=dict)
    logs: List[LogEntry] = field(default_factory=list)
    settings: Settings = field(default_factory=Settings)

    def copy(self) -> "AppState":
        """Deep copy used as the working state of a mutation."""
        return copy.deepcopy(self)

    def iter_shelves(self) -> Iterator[Shelf]:
        for shelf_id in self.shelf_ids:
            yield self.shelves[shelf_id]

    def iter_boxes(self, shelf: Shelf) -> Iterator[Box]:
        for box_id in shelf.box_ids:
            yield self.boxes[box_id]

    def iter_samples(self, box: Box) -> Iterator[Sample]:
        for sample_id in box.sample_ids:
            yield self.samples[sample_id]
