"""
Sample Buddy Inventory Store
============================
Owns the shelf -> box -> sample hierarchy and applies every mutation to it.

Features:
- Find-or-create on barcode scans, strict creation for manual entry
- Rename and move with back-reference updates
- Bulk dispose / bulk delete with cascade to descendants
- One audit log entry per mutating operation

Each operation runs against a deep copy of the current ``AppState`` and the copy
is committed only when the operation completes. A rejected operation raises an
``InventoryError`` and the previous state stays in place, untouched.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, Iterator, List, Optional, Tuple, Union

from samplebuddy.inventory.audit import AuditAction, AuditLog
from samplebuddy.inventory.classifier import (
    box_prefix, classify, derive_sample_subtype, shelf_prefix
)
from samplebuddy.inventory.exceptions import (
    AlreadyExistsError, AuthFailedError, DuplicateSampleError,
    MissingParentError, NotFoundError
)
from samplebuddy.inventory.models import (
    AppState, Box, ItemKind, ItemStatus, LogEntry, Sample, Selection, Shelf,
    can_transition, new_id
)

logger = logging.getLogger(__name__)


# Log actions used by the bulk operations, keyed by target status and kind
BULK_ACTIONS = {
    ItemStatus.DISPOSED: {
        ItemKind.SAMPLE: AuditAction.SAMPLE_DISPOSED,
        ItemKind.BOX: AuditAction.BOX_DISPOSED,
        ItemKind.SHELF: AuditAction.SHELF_DISPOSED,
    },
    ItemStatus.DELETED: {
        ItemKind.SAMPLE: AuditAction.SAMPLE_DELETED,
        ItemKind.BOX: AuditAction.BOX_DELETED,
        ItemKind.SHELF: AuditAction.SHELF_DELETED,
    },
}

RENAME_ACTIONS = {
    ItemKind.SHELF: AuditAction.SHELF_RENAMED,
    ItemKind.BOX: AuditAction.BOX_RENAMED,
    ItemKind.SAMPLE: AuditAction.SAMPLE_RENAMED,
}

STATUS_VERBS = {
    ItemStatus.DISPOSED: "disposed",
    ItemStatus.DELETED: "deleted",
}


@dataclass(frozen=True)
class ScanEvent:
    """Outcome of a successful scan."""
    kind: ItemKind
    code: str
    item_id: str
    created: bool


@dataclass
class BulkResult:
    """Top-level items transitioned or skipped by a bulk operation."""
    status: ItemStatus
    transitioned: List[Tuple[ItemKind, str]] = field(default_factory=list)
    skipped: List[Tuple[ItemKind, str]] = field(default_factory=list)
    cascaded: int = 0

    @property
    def count(self) -> int:
        return len(self.transitioned)


class InventoryStore:
    """
    Hierarchical inventory state manager.

    Usage:
        store = InventoryStore()
        store.login("Mario")
        store.scan("SC-01")
        store.scan("CA-01", current_shelf_code="SC-01")
        store.scan("2501234-001", current_shelf_code="SC-01", current_box_code="CA-01")
    """

    def __init__(
        self,
        state: Optional[AppState] = None,
        clock: Callable[[], datetime] = datetime.now,
        id_factory: Callable[[], str] = new_id,
        authenticator=None,
    ):
        """
        Args:
            state: Initial state, e.g. loaded from persistence. Empty if None.
            clock: Returns the current time for timestamps.
            id_factory: Returns a new unique id for entities and log entries.
            authenticator: Object with ``authenticate(password) -> bool`` used
                to gate bulk deletion.
        """
        self._state = state if state is not None else AppState()
        self._clock = clock
        self._id_factory = id_factory
        self._authenticator = authenticator
        self.audit = AuditLog(clock=clock, id_factory=id_factory)

    @property
    def state(self) -> AppState:
        """Current committed snapshot. Treat as read-only."""
        return self._state

    def replace_state(self, state: AppState) -> None:
        """Swap in a whole new state (database import)."""
        self._state = state

    @contextmanager
    def _transaction(self) -> Iterator[AppState]:
        """Yield a working copy of the state, committed only on success."""
        working = self._state.copy()
        yield working
        self._state = working

    # ==================== Lookups ====================

    @staticmethod
    def _find_shelf(state: AppState, code: str) -> Optional[Shelf]:
        for shelf in state.iter_shelves():
            if shelf.code == code:
                return shelf
        return None

    @staticmethod
    def _find_box(state: AppState, shelf: Shelf, code: str) -> Optional[Box]:
        for box in state.iter_boxes(shelf):
            if box.code == code:
                return box
        return None

    def find_shelf_by_code(self, code: str) -> Optional[Shelf]:
        return self._find_shelf(self._state, code)

    def find_box_by_code(self, shelf_code: str, box_code: str) -> Optional[Box]:
        shelf = self._find_shelf(self._state, shelf_code)
        if shelf is None:
            return None
        return self._find_box(self._state, shelf, box_code)

    def get_shelf(self, shelf_id: str) -> Optional[Shelf]:
        return self._state.shelves.get(shelf_id)

    def get_box(self, box_id: str) -> Optional[Box]:
        return self._state.boxes.get(box_id)

    def get_sample(self, sample_id: str) -> Optional[Sample]:
        return self._state.samples.get(sample_id)

    def _resolve_shelf_and_box(
        self,
        state: AppState,
        shelf_code: Optional[str],
        box_code: Optional[str],
    ) -> Tuple[Shelf, Box]:
        if not shelf_code or not box_code:
            raise MissingParentError("Scan a shelf and a box first")
        shelf = self._find_shelf(state, shelf_code)
        box = self._find_box(state, shelf, box_code) if shelf else None
        if shelf is None or box is None:
            raise MissingParentError(
                f"Shelf {shelf_code} or box {box_code} not found",
                details={'shelf_code': shelf_code, 'box_code': box_code},
            )
        return shelf, box

    # ==================== Entity construction ====================

    def _add_shelf(self, state: AppState, code: str) -> Shelf:
        shelf = Shelf(
            id=self._id_factory(),
            code=code,
            prefix=shelf_prefix(code),
            created_at=self._clock(),
        )
        state.shelves[shelf.id] = shelf
        state.shelf_ids.append(shelf.id)
        return shelf

    def _add_box(self, state: AppState, shelf: Shelf, code: str) -> Box:
        box = Box(
            id=self._id_factory(),
            code=code,
            prefix=box_prefix(code),
            shelf_id=shelf.id,
            created_at=self._clock(),
        )
        state.boxes[box.id] = box
        shelf.box_ids.append(box.id)
        return box

    def _add_sample(self, state: AppState, shelf: Shelf, box: Box, code: str) -> Sample:
        for existing in state.iter_samples(box):
            if existing.base_code == code:
                raise DuplicateSampleError(
                    f"Sample {code} already exists in box {box.code}",
                    details={'sample_code': code, 'box_code': box.code},
                )

        sample_type = derive_sample_subtype(shelf.code, box.code)
        sample = Sample(
            id=self._id_factory(),
            code=f"{code} {sample_type.value}",
            type=sample_type,
            box_id=box.id,
            shelf_id=shelf.id,
            created_at=self._clock(),
        )
        state.samples[sample.id] = sample
        box.sample_ids.append(sample.id)
        return sample

    # ==================== Scanning ====================

    @staticmethod
    def _expected_kind(shelf_code: Optional[str], box_code: Optional[str]) -> ItemKind:
        if not shelf_code:
            return ItemKind.SHELF
        if not box_code:
            return ItemKind.BOX
        return ItemKind.SAMPLE

    def scan(
        self,
        code: str,
        current_shelf_code: Optional[str] = None,
        current_box_code: Optional[str] = None,
        kind: Optional[ItemKind] = None,
    ) -> ScanEvent:
        """
        Record a scanned code.

        Shelves and boxes are created the first time they are scanned; samples
        are archived into the current box.

        Args:
            code: The scanned code.
            current_shelf_code: Shelf context for box and sample scans.
            current_box_code: Box context for sample scans.
            kind: Classification decided by the caller. When None the code is
                classified here, resolving ``AL`` codes from the context.

        Raises:
            MissingParentError: Shelf/box context absent or unknown.
            DuplicateSampleError: The box already holds this sample.
        """
        if kind is None:
            kind = classify(code, self._expected_kind(current_shelf_code, current_box_code))

        with self._transaction() as state:
            if kind == ItemKind.SHELF:
                return self._scan_shelf(state, code)
            if kind == ItemKind.BOX:
                return self._scan_box(state, code, current_shelf_code)
            return self._scan_sample(state, code, current_shelf_code, current_box_code)

    def _scan_shelf(self, state: AppState, code: str) -> ScanEvent:
        shelf = self._find_shelf(state, code)
        created = shelf is None
        if created:
            shelf = self._add_shelf(state, code)
            self.audit.add(state, AuditAction.SHELF_CREATED,
                           f"New shelf created: {code}", ItemKind.SHELF, code)
            logger.info(f"Created shelf {code}")
        self.audit.add(state, AuditAction.SHELF_SCANNED,
                       f"Shelf scanned: {code}", ItemKind.SHELF, code)
        return ScanEvent(ItemKind.SHELF, code, shelf.id, created)

    def _scan_box(self, state: AppState, code: str, shelf_code: Optional[str]) -> ScanEvent:
        if not shelf_code:
            raise MissingParentError("Scan a shelf first")
        shelf = self._find_shelf(state, shelf_code)
        if shelf is None:
            raise MissingParentError(f"Shelf {shelf_code} not found",
                                     details={'shelf_code': shelf_code})

        box = self._find_box(state, shelf, code)
        created = box is None
        if created:
            box = self._add_box(state, shelf, code)
            self.audit.add(state, AuditAction.BOX_CREATED,
                           f"New box created: {code} in shelf {shelf_code}", ItemKind.BOX, code)
            logger.info(f"Created box {code} in shelf {shelf_code}")
        self.audit.add(state, AuditAction.BOX_SCANNED,
                       f"Box scanned: {code} in shelf {shelf_code}", ItemKind.BOX, code)
        return ScanEvent(ItemKind.BOX, code, box.id, created)

    def _scan_sample(
        self,
        state: AppState,
        code: str,
        shelf_code: Optional[str],
        box_code: Optional[str],
    ) -> ScanEvent:
        shelf, box = self._resolve_shelf_and_box(state, shelf_code, box_code)
        sample = self._add_sample(state, shelf, box, code)
        self.audit.add(
            state, AuditAction.SAMPLE_ARCHIVED,
            f"Sample archived: {sample.code} in box {box.code} of shelf {shelf.code}",
            ItemKind.SAMPLE, sample.code,
        )
        logger.info(f"Archived sample {sample.code} in {shelf.code}/{box.code}")
        return ScanEvent(ItemKind.SAMPLE, sample.code, sample.id, True)

    # ==================== Manual creation ====================

    def create_shelf(self, code: str) -> Shelf:
        """Create a shelf. Raises AlreadyExistsError if the code is taken."""
        with self._transaction() as state:
            if self._find_shelf(state, code) is not None:
                raise AlreadyExistsError(f"Shelf {code} already exists",
                                         details={'shelf_code': code})
            shelf = self._add_shelf(state, code)
            self.audit.add(state, AuditAction.SHELF_CREATED_MANUALLY,
                           f"Shelf created manually: {code}", ItemKind.SHELF, code)
        logger.info(f"Created shelf {code} manually")
        return shelf

    def create_box(self, shelf_code: str, box_code: str) -> Box:
        """Create a box in an existing shelf."""
        with self._transaction() as state:
            shelf = self._find_shelf(state, shelf_code)
            if shelf is None:
                raise MissingParentError(f"Shelf {shelf_code} not found",
                                         details={'shelf_code': shelf_code})
            if self._find_box(state, shelf, box_code) is not None:
                raise AlreadyExistsError(
                    f"Box {box_code} already exists in shelf {shelf_code}",
                    details={'shelf_code': shelf_code, 'box_code': box_code},
                )
            box = self._add_box(state, shelf, box_code)
            self.audit.add(state, AuditAction.BOX_CREATED_MANUALLY,
                           f"Box created manually: {box_code} in shelf {shelf_code}",
                           ItemKind.BOX, box_code)
        logger.info(f"Created box {box_code} in shelf {shelf_code} manually")
        return box

    def create_sample(self, shelf_code: str, box_code: str, sample_code: str) -> Sample:
        """Create a sample in an existing box."""
        with self._transaction() as state:
            shelf, box = self._resolve_shelf_and_box(state, shelf_code, box_code)
            sample = self._add_sample(state, shelf, box, sample_code)
            self.audit.add(
                state, AuditAction.SAMPLE_CREATED_MANUALLY,
                f"Sample created manually: {sample.code} in box {box_code} of shelf {shelf_code}",
                ItemKind.SAMPLE, sample.code,
            )
        logger.info(f"Created sample {sample.code} manually")
        return sample

    # ==================== Rename / move ====================

    def _arena(self, state: AppState, kind: ItemKind) -> Dict[str, Union[Shelf, Box, Sample]]:
        return {
            ItemKind.SHELF: state.shelves,
            ItemKind.BOX: state.boxes,
            ItemKind.SAMPLE: state.samples,
        }[ItemKind(kind)]

    def rename(self, kind: ItemKind, item_id: str, new_code: str) -> Union[Shelf, Box, Sample]:
        """
        Replace the code of a shelf, box or sample.

        Sibling uniqueness is not re-checked: two boxes of a shelf can end up
        sharing a code through rename.
        """
        kind = ItemKind(kind)
        with self._transaction() as state:
            item = self._arena(state, kind).get(item_id)
            if item is None:
                raise NotFoundError(f"{kind.value.title()} {item_id} not found",
                                    details={'kind': kind.value, 'id': item_id})
            old_code = item.code
            item.code = new_code
            self.audit.add(state, RENAME_ACTIONS[kind],
                           f"{kind.value.title()} renamed from {old_code} to {new_code}",
                           kind, new_code)
        logger.info(f"Renamed {kind.value} {old_code} -> {new_code}")
        return item

    def move(self, kind: ItemKind, item_id: str, target_parent_id: str) -> Union[Box, Sample]:
        """
        Move a sample to another box, or a box to another shelf.

        The item is appended at the end of the target's children.

        Raises:
            NotFoundError: item or target unknown (nothing is changed).
            ValueError: shelves have no parent to move to.
        """
        kind = ItemKind(kind)
        if kind == ItemKind.SHELF:
            raise ValueError("Shelves cannot be moved")

        with self._transaction() as state:
            if kind == ItemKind.SAMPLE:
                return self._move_sample(state, item_id, target_parent_id)
            return self._move_box(state, item_id, target_parent_id)

    def _move_sample(self, state: AppState, sample_id: str, target_box_id: str) -> Sample:
        sample = state.samples.get(sample_id)
        target = state.boxes.get(target_box_id)
        if sample is None or target is None:
            raise NotFoundError("Sample or target box not found",
                                details={'sample_id': sample_id, 'box_id': target_box_id})

        source = state.boxes[sample.box_id]
        source.sample_ids.remove(sample.id)
        target.sample_ids.append(sample.id)
        sample.box_id = target.id
        sample.shelf_id = target.shelf_id

        self.audit.add(state, AuditAction.SAMPLE_MOVED,
                       f"Sample moved: {sample.code} from box {source.code} to box {target.code}",
                       ItemKind.SAMPLE, sample.code)
        logger.info(f"Moved sample {sample.code} from {source.code} to {target.code}")
        return sample

    def _move_box(self, state: AppState, box_id: str, target_shelf_id: str) -> Box:
        box = state.boxes.get(box_id)
        target = state.shelves.get(target_shelf_id)
        if box is None or target is None:
            raise NotFoundError("Box or target shelf not found",
                                details={'box_id': box_id, 'shelf_id': target_shelf_id})

        source = state.shelves[box.shelf_id]
        source.box_ids.remove(box.id)
        target.box_ids.append(box.id)
        box.shelf_id = target.id
        for sample in state.iter_samples(box):
            sample.shelf_id = target.id

        self.audit.add(state, AuditAction.BOX_MOVED,
                       f"Box moved: {box.code} from shelf {source.code} to shelf {target.code}",
                       ItemKind.BOX, box.code)
        logger.info(f"Moved box {box.code} from {source.code} to {target.code}")
        return box

    # ==================== Bulk status changes ====================

    def bulk_dispose(self, selection: Union[Selection, dict]) -> BulkResult:
        """Dispose every selected item and everything it contains."""
        with self._transaction() as state:
            result = self._bulk_transition(state, self._as_selection(selection), ItemStatus.DISPOSED)
        logger.info(f"Disposed {result.count} items ({result.cascaded} cascaded)")
        return result

    def bulk_delete(self, selection: Union[Selection, dict], password: str) -> BulkResult:
        """
        Delete every selected item and everything it contains.

        The password is checked before anything is touched.

        Raises:
            AuthFailedError: wrong password or no authenticator configured.
        """
        if self._authenticator is None or not self._authenticator.authenticate(password):
            logger.warning("Bulk delete rejected: password check failed")
            raise AuthFailedError("Incorrect password")

        with self._transaction() as state:
            result = self._bulk_transition(state, self._as_selection(selection), ItemStatus.DELETED)
        logger.info(f"Deleted {result.count} items ({result.cascaded} cascaded)")
        return result

    @staticmethod
    def _as_selection(selection: Union[Selection, dict]) -> Selection:
        if isinstance(selection, Selection):
            return selection
        return Selection.from_dict(selection)

    def _set_status(self, item, status: ItemStatus, now: datetime) -> bool:
        if not can_transition(item.status, status):
            return False
        item.status = status
        if status == ItemStatus.DISPOSED:
            item.disposed_at = now
        else:
            item.deleted_at = now
        return True

    def _cascade_box(self, state: AppState, box: Box, status: ItemStatus, now: datetime) -> int:
        count = 0
        for sample in state.iter_samples(box):
            if self._set_status(sample, status, now):
                count += 1
        return count

    def _bulk_transition(self, state: AppState, selection: Selection, status: ItemStatus) -> BulkResult:
        now = self._clock()
        actions = BULK_ACTIONS[status]
        verb = STATUS_VERBS[status]
        result = BulkResult(status=status)

        for sample_id in selection.samples:
            sample = state.samples.get(sample_id)
            if sample is None or not self._set_status(sample, status, now):
                result.skipped.append((ItemKind.SAMPLE, sample_id))
                continue
            box = state.boxes[sample.box_id]
            shelf = state.shelves[sample.shelf_id]
            self.audit.add(state, actions[ItemKind.SAMPLE],
                           f"Sample {verb}: {sample.code} from box {box.code} of shelf {shelf.code}",
                           ItemKind.SAMPLE, sample.code)
            result.transitioned.append((ItemKind.SAMPLE, sample_id))

        for box_id in selection.boxes:
            box = state.boxes.get(box_id)
            if box is None:
                result.skipped.append((ItemKind.BOX, box_id))
                continue
            changed = self._set_status(box, status, now)
            # Children added after an earlier disposal still follow the container
            result.cascaded += self._cascade_box(state, box, status, now)
            if not changed:
                result.skipped.append((ItemKind.BOX, box_id))
                continue
            shelf = state.shelves[box.shelf_id]
            self.audit.add(state, actions[ItemKind.BOX],
                           f"Box {verb}: {box.code} from shelf {shelf.code}",
                           ItemKind.BOX, box.code)
            result.transitioned.append((ItemKind.BOX, box_id))

        for shelf_id in selection.shelves:
            shelf = state.shelves.get(shelf_id)
            if shelf is None:
                result.skipped.append((ItemKind.SHELF, shelf_id))
                continue
            changed = self._set_status(shelf, status, now)
            for box in state.iter_boxes(shelf):
                if self._set_status(box, status, now):
                    result.cascaded += 1
                result.cascaded += self._cascade_box(state, box, status, now)
            if not changed:
                result.skipped.append((ItemKind.SHELF, shelf_id))
                continue
            self.audit.add(state, actions[ItemKind.SHELF],
                           f"Shelf {verb}: {shelf.code}", ItemKind.SHELF, shelf.code)
            result.transitioned.append((ItemKind.SHELF, shelf_id))

        if result.skipped:
            logger.debug(f"Skipped {len(result.skipped)} items during bulk {verb}")
        return result

    # ==================== Session and settings ====================

    def login(self, operator: str) -> Optional[LogEntry]:
        """Set the current operator and log the access."""
        with self._transaction() as state:
            state.current_operator = operator
            entry = self.audit.add(state, AuditAction.LOGIN,
                                   f"Operator {operator} logged in", ItemKind.SHELF, "")
        logger.info(f"Operator {operator} logged in")
        return entry

    def logout(self) -> Optional[LogEntry]:
        """Log the logout and clear the current operator."""
        operator = self._state.current_operator
        if operator is None:
            return None
        with self._transaction() as state:
            entry = self.audit.add(state, AuditAction.LOGOUT,
                                   f"Operator {operator} logged out", ItemKind.SHELF, "")
            state.current_operator = None
        logger.info(f"Operator {operator} logged out")
        return entry

    def update_printer_settings(
        self,
        default_width: float,
        default_height: float,
        selected_printer: str,
    ) -> Optional[LogEntry]:
        with self._transaction() as state:
            printer = state.settings.printer_settings
            printer.default_width = default_width
            printer.default_height = default_height
            printer.selected_printer = selected_printer
            return self.audit.add(
                state, AuditAction.PRINTER_SETTINGS,
                f"Printer settings updated: {default_width}x{default_height}cm, "
                f"printer: {selected_printer}",
                ItemKind.SAMPLE, "",
            )

    def record(
        self,
        action: Union[AuditAction, str],
        details: str,
        item_type: ItemKind = ItemKind.SAMPLE,
        item_code: str = "",
    ) -> Optional[LogEntry]:
        """Log an operation performed outside the store (export, password change)."""
        with self._transaction() as state:
            return self.audit.add(state, action, details, item_type, item_code)
