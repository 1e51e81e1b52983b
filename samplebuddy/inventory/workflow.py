"""
Archiving workflow.

A three-step cursor (shelf -> box -> sample) that turns a sequence of scans
into the right store calls. After a sample is archived the cursor starts over
from the shelf step.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from samplebuddy.inventory.classifier import classify
from samplebuddy.inventory.models import ItemKind

logger = logging.getLogger(__name__)


class ArchivingStep(str, Enum):
    SHELF = "shelf"
    BOX = "box"
    SAMPLE = "sample"


STEP_ORDER = [ArchivingStep.SHELF, ArchivingStep.BOX, ArchivingStep.SAMPLE]


@dataclass(frozen=True)
class ArchivingStatus:
    """Read-only view of the cursor for the status panel."""
    step: ArchivingStep
    current_shelf_code: Optional[str] = None
    current_box_code: Optional[str] = None

    def step_state(self, step: ArchivingStep) -> str:
        """'completed', 'current' or 'pending' for a step indicator."""
        index = STEP_ORDER.index(step)
        current = STEP_ORDER.index(self.step)
        if index < current:
            return "completed"
        if index == current:
            return "current"
        return "pending"


class ArchivingWorkflow:
    """
    Cursor over the archiving cycle.

    The cursor does not talk to the store itself: callers classify the code
    with ``classify``, run the store operation, and call ``advance`` only when
    the store accepted the scan.
    """

    def __init__(self):
        self.current_shelf_code: Optional[str] = None
        self.current_box_code: Optional[str] = None
        self.step = ArchivingStep.SHELF

    def expected_kind(self) -> ItemKind:
        return ItemKind(self.step.value)

    def classify(self, code: str) -> ItemKind:
        """Classify ``code``, resolving ``AL`` codes from the current step."""
        return classify(code, self.expected_kind())

    def advance(self, kind: ItemKind, code: str) -> ArchivingStatus:
        """Move the cursor after a successful scan of ``code``."""
        kind = ItemKind(kind)
        if kind == ItemKind.SHELF:
            self.current_shelf_code = code
            self.current_box_code = None
            self.step = ArchivingStep.BOX
        elif kind == ItemKind.BOX and self.current_shelf_code:
            self.current_box_code = code
            self.step = ArchivingStep.SAMPLE
        elif kind == ItemKind.SAMPLE and self.current_shelf_code and self.current_box_code:
            logger.debug(f"Archiving cycle completed with sample {code}")
            self.reset()
        return self.snapshot()

    def reset(self) -> ArchivingStatus:
        self.current_shelf_code = None
        self.current_box_code = None
        self.step = ArchivingStep.SHELF
        return self.snapshot()

    def snapshot(self) -> ArchivingStatus:
        return ArchivingStatus(
            step=self.step,
            current_shelf_code=self.current_shelf_code,
            current_box_code=self.current_box_code,
        )
