"""
Barcode classification.

Maps a scanned or typed code to the hierarchy level it names. Codes starting
with ``AL`` are used both for shelves and for boxes of ground material, so the
caller passes the kind it currently expects to resolve them.
"""

import re
from typing import Optional

from samplebuddy.inventory.models import ItemKind, SampleType

SHELF_PREFIXES = ("SCAFFALE", "SC")
BOX_PREFIXES = ("CASSETTA", "CA")
AMBIGUOUS_PREFIX = "AL"

SAMPLE_PATTERN = re.compile(r"^\d+.*-.*")


def is_ambiguous(code: str) -> bool:
    """True when ``code`` could name either a shelf or a box."""
    return code.upper().startswith(AMBIGUOUS_PREFIX)


def classify(code: str, expected: Optional[ItemKind] = None) -> ItemKind:
    """
    Classify a code as shelf, box or sample.

    Args:
        code: Scanned or typed code.
        expected: Kind the caller is waiting for. Only used for ``AL`` codes,
            which become a box when a box is expected and a shelf otherwise.

    Returns:
        The item kind. Unrecognized codes fall back to sample.
    """
    upper_code = code.upper()
    if upper_code.startswith(SHELF_PREFIXES):
        return ItemKind.SHELF
    if upper_code.startswith(BOX_PREFIXES):
        return ItemKind.BOX
    if upper_code.startswith(AMBIGUOUS_PREFIX):
        return ItemKind.BOX if expected == ItemKind.BOX else ItemKind.SHELF
    if SAMPLE_PATTERN.match(code):
        return ItemKind.SAMPLE
    return ItemKind.SAMPLE


def derive_sample_subtype(shelf_code: str, box_code: str) -> SampleType:
    """Ground material (MC) lives only in AL boxes on AL shelves."""
    if shelf_code.upper().startswith("AL") and box_code.upper().startswith("AL"):
        return SampleType.MC
    return SampleType.TQ


def shelf_prefix(code: str) -> str:
    upper_code = code.upper()
    if upper_code.startswith("AL"):
        return "AL"
    if upper_code.startswith("SC"):
        return "SC"
    return "SCAFFALE"


def box_prefix(code: str) -> str:
    upper_code = code.upper()
    if upper_code.startswith("AL"):
        return "AL"
    if upper_code.startswith("CA"):
        return "CA"
    return "CASSETTA"
