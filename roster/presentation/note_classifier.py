"""
Address-or-comment heuristic for the legacy ``notes`` column.

Older rows keep a single free-text ``notes`` field that held either a
street address or a call comment. This is a heuristic: misclassification
is an accepted limitation, not a bug.
"""

import re
from enum import Enum


class NoteKind(str, Enum):
    ADDRESS = "address"
    COMMENT = "comment"


STREET_SUFFIXES = (
    "street", "st", "avenue", "ave", "road", "rd", "drive", "dr",
    "lane", "ln", "boulevard", "blvd", "court", "ct",
)

_LEADING_STREET_NUMBER = re.compile(r"^\d+\s+[A-Za-z]")
_STREET_SUFFIX = re.compile(r"\b(?:" + "|".join(STREET_SUFFIXES) + r")\b", re.IGNORECASE)
_DIGIT = re.compile(r"\d")


def _has_address_comma(notes: str) -> bool:
    # A comma only counts alongside a digit (house number, zip code).
    return "," in notes and _DIGIT.search(notes) is not None


def classify(notes: str) -> NoteKind:
    """Classify a notes string as address-like or comment-like.

    Examples:
        >>> classify("123 Main St, Springfield").value
        'address'
        >>> classify("Called twice, no answer").value
        'comment'
    """
    if not notes or not notes.strip():
        return NoteKind.COMMENT
    if (
        _has_address_comma(notes)
        or _LEADING_STREET_NUMBER.match(notes)
        or _STREET_SUFFIX.search(notes)
    ):
        return NoteKind.ADDRESS
    return NoteKind.COMMENT
