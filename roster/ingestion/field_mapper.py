"""
Header label to canonical field mapping.

Spreadsheet exports name their columns inconsistently ("Mobile", "E-mail",
"First_Name", "Address1"). Every label is normalized and matched against a
fixed rule table so the normalizer knows which column feeds which field.
"""

import logging
from enum import Enum
from functools import lru_cache
from typing import Optional

from roster.utils import normalize_label

logger = logging.getLogger(__name__)


class CanonicalField(str, Enum):
    """Identity attributes that import columns are mapped onto."""

    FIRST_NAME = "firstName"
    LAST_NAME = "lastName"
    NAME = "name"
    EMAIL = "email"
    PHONE = "phone"
    ADDRESS = "address"


EXACT_LABELS: dict[str, CanonicalField] = {
    "name": CanonicalField.NAME,
    "email": CanonicalField.EMAIL,
    "phone": CanonicalField.PHONE,
    "mobile": CanonicalField.PHONE,
    "contact": CanonicalField.PHONE,
    "address": CanonicalField.ADDRESS,
    "state": CanonicalField.ADDRESS,
    "address line": CanonicalField.ADDRESS,
    "address1": CanonicalField.ADDRESS,
}

# Checked in order after the exact table misses.
TOKEN_RULES: list[tuple[tuple[str, ...], CanonicalField]] = [
    (("first", "name"), CanonicalField.FIRST_NAME),
    (("last", "name"), CanonicalField.LAST_NAME),
]


@lru_cache(maxsize=1024)
def map_header(label: str) -> Optional[CanonicalField]:
    """Map a raw header label to its canonical field, or None to ignore the column."""
    normalized = normalize_label(label)
    if not normalized:
        return None

    exact = EXACT_LABELS.get(normalized)
    if exact is not None:
        return exact

    for tokens, canonical in TOKEN_RULES:
        if all(token in normalized for token in tokens):
            return canonical

    return None


def build_column_map(headers: list[str]) -> dict[CanonicalField, int]:
    """Map each canonical field to its column index. Later columns win."""
    column_map: dict[CanonicalField, int] = {}
    for index, label in enumerate(headers):
        canonical = map_header(label)
        if canonical is None:
            continue
        if canonical in column_map:
            logger.debug(
                "Column %d (%r) overrides column %d for %s",
                index, label, column_map[canonical], canonical.value,
            )
        column_map[canonical] = index
    return column_map
