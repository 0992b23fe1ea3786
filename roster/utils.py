"""Shared utilities used across the roster engine."""

import re
from typing import Any

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def normalize_label(value: str) -> str:
    """Lower-case a label, collapse non-alphanumeric runs to one space, and trim.

    Examples:
        >>> normalize_label("  First_Name ")
        'first name'
        >>> normalize_label("E-Mail Address:")
        'e mail address'
    """
    return _NON_ALNUM.sub(" ", value.lower()).strip()


def cell_text(value: Any) -> str:
    """Render a raw spreadsheet cell as trimmed text; None becomes ``""``."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def split_full_name(name: str) -> tuple[str, str]:
    """Split a display name into (first, last) on whitespace.

    Examples:
        >>> split_full_name("John Q Public")
        ('John', 'Q Public')
        >>> split_full_name("Cher")
        ('Cher', '')
    """
    parts = name.split()
    if not parts:
        return "", ""
    return parts[0], " ".join(parts[1:])
