"""Reconcile raw stored rows into CustomerRecords for the presentation layer."""

import logging
from typing import Any, Optional, Union

from pydantic import ValidationError

from roster.presentation.note_classifier import NoteKind, classify
from roster.schemas.customer_schema import CallStatus, CustomerRecord, CustomerStatus
from roster.utils import split_full_name

logger = logging.getLogger(__name__)


def _text(raw: dict[str, Any], *keys: str) -> str:
    """First non-empty value among ``keys``, as stripped text."""
    for key in keys:
        value = raw.get(key)
        if value is not None and str(value).strip():
            return str(value).strip()
    return ""


def _status(value: str, default: CustomerStatus) -> CustomerStatus:
    if not value:
        return default
    try:
        return CustomerStatus(value)
    except ValueError:
        logger.warning("Unknown stored status %r, using '%s'", value, default.value)
        return default


def _record_id(value: Any) -> Optional[Union[int, str]]:
    """Ids are opaque; anything other than an int or str is kept as text."""
    if value is None or (isinstance(value, (int, str)) and not isinstance(value, bool)):
        return value
    return str(value)


def _call_status(value: str) -> CallStatus:
    try:
        return CallStatus(value) if value else CallStatus.NOT_CALLED
    except ValueError:
        logger.warning("Unknown stored call status %r", value)
        return CallStatus.NOT_CALLED


def from_stored(raw: dict[str, Any]) -> CustomerRecord:
    """
    Build a CustomerRecord from a stored row.

    Accepts both camelCase and snake_case keys. A legacy ``name`` is split
    when first/last are missing. A legacy ``notes`` value fills at most one
    of address/comments, chosen by the note classifier, and only when that
    attribute is not stored explicitly.
    """
    first_name = _text(raw, "firstName", "first_name")
    last_name = _text(raw, "lastName", "last_name")
    if not first_name and not last_name:
        first_name, last_name = split_full_name(_text(raw, "name"))

    address = _text(raw, "address")
    comments = _text(raw, "comments")
    notes = _text(raw, "notes")
    if notes and not (address and comments):
        kind = classify(notes)
        if kind == NoteKind.ADDRESS and not address:
            address = notes
        elif kind == NoteKind.COMMENT and not comments:
            comments = notes

    status = _status(_text(raw, "status"), CustomerStatus.PENDING)
    previous_raw = _text(raw, "previousStatus", "previous_status")
    previous_status: Optional[CustomerStatus] = (
        _status(previous_raw, CustomerStatus.PENDING) if previous_raw else None
    )
    archived = bool(raw.get("archived")) or status == CustomerStatus.ARCHIVED

    fields: dict[str, Any] = {
        "id": _record_id(raw.get("id")),
        "first_name": first_name,
        "last_name": last_name,
        "phone": _text(raw, "phone"),
        "email": _text(raw, "email"),
        "address": address,
        "status": status,
        "call_status": _call_status(_text(raw, "callStatus", "call_status")),
        "comments": comments,
        "assigned_to": _text(raw, "assignedTo", "assigned_to"),
        "archived": archived,
        "previous_status": previous_status,
    }
    created_at = raw.get("createdAt") or raw.get("created_at")
    try:
        return CustomerRecord(**fields, created_at=created_at)
    except ValidationError:
        logger.warning("Unparseable createdAt %r on record %s", created_at, raw.get("id"))
        return CustomerRecord(**fields)
