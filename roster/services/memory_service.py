"""
In-memory roster store for offline use.

Mimics the REST backend closely enough to exercise the roster core
without a server: records are stored in the legacy shape (single ``name``
and ``notes`` columns), listing is newest-first, and pagination metadata
can be switched off to reproduce the backend's unreliable counts.
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional, Sequence

from roster.config import settings
from roster.schemas.customer_schema import CustomerRecord, CustomerStatus
from roster.schemas.roster_schema import (
    AggregateStats,
    BulkCreateResult,
    RosterListResponse,
    RosterQuery,
)
from roster.services.roster_service import RosterTransportError

logger = logging.getLogger(__name__)


class InMemoryRosterService:
    """RosterService implementation over a list of stored dicts."""

    def __init__(
        self,
        *,
        report_totals: bool = True,
        stats_total: Optional[int] = None,
        latency: float = 0.0,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.report_totals = report_totals
        self.stats_total = stats_total
        self.latency = latency
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._rows: list[dict[str, Any]] = []
        self._next_id = 1
        self._pending_failures = 0
        self.list_calls: list[RosterQuery] = []

    # ------------------------------------------------------------------ #
    # Test and demo hooks
    # ------------------------------------------------------------------ #

    def seed(self, rows: Sequence[dict[str, Any]]) -> None:
        """Insert raw stored rows as-is, assigning ids where missing."""
        for row in rows:
            stored = dict(row)
            if stored.get("id") is None:
                stored["id"] = self._allocate_id()
            self._rows.append(stored)

    def fail_next(self, count: int = 1) -> None:
        """Make the next ``count`` listing calls raise a transport error."""
        self._pending_failures += count

    def reset(self) -> None:
        """Clear all records and hooks."""
        self._rows.clear()
        self._next_id = 1
        self._pending_failures = 0
        self.list_calls.clear()

    def stored_rows(self) -> list[dict[str, Any]]:
        return [dict(row) for row in self._rows]

    def _allocate_id(self) -> int:
        allocated = self._next_id
        self._next_id += 1
        return allocated

    # ------------------------------------------------------------------ #
    # RosterService protocol
    # ------------------------------------------------------------------ #

    async def list_roster(self, query: RosterQuery) -> RosterListResponse:
        self.list_calls.append(query)
        if self.latency:
            await asyncio.sleep(self.latency)
        if self._pending_failures:
            self._pending_failures -= 1
            raise RosterTransportError("Simulated connection failure")

        matching = [row for row in self._rows if self._matches(row, query)]
        matching.sort(key=lambda row: str(row.get("created_at") or ""), reverse=True)

        start = (query.page - 1) * query.page_size
        records = matching[start:start + query.page_size]

        pagination: dict[str, Any] = {}
        if self.report_totals:
            total = len(matching)
            pagination = {
                "totalRecords": total,
                "totalPages": -(-total // query.page_size),
            }
        return RosterListResponse(records=records, pagination=pagination)

    async def get_aggregate_stats(self) -> AggregateStats:
        total = self.stats_total if self.stats_total is not None else len(self._rows)
        return AggregateStats(total_customers=total)

    async def bulk_create(self, records: Sequence[CustomerRecord]) -> BulkCreateResult:
        imported = 0
        errors: list[str] = []
        for position, record in enumerate(records):
            if record.is_blank():
                errors.append(f"Record {position + 1}: no name, email, or phone")
                continue
            self._rows.append(self._to_stored(record))
            imported += 1

        if errors:
            logger.warning("Rejected %d blank record(s) in bulk create", len(errors))
        return BulkCreateResult(
            imported_count=imported,
            error_count=len(errors),
            total_records=len(records),
            errors=errors,
        )

    # ------------------------------------------------------------------ #
    # Storage helpers
    # ------------------------------------------------------------------ #

    def _matches(self, row: dict[str, Any], query: RosterQuery) -> bool:
        archived = bool(row.get("archived")) or row.get("status") == CustomerStatus.ARCHIVED.value
        if archived != query.archived:
            return False
        if query.status is not None and row.get("status") != query.status.value:
            return False
        if query.old_clients:
            created_at = _parse_timestamp(row.get("created_at"))
            cutoff = self._clock() - timedelta(days=settings.filters.old_client_age_days)
            if created_at is None or created_at >= cutoff:
                return False
        return True

    def _to_stored(self, record: CustomerRecord) -> dict[str, Any]:
        """Flatten a record into the legacy single-notes-column shape."""
        created_at = record.created_at or self._clock()
        return {
            "id": self._allocate_id(),
            "name": record.name or "Unknown",
            "email": record.email or None,
            "phone": record.phone or None,
            "status": record.status.value,
            "assigned_to": record.assigned_to or None,
            "notes": record.comments or record.address or None,
            "created_at": created_at.isoformat(),
        }


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
