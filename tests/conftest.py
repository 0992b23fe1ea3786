"""Shared test fixtures and helpers."""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Sequence

import pytest

from roster.presentation.page_controller import RosterPageController
from roster.schemas.customer_schema import CustomerRecord
from roster.schemas.roster_schema import (
    AggregateStats,
    BulkCreateResult,
    RosterListResponse,
    RosterQuery,
)
from roster.services.memory_service import InMemoryRosterService
from roster.services.roster_service import RosterTransportError

FIXED_NOW = datetime(2025, 3, 15, 10, 0, tzinfo=timezone.utc)


def fixed_clock() -> datetime:
    return FIXED_NOW


@pytest.fixture
def memory_service():
    return InMemoryRosterService(clock=fixed_clock)


@pytest.fixture
def controller(memory_service):
    return RosterPageController(
        memory_service,
        page_size=2,
        page_size_options=(2, 5, 100),
    )


def make_stored(
    name: str = "Jane Doe",
    status: str = "pending",
    phone: Optional[str] = "555-0100",
    email: Optional[str] = None,
    notes: Optional[str] = None,
    age_days: int = 1,
    **extra: Any,
) -> dict[str, Any]:
    """Helper to create a stored row in the legacy single-name shape."""
    row: dict[str, Any] = {
        "name": name,
        "phone": phone,
        "email": email,
        "status": status,
        "notes": notes,
        "created_at": (FIXED_NOW - timedelta(days=age_days)).isoformat(),
    }
    row.update(extra)
    return row


def make_rows(count: int, status: str = "pending", **kwargs: Any) -> list[dict[str, Any]]:
    """Create ``count`` stored rows, newest first by index."""
    return [
        make_stored(name=f"Customer {i:03d}", status=status, age_days=i + 1, **kwargs)
        for i in range(count)
    ]


def make_response(
    count: int,
    pagination: Optional[dict[str, Any]] = None,
) -> RosterListResponse:
    """A listing response holding ``count`` stored rows."""
    return RosterListResponse(records=make_rows(count), pagination=pagination or {})


def stats_returning(total: Any):
    """Aggregate-stats fetcher stub returning ``total``."""

    async def fetch() -> AggregateStats:
        return AggregateStats(total_customers=total)

    return fetch


def stats_failing():
    async def fetch() -> AggregateStats:
        raise RosterTransportError("stats endpoint down")

    return fetch


class GatedRosterService:
    """
    Fake service whose listing calls block until released.

    Lets a test hold request A in flight, fire request B, and choose which
    response arrives first.
    """

    def __init__(self, rows: Optional[list[dict[str, Any]]] = None) -> None:
        self.rows = rows if rows is not None else make_rows(3)
        self.queries: list[RosterQuery] = []
        self._gates: list[asyncio.Event] = []
        self._failures: set[int] = set()

    def fail_call(self, index: int) -> None:
        """Make the listing call with this index raise once released."""
        self._failures.add(index)

    def release(self, index: int) -> None:
        self._gates[index].set()

    async def wait_for_calls(self, count: int) -> None:
        while len(self.queries) < count:
            await asyncio.sleep(0)

    async def list_roster(self, query: RosterQuery) -> RosterListResponse:
        index = len(self.queries)
        self.queries.append(query)
        gate = asyncio.Event()
        self._gates.append(gate)
        await gate.wait()
        if index in self._failures:
            raise RosterTransportError(f"call {index} failed")
        return RosterListResponse(
            records=[dict(row, id=f"{index}-{i}") for i, row in enumerate(self.rows)],
            pagination={"totalRecords": len(self.rows)},
        )

    async def get_aggregate_stats(self) -> AggregateStats:
        return AggregateStats(total_customers=len(self.rows))

    async def bulk_create(self, records: Sequence[CustomerRecord]) -> BulkCreateResult:
        return BulkCreateResult(imported_count=len(records), total_records=len(records))


class FlakyBulkService(InMemoryRosterService):
    """In-memory service whose bulk-create fails for chosen batch numbers."""

    def __init__(self, failing_batches: Sequence[int] = (), **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.failing_batches = set(failing_batches)
        self.batch_sizes: list[int] = []

    async def bulk_create(self, records: Sequence[CustomerRecord]) -> BulkCreateResult:
        self.batch_sizes.append(len(records))
        if len(self.batch_sizes) in self.failing_batches:
            raise RosterTransportError("HTTP 502 from /customers/bulk-upload")
        return await super().bulk_create(records)
