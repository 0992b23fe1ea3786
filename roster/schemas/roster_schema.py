"""Roster listing, filter state, and page models."""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from roster.schemas.customer_schema import CustomerRecord, CustomerStatus


def _lenient_count(value: Any) -> Optional[float]:
    """Coerce an unreliable backend count to a finite float, or None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


class Pagination(BaseModel):
    """Pagination block of a listing response. Every field is optional and untrusted."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    total_records: Optional[float] = Field(default=None, alias="totalRecords")
    total_pages: Optional[float] = Field(default=None, alias="totalPages")

    @field_validator("total_records", "total_pages", mode="before")
    @classmethod
    def _coerce(cls, value: Any) -> Optional[float]:
        return _lenient_count(value)


class RosterListResponse(BaseModel):
    """One page of raw stored records as returned by the roster service."""

    records: list[dict[str, Any]] = Field(default_factory=list)
    pagination: Pagination = Field(default_factory=Pagination)


class AggregateStats(BaseModel):
    """Dashboard statistics. ``total_customers`` is the unfiltered dataset size."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    total_customers: Optional[float] = Field(default=None, alias="totalCustomers")

    @field_validator("total_customers", mode="before")
    @classmethod
    def _coerce(cls, value: Any) -> Optional[float]:
        return _lenient_count(value)


class BulkCreateResult(BaseModel):
    """Outcome of a bulk-create call; partial success is normal."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    imported_count: int = Field(default=0, alias="importedCount")
    error_count: int = Field(default=0, alias="errorCount")
    total_records: int = Field(default=0, alias="totalRecords")
    errors: list[str] = Field(default_factory=list)


class CountConfidence(str, Enum):
    EXACT = "exact"
    APPROXIMATE = "approximate"


class CountSource(str, Enum):
    """Which stage of the recovery chain produced a total."""

    REPORTED = "reported"
    AGGREGATE = "aggregate"
    ESTIMATED = "estimated"
    OBSERVED = "observed"


class TotalCount(BaseModel):
    value: int
    confidence: CountConfidence
    source: CountSource


class RosterView(str, Enum):
    ACTIVE = "active"
    ARCHIVE = "archive"


class RosterPage(BaseModel):
    """Result of one completed fetch, stamped with the generation that requested it."""

    records: list[CustomerRecord] = Field(default_factory=list)
    total: TotalCount
    page: int
    page_size: int
    generation: int

    @property
    def page_count(self) -> int:
        return math.ceil(self.total.value / self.page_size)

    @property
    def has_next_page(self) -> bool:
        return self.page < self.page_count


@dataclass(frozen=True)
class RosterQuery:
    """Request parameters sent to ``RosterService.list_roster``."""

    page: int
    page_size: int
    status: Optional[CustomerStatus] = None
    old_clients: bool = False
    archived: bool = False


@dataclass
class FilterState:
    """
    Per-session roster filter state.

    Owned by exactly one RosterPageController and mutated only through it.
    An empty ``statuses`` set means no status restriction.
    """

    page_size: int
    statuses: set[CustomerStatus] = field(default_factory=set)
    pseudo_filters: dict[str, bool] = field(default_factory=lambda: {"old_clients": False})
    page: int = 1

    def is_filtered(self) -> bool:
        return bool(self.statuses) or any(self.pseudo_filters.values())


@dataclass
class ImportSummary:
    """Counts reported to the caller after an import run."""

    imported: int = 0
    skipped: int = 0
    failed: int = 0
    total: int = 0
    header_row_index: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.failed == 0
