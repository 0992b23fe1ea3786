"""
Total-count recovery chain for listing responses with untrustworthy totals.

Strict priority order; each stage runs only if the previous one is
inapplicable:
1. Reported total:        positive finite ``totalRecords`` from the listing
2. Aggregate statistics:  ``totalCustomers`` from the stats endpoint
3. Full-page estimate:    a full slice means more data probably exists
4. Observed slice:        a short slice ends the dataset
"""

import logging
from typing import Awaitable, Callable, Optional

from roster.schemas.roster_schema import (
    AggregateStats,
    CountConfidence,
    CountSource,
    RosterListResponse,
    RosterQuery,
    TotalCount,
)
from roster.services.roster_service import RosterServiceError

logger = logging.getLogger(__name__)

StatsFetcher = Callable[[], Awaitable[AggregateStats]]


def _positive(value: Optional[float]) -> Optional[int]:
    if value is None or value <= 0:
        return None
    return int(value)


def estimate_total(page: int, page_size: int, min_estimated_pages: int) -> int:
    """Estimated total for a full slice: always leaves room for a next page."""
    return page_size * max(min_estimated_pages, page + 1)


async def recover_total(
    response: RosterListResponse,
    query: RosterQuery,
    fetch_stats: StatsFetcher,
    *,
    filter_active: bool,
    client_filtered: bool = False,
    shown: Optional[int] = None,
    min_estimated_pages: int = 2,
) -> TotalCount:
    """
    Resolve the total record count for a listing response.

    Args:
        response: The listing response, pagination possibly missing or junk.
        query: The query that produced the response.
        fetch_stats: Coroutine factory for the aggregate-statistics endpoint.
        filter_active: Any filter narrows the listing, so unfiltered
            aggregate totals are only approximate.
        client_filtered: Records were further filtered after the server
            counted them, so even a reported total is approximate.
        shown: Records left after client-side filtering. Used by the
            observed stage when ``client_filtered`` is set.
        min_estimated_pages: Lower bound on pages assumed by the estimate.
    """
    reported = _positive(response.pagination.total_records)
    if reported is not None:
        confidence = CountConfidence.APPROXIMATE if client_filtered else CountConfidence.EXACT
        return TotalCount(value=reported, confidence=confidence, source=CountSource.REPORTED)

    logger.warning("Listing did not report a usable total; querying aggregate statistics")
    try:
        stats = await fetch_stats()
        aggregate = _positive(stats.total_customers)
    except RosterServiceError as e:
        logger.warning("Aggregate statistics unavailable: %s", e)
        aggregate = None
    if aggregate is not None:
        confidence = (
            CountConfidence.APPROXIMATE
            if filter_active or client_filtered
            else CountConfidence.EXACT
        )
        return TotalCount(value=aggregate, confidence=confidence, source=CountSource.AGGREGATE)

    slice_length = len(response.records)
    if slice_length >= query.page_size:
        estimate = estimate_total(query.page, query.page_size, min_estimated_pages)
        logger.info("Estimating total as %d from a full page", estimate)
        return TotalCount(
            value=estimate,
            confidence=CountConfidence.APPROXIMATE,
            source=CountSource.ESTIMATED,
        )

    # Count only what survived client-side filtering.
    visible = shown if client_filtered and shown is not None else slice_length
    confidence = CountConfidence.APPROXIMATE if client_filtered else CountConfidence.EXACT
    observed = (query.page - 1) * query.page_size + visible
    return TotalCount(value=observed, confidence=confidence, source=CountSource.OBSERVED)
