"""
Roster page controller: filter state, pagination, and stale-safe rendering.

Each public operation validates its argument, mutates FilterState
synchronously, advances the generation, and triggers exactly one fetch.
The fetch result reaches ``on_page_ready`` only if RenderGuard accepts it,
so rapid clicks can never paint an outdated page.

Usage:
    controller = RosterPageController(service, on_page_ready=render)
    await controller.refresh()
    await controller.set_status_filter({CustomerStatus.FOLLOW_UP})
    await controller.set_page(2)
"""

from dataclasses import replace
from typing import Callable, Iterable, Optional, Union

from roster.config import settings
from roster.logging_context import get_session_logger, new_session_id, session_scope
from roster.presentation.count_recovery import recover_total
from roster.presentation.record_mapper import from_stored
from roster.presentation.render_guard import RenderGuard
from roster.schemas.customer_schema import (
    PSEUDO_STATUSES,
    CustomerRecord,
    CustomerStatus,
)
from roster.schemas.roster_schema import (
    FilterState,
    RosterPage,
    RosterQuery,
    RosterView,
)
from roster.services.roster_service import RosterService, RosterServiceError

logger = get_session_logger(__name__)

PageReadyCallback = Callable[[RosterPage], None]
FetchFailedCallback = Callable[[RosterServiceError], None]

PSEUDO_FILTER_NAMES = ("old_clients",)


class RosterPageController:
    """
    Owns one roster session's FilterState and generation counter.

    All mutation happens before the first ``await`` of an operation, so the
    generation captured by a fetch is always the one its mutation produced.
    """

    def __init__(
        self,
        service: RosterService,
        *,
        view: RosterView = RosterView.ACTIVE,
        page_size: Optional[int] = None,
        page_size_options: Optional[Iterable[int]] = None,
        min_estimated_pages: Optional[int] = None,
        on_page_ready: Optional[PageReadyCallback] = None,
        on_fetch_failed: Optional[FetchFailedCallback] = None,
        session_id: Optional[str] = None,
    ) -> None:
        self._service = service
        self._view = view
        self._page_size_options = tuple(
            page_size_options or settings.pagination.page_size_options
        )
        size = page_size or settings.pagination.default_page_size
        if size not in self._page_size_options:
            raise ValueError(
                f"Page size {size} is not one of {list(self._page_size_options)}"
            )
        self._min_estimated_pages = (
            min_estimated_pages or settings.pagination.min_estimated_pages
        )
        self._state = FilterState(page_size=size)
        self._guard = RenderGuard()
        self._on_page_ready = on_page_ready
        self._on_fetch_failed = on_fetch_failed
        self._last_page: Optional[RosterPage] = None
        self._last_error: Optional[RosterServiceError] = None
        self.session_id = session_id or new_session_id()

    # ------------------------------------------------------------------ #
    # Read-only views
    # ------------------------------------------------------------------ #

    @property
    def state(self) -> FilterState:
        """A snapshot of the filter state; mutate through the controller only."""
        return replace(
            self._state,
            statuses=set(self._state.statuses),
            pseudo_filters=dict(self._state.pseudo_filters),
        )

    @property
    def generation(self) -> int:
        return self._guard.current

    @property
    def guard(self) -> RenderGuard:
        return self._guard

    @property
    def view(self) -> RosterView:
        return self._view

    @property
    def page_size_options(self) -> tuple[int, ...]:
        return self._page_size_options

    @property
    def last_page(self) -> Optional[RosterPage]:
        """The most recently rendered page; kept through fetch failures."""
        return self._last_page

    @property
    def last_error(self) -> Optional[RosterServiceError]:
        return self._last_error

    # ------------------------------------------------------------------ #
    # State-mutating operations
    # ------------------------------------------------------------------ #

    async def set_status_filter(
        self, statuses: Iterable[Union[CustomerStatus, str]]
    ) -> Optional[RosterPage]:
        """Restrict the roster to ``statuses`` (empty means all) and go to page 1."""
        selected = self._validate_statuses(statuses)
        self._state.statuses = selected
        self._state.page = 1
        return await self._transition(f"status filter -> {sorted(s.value for s in selected)}")

    async def set_pseudo_filter(self, name: str, enabled: bool) -> Optional[RosterPage]:
        """Toggle a computed filter such as ``old_clients`` and go to page 1."""
        if name not in PSEUDO_FILTER_NAMES:
            raise ValueError(
                f"Unknown pseudo filter '{name}'. Available: {list(PSEUDO_FILTER_NAMES)}"
            )
        self._state.pseudo_filters[name] = bool(enabled)
        self._state.page = 1
        return await self._transition(f"pseudo filter {name}={bool(enabled)}")

    async def set_page(self, page: int) -> Optional[RosterPage]:
        """Go to ``page``. Re-selecting the page on screen does nothing.

        A page whose fetch failed is not on screen, so selecting it again retries.
        """
        if isinstance(page, bool) or not isinstance(page, int) or page < 1:
            raise ValueError(f"Page must be an integer >= 1, got {page!r}")
        if page == self._state.page and self._is_showing(page):
            return None
        self._state.page = page
        return await self._transition(f"page -> {page}")

    async def set_page_size(self, page_size: int) -> Optional[RosterPage]:
        """Change the page size and go to page 1."""
        if page_size not in self._page_size_options:
            raise ValueError(
                f"Page size {page_size!r} is not one of {list(self._page_size_options)}"
            )
        self._state.page_size = page_size
        self._state.page = 1
        return await self._transition(f"page size -> {page_size}")

    async def refresh(self) -> Optional[RosterPage]:
        """Refetch the current page, e.g. after an import."""
        return await self._transition("refresh")

    # ------------------------------------------------------------------ #
    # Fetching
    # ------------------------------------------------------------------ #

    def build_query(self) -> RosterQuery:
        """Translate FilterState into a backend query.

        The backend supports one status predicate per request, so only a
        single selected status is sent; several are applied client-side.
        """
        statuses = self._state.statuses
        server_status = None
        if self._view == RosterView.ACTIVE and len(statuses) == 1:
            server_status = next(iter(statuses))
        return RosterQuery(
            page=self._state.page,
            page_size=self._state.page_size,
            status=server_status,
            old_clients=self._state.pseudo_filters.get("old_clients", False),
            archived=self._view == RosterView.ARCHIVE,
        )

    async def fetch_page(self) -> RosterPage:
        """
        Fetch the page described by the current FilterState.

        Returns:
            A RosterPage stamped with the generation current at call time.

        Raises:
            RosterServiceError: If the listing request fails.
        """
        generation = self._guard.current
        query = self.build_query()
        filter_active = self._state.is_filtered() or self._view == RosterView.ARCHIVE

        response = await self._service.list_roster(query)
        records = [from_stored(raw) for raw in response.records]
        records, client_filtered = self._apply_client_filters(records)

        total = await recover_total(
            response,
            query,
            self._service.get_aggregate_stats,
            filter_active=filter_active,
            client_filtered=client_filtered,
            shown=len(records),
            min_estimated_pages=self._min_estimated_pages,
        )
        return RosterPage(
            records=records,
            total=total,
            page=query.page,
            page_size=query.page_size,
            generation=generation,
        )

    async def _transition(self, reason: str) -> Optional[RosterPage]:
        with session_scope(self.session_id):
            generation = self._guard.advance()
            logger.debug("Generation %d: %s", generation, reason)
            return await self._load(generation)

    async def _load(self, generation: int) -> Optional[RosterPage]:
        """Fetch, then render only if ``generation`` is still current."""
        try:
            page = await self.fetch_page()
        except RosterServiceError as e:
            if not self._guard.is_current(generation):
                logger.debug("Ignoring failure of stale generation %d: %s", generation, e)
                return None
            self._last_error = e
            logger.warning("Roster fetch failed; keeping last page: %s", e)
            if self._on_fetch_failed is not None:
                self._on_fetch_failed(e)
            return None

        if not self._guard.accept(page):
            return None

        self._last_page = page
        self._last_error = None
        logger.info(
            "Rendering page %d/%d (%d records, total %d %s via %s)",
            page.page, page.page_count, len(page.records),
            page.total.value, page.total.confidence.value, page.total.source.value,
        )
        if self._on_page_ready is not None:
            self._on_page_ready(page)
        return page

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _is_showing(self, page: int) -> bool:
        return self._last_page is not None and self._last_page.page == page

    def _validate_statuses(
        self, statuses: Iterable[Union[CustomerStatus, str]]
    ) -> set[CustomerStatus]:
        selected: set[CustomerStatus] = set()
        for raw in statuses:
            try:
                status = CustomerStatus(raw)
            except ValueError:
                raise ValueError(f"Unknown status: {raw!r}") from None
            if status in PSEUDO_STATUSES:
                raise ValueError(
                    f"'{status.value}' is computed; use set_pseudo_filter('{status.value}', True)"
                )
            if status == CustomerStatus.ARCHIVED:
                raise ValueError("Archived records are listed by the archive view")
            selected.add(status)
        return selected

    def _apply_client_filters(
        self, records: list[CustomerRecord]
    ) -> tuple[list[CustomerRecord], bool]:
        """Apply filters the backend cannot express. Returns (records, narrowed).

        ``narrowed`` is True when the server's count may include rows that
        are not shown: some were dropped here, or several statuses are
        matched locally.
        """
        statuses = self._state.statuses
        want_archived = self._view == RosterView.ARCHIVE

        kept = [r for r in records if r.archived == want_archived]
        narrowed = len(kept) != len(records)

        if want_archived and statuses:
            kept = [
                r for r in kept
                if (r.previous_status or CustomerStatus.PENDING) in statuses
            ]
            narrowed = True
        elif not want_archived and len(statuses) > 1:
            kept = [r for r in kept if r.status in statuses]
            narrowed = True
        return kept, narrowed
