"""
Roster backend interface and its REST adapter.

The controller and importer depend only on the RosterService protocol.
HttpRosterService talks to the dashboard's REST backend with aiohttp;
every transport problem (connection error, timeout, HTTP error status,
non-JSON body) surfaces as RosterTransportError.
"""

import asyncio
import logging
from typing import Any, Optional, Protocol, Sequence

import aiohttp
from pydantic import ValidationError

from roster.config import settings
from roster.schemas.customer_schema import CustomerRecord
from roster.schemas.roster_schema import (
    AggregateStats,
    BulkCreateResult,
    RosterListResponse,
    RosterQuery,
)

logger = logging.getLogger(__name__)


class RosterServiceError(Exception):
    """Base error for roster backend failures."""


class RosterTransportError(RosterServiceError):
    """Network error, timeout, error status, or unreadable response body."""


class RosterService(Protocol):
    """Operations the roster core consumes from the backend."""

    async def list_roster(self, query: RosterQuery) -> RosterListResponse: ...

    async def get_aggregate_stats(self) -> AggregateStats: ...

    async def bulk_create(self, records: Sequence[CustomerRecord]) -> BulkCreateResult: ...


def query_params(query: RosterQuery) -> dict[str, str]:
    """Build listing query-string parameters from a RosterQuery."""
    params = {"page": str(query.page), "limit": str(query.page_size)}
    if query.status is not None:
        params["status"] = query.status.value
    if query.old_clients:
        params["old_clients"] = "true"
    if query.archived:
        params["archived"] = "true"
    return params


def parse_list_payload(payload: Any) -> RosterListResponse:
    """Parse a listing body: either ``{customers, pagination}`` or a bare list."""
    if isinstance(payload, list):
        return RosterListResponse(records=payload)
    if not isinstance(payload, dict):
        raise RosterTransportError(
            f"Unexpected listing payload type: {type(payload).__name__}"
        )
    records = payload.get("customers", payload.get("records", []))
    pagination = payload.get("pagination")
    if not isinstance(pagination, dict):
        pagination = {}
    try:
        return RosterListResponse(records=records or [], pagination=pagination)
    except ValidationError as e:
        raise RosterTransportError(f"Malformed listing payload: {e.error_count()} error(s)") from e


class HttpRosterService:
    """
    RosterService backed by the dashboard REST API.

    Usage:
        async with HttpRosterService() as service:
            response = await service.list_roster(RosterQuery(page=1, page_size=100))
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        auth_token: Optional[str] = None,
        timeout_sec: Optional[float] = None,
        batch_size: Optional[int] = None,
    ) -> None:
        self.base_url = (base_url or settings.service.base_url).rstrip("/")
        self._auth_token = auth_token if auth_token is not None else settings.service.auth_token
        self._timeout = aiohttp.ClientTimeout(
            total=timeout_sec or settings.service.request_timeout_sec
        )
        self._batch_size = batch_size or settings.imports.batch_size
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> "HttpRosterService":
        self._ensure_session()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            headers = {"Accept": "application/json"}
            if self._auth_token:
                headers["Authorization"] = f"Bearer {self._auth_token}"
            self._session = aiohttp.ClientSession(headers=headers, timeout=self._timeout)
        return self._session

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        session = self._ensure_session()
        url = f"{self.base_url}{path}"
        try:
            async with session.request(method, url, **kwargs) as resp:
                if resp.status >= 400:
                    body = await resp.text(errors="replace")
                    raise RosterTransportError(
                        f"{method} {path} failed with HTTP {resp.status}: {body[:200]}"
                    )
                return await resp.json()
        except aiohttp.ContentTypeError as e:
            raise RosterTransportError(f"{method} {path} returned a non-JSON body") from e
        except asyncio.TimeoutError as e:
            raise RosterTransportError(f"{method} {path} timed out") from e
        except aiohttp.ClientError as e:
            raise RosterTransportError(f"{method} {path} failed: {e}") from e
        except ValueError as e:
            raise RosterTransportError(f"{method} {path} returned malformed JSON") from e

    async def list_roster(self, query: RosterQuery) -> RosterListResponse:
        payload = await self._request("GET", "/customers", params=query_params(query))
        response = parse_list_payload(payload)
        logger.debug(
            "Listed %d record(s) for page %d (reported total: %s)",
            len(response.records), query.page, response.pagination.total_records,
        )
        return response

    async def get_aggregate_stats(self) -> AggregateStats:
        payload = await self._request("GET", "/customers/stats")
        if not isinstance(payload, dict):
            raise RosterTransportError("Stats endpoint returned a non-object body")
        try:
            return AggregateStats.model_validate(payload)
        except ValidationError as e:
            raise RosterTransportError("Stats endpoint returned a malformed body") from e

    async def bulk_create(self, records: Sequence[CustomerRecord]) -> BulkCreateResult:
        body = {
            "customers": [record.to_wire() for record in records],
            "batchSize": self._batch_size,
        }
        payload = await self._request("POST", "/customers/bulk-upload", json=body)
        if not isinstance(payload, dict):
            raise RosterTransportError("Bulk upload returned a non-object body")
        try:
            result = BulkCreateResult.model_validate(payload)
        except ValidationError as e:
            raise RosterTransportError("Bulk upload returned a malformed body") from e
        logger.info(
            "Bulk upload: %d imported, %d errors", result.imported_count, result.error_count
        )
        return result
