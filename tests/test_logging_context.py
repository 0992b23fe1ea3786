"""Tests for roster session logging context."""

import asyncio
import logging

import pytest

from roster.logging_context import (
    SessionIdFilter,
    get_session_id,
    get_session_logger,
    new_session_id,
    session_scope,
    set_session_id,
)


class TestSessionId:
    def test_new_session_id_format(self):
        session_id = new_session_id()
        assert session_id.startswith("ROSTER-")
        assert len(session_id) == len("ROSTER-") + 8

    def test_new_session_ids_unique(self):
        assert new_session_id() != new_session_id()

    @pytest.mark.asyncio
    async def test_isolated_per_task(self):
        async def worker(session_id: str) -> str:
            set_session_id(session_id)
            await asyncio.sleep(0)
            return get_session_id()

        results = await asyncio.gather(worker("ROSTER-a"), worker("ROSTER-b"))
        assert results == ["ROSTER-a", "ROSTER-b"]

    def test_session_scope_restores_previous(self):
        set_session_id("ROSTER-outer")
        with session_scope("ROSTER-inner"):
            assert get_session_id() == "ROSTER-inner"
        assert get_session_id() == "ROSTER-outer"

    def test_session_scope_restores_on_error(self):
        set_session_id("ROSTER-outer")
        with pytest.raises(RuntimeError):
            with session_scope("ROSTER-inner"):
                raise RuntimeError("boom")
        assert get_session_id() == "ROSTER-outer"


class TestSessionLogger:
    def test_filter_attaches_session_id(self):
        set_session_id("ROSTER-test")
        record = logging.LogRecord("roster", logging.INFO, __file__, 1, "msg", None, None)
        assert SessionIdFilter().filter(record)
        assert record.session_id == "ROSTER-test"

    def test_filter_added_once(self):
        logger = get_session_logger("roster.test.once")
        get_session_logger("roster.test.once")
        assert sum(isinstance(f, SessionIdFilter) for f in logger.filters) == 1
