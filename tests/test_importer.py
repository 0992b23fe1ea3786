"""Tests for the batched roster import pipeline."""

from dataclasses import replace

import pytest

from roster.ingestion.importer import RosterImporter
from roster.ingestion.normalizer import TabularImportNormalizer
from roster.ingestion.readers import UnsupportedFileError
from roster.presentation.page_controller import RosterPageController
from roster.services.memory_service import InMemoryRosterService
from tests.conftest import FlakyBulkService, fixed_clock


def _sheet(count: int, blanks: int = 0) -> list[list[str]]:
    rows = [["Report"], ["Name", "Phone", "Email", "Address"]]
    rows += [[f"Person {i}", f"555-{i:04d}", "", ""] for i in range(count)]
    rows += [["", "", "", "somewhere"] for _ in range(blanks)]
    return rows


def _importer(service, **kwargs) -> RosterImporter:
    return RosterImporter(
        service, normalizer=TabularImportNormalizer(clock=fixed_clock), **kwargs
    )


class TestImportRows:
    @pytest.mark.asyncio
    async def test_imports_and_counts(self):
        service = InMemoryRosterService(clock=fixed_clock)
        summary = await _importer(service).import_rows(_sheet(3, blanks=2))
        assert summary.imported == 3
        assert summary.skipped == 2
        assert summary.failed == 0
        assert summary.total == 5
        assert summary.header_row_index == 1
        assert summary.succeeded
        assert len(service.stored_rows()) == 3

    @pytest.mark.asyncio
    async def test_stored_in_legacy_shape(self):
        service = InMemoryRosterService(clock=fixed_clock)
        rows = [["Name", "Phone", "Address"], ["John Q Public", "555", "12 Elm Street"]]
        await _importer(service).import_rows(rows)
        stored = service.stored_rows()[0]
        assert stored["name"] == "John Q Public"
        assert stored["notes"] == "12 Elm Street"
        assert stored["status"] == "pending"

    @pytest.mark.asyncio
    async def test_records_submitted_in_batches(self):
        service = FlakyBulkService(clock=fixed_clock)
        await _importer(service, batch_size=2).import_rows(_sheet(5))
        assert service.batch_sizes == [2, 2, 1]

    @pytest.mark.asyncio
    async def test_failed_batch_counted_and_run_continues(self):
        service = FlakyBulkService(failing_batches=[2], clock=fixed_clock)
        summary = await _importer(service, batch_size=2).import_rows(_sheet(5))
        assert summary.imported == 3
        assert summary.failed == 2
        assert not summary.succeeded
        assert summary.errors == ["Batch 2: HTTP 502 from /customers/bulk-upload"]

    @pytest.mark.asyncio
    async def test_rejected_records_counted(self):
        class RejectingService(InMemoryRosterService):
            async def bulk_create(self, records):
                result = await super().bulk_create(records[1:])
                result.error_count = 1
                result.errors = ["Record 1: duplicate phone"]
                return result

        service = RejectingService(clock=fixed_clock)
        summary = await _importer(service).import_rows(_sheet(3))
        assert summary.imported == 2
        assert summary.failed == 1
        assert summary.errors == ["Record 1: duplicate phone"]

    @pytest.mark.asyncio
    async def test_reported_errors_capped(self, monkeypatch):
        from roster.config import settings

        capped = replace(settings, imports=replace(settings.imports, max_reported_errors=2))
        monkeypatch.setattr("roster.ingestion.importer.settings", capped)
        service = FlakyBulkService(failing_batches=[1, 2, 3], clock=fixed_clock)
        summary = await _importer(service, batch_size=1).import_rows(_sheet(3))
        assert summary.failed == 3
        assert len(summary.errors) == 2

    @pytest.mark.asyncio
    async def test_all_rows_skipped(self):
        service = FlakyBulkService(clock=fixed_clock)
        summary = await _importer(service).import_rows(_sheet(0, blanks=3))
        assert summary.imported == 0
        assert summary.skipped == 3
        assert service.batch_sizes == []

    @pytest.mark.asyncio
    async def test_empty_sheet(self):
        summary = await _importer(InMemoryRosterService()).import_rows([])
        assert summary.total == 0
        assert summary.succeeded


class TestImportHooks:
    @pytest.mark.asyncio
    async def test_controller_refreshed_after_import(self):
        service = InMemoryRosterService(clock=fixed_clock)
        controller = RosterPageController(service, page_size=100, page_size_options=(100,))
        await _importer(service, controller=controller).import_rows(_sheet(2))
        assert controller.last_page is not None
        assert controller.last_page.total.value == 2

    @pytest.mark.asyncio
    async def test_controller_not_refreshed_when_nothing_imported(self):
        service = InMemoryRosterService(clock=fixed_clock)
        controller = RosterPageController(service, page_size=100, page_size_options=(100,))
        await _importer(service, controller=controller).import_rows(_sheet(0, blanks=1))
        assert controller.generation == 0

    @pytest.mark.asyncio
    async def test_completion_callback(self):
        summaries = []
        service = InMemoryRosterService(clock=fixed_clock)
        summary = await _importer(
            service, on_import_complete=summaries.append
        ).import_rows(_sheet(1))
        assert summaries == [summary]


class TestImportFile:
    @pytest.mark.asyncio
    async def test_imports_csv(self, tmp_path):
        path = tmp_path / "roster.csv"
        path.write_text(
            "Exported customers\n\nFirst Name,Last Name,Phone,Email\n"
            "Jane,Doe,555-1111,jane@x.com\n,,,\nJohn,Smith,,\n",
            encoding="utf-8",
        )
        service = InMemoryRosterService(clock=fixed_clock)
        summary = await _importer(service).import_file(path)
        assert summary.imported == 2
        assert summary.header_row_index == 1
        assert [row["name"] for row in service.stored_rows()] == ["Jane Doe", "John Smith"]

    @pytest.mark.asyncio
    async def test_unsupported_file(self, tmp_path):
        path = tmp_path / "roster.docx"
        path.write_bytes(b"PK")
        with pytest.raises(UnsupportedFileError):
            await _importer(InMemoryRosterService()).import_file(path)
