"""
Roster import pipeline: file -> rows -> canonical records -> bulk create.

Records are submitted in batches. A failed batch is counted and the run
continues, so the caller always learns how many records made it in.
"""

from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Optional, Sequence, Union

from roster.config import settings
from roster.ingestion.normalizer import TabularImportNormalizer
from roster.ingestion.readers import read_rows
from roster.logging_context import get_session_logger
from roster.schemas.customer_schema import CustomerRecord
from roster.schemas.roster_schema import ImportSummary
from roster.services.roster_service import RosterService, RosterServiceError

if TYPE_CHECKING:
    from roster.presentation.page_controller import RosterPageController

logger = get_session_logger(__name__)

ImportCompleteCallback = Callable[[ImportSummary], None]


class RosterImporter:
    """Normalizes tabular data and hands it to the roster service in batches."""

    def __init__(
        self,
        service: RosterService,
        *,
        normalizer: Optional[TabularImportNormalizer] = None,
        batch_size: Optional[int] = None,
        controller: Optional["RosterPageController"] = None,
        on_import_complete: Optional[ImportCompleteCallback] = None,
    ) -> None:
        self._service = service
        self._normalizer = normalizer or TabularImportNormalizer()
        self.batch_size = batch_size or settings.imports.batch_size
        self._controller = controller
        self._on_import_complete = on_import_complete

    async def import_file(self, path: Union[str, Path]) -> ImportSummary:
        """Read a CSV/XLSX file and import it.

        Raises:
            UnsupportedFileError: If the file cannot be read.
        """
        rows = read_rows(path)
        return await self.import_rows(rows)

    async def import_rows(self, rows: Sequence[Sequence[Any]]) -> ImportSummary:
        """Import already-parsed rows and report imported/skipped/failed counts."""
        normalized = self._normalizer.normalize(rows)
        summary = ImportSummary(
            skipped=normalized.skipped,
            total=normalized.data_row_count,
            header_row_index=normalized.header_row_index,
        )

        if not normalized.records:
            logger.warning(
                "Nothing to import: %d data row(s), %d skipped",
                summary.total, summary.skipped,
            )
        else:
            await self._submit(normalized.records, summary)

        logger.info(
            "Import complete: %d imported, %d skipped, %d failed of %d row(s)",
            summary.imported, summary.skipped, summary.failed, summary.total,
        )

        if summary.imported and self._controller is not None:
            await self._controller.refresh()
        if self._on_import_complete is not None:
            self._on_import_complete(summary)
        return summary

    async def _submit(self, records: list[CustomerRecord], summary: ImportSummary) -> None:
        max_errors = settings.imports.max_reported_errors
        batch_count = -(-len(records) // self.batch_size)

        for batch_number, start in enumerate(range(0, len(records), self.batch_size), 1):
            batch = records[start:start + self.batch_size]
            try:
                result = await self._service.bulk_create(batch)
            except RosterServiceError as e:
                logger.warning("Batch %d/%d failed: %s", batch_number, batch_count, e)
                summary.failed += len(batch)
                if len(summary.errors) < max_errors:
                    summary.errors.append(f"Batch {batch_number}: {e}")
                continue

            summary.imported += result.imported_count
            summary.failed += result.error_count
            for message in result.errors:
                if len(summary.errors) >= max_errors:
                    break
                summary.errors.append(message)
            logger.debug(
                "Batch %d/%d: %d imported, %d errors",
                batch_number, batch_count, result.imported_count, result.error_count,
            )
