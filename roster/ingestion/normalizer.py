"""
Tabular import normalization: raw rows in, canonical customer records out.

Three steps, all pure:
1. Header detection:  the first row among the top few that looks like labels
2. Column mapping:    header cells mapped to canonical fields
3. Row transform:     name splitting, address guarding, and the skip rule

Usage:
    normalizer = TabularImportNormalizer()
    result = normalizer.normalize(rows)
    bulk_create(result.records)
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Sequence

from roster.config import settings
from roster.ingestion.field_mapper import CanonicalField, build_column_map
from roster.schemas.customer_schema import CallStatus, CustomerRecord, CustomerStatus
from roster.utils import cell_text, normalize_label, split_full_name

logger = logging.getLogger(__name__)

HEADER_KEYWORDS = ("name", "email", "phone", "address", "first", "last")
MIN_HEADER_CELLS = 2


@dataclass
class NormalizedImport:
    """Result of normalizing one sheet."""

    records: list[CustomerRecord] = field(default_factory=list)
    header_row_index: int = 0
    skipped: int = 0
    column_map: dict[CanonicalField, int] = field(default_factory=dict)

    @property
    def data_row_count(self) -> int:
        return len(self.records) + self.skipped


def is_likely_header(row: Sequence[Any]) -> bool:
    """A header row has at least one keyword cell and at least two non-empty cells."""
    cells = [normalize_label(cell_text(value)) for value in row]
    non_empty = sum(1 for cell in cells if cell)
    if non_empty < MIN_HEADER_CELLS:
        return False
    return any(keyword in cell for cell in cells for keyword in HEADER_KEYWORDS)


def detect_header_row(rows: Sequence[Sequence[Any]], scan_limit: int) -> int:
    """Index of the first likely header within ``scan_limit`` rows, defaulting to 0."""
    for index in range(min(scan_limit, len(rows))):
        if is_likely_header(rows[index]):
            return index
    return 0


class TabularImportNormalizer:
    """Converts raw sheet rows into canonical CustomerRecords."""

    def __init__(
        self,
        header_scan_rows: Optional[int] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.header_scan_rows = header_scan_rows or settings.imports.header_scan_rows
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def normalize(self, rows: Sequence[Sequence[Any]]) -> NormalizedImport:
        """
        Normalize a whole sheet.

        Args:
            rows: Raw rows, header somewhere near the top.

        Returns:
            NormalizedImport with records in input order and the skipped count.
            ``len(records) + skipped`` equals the number of rows below the header.
        """
        if not rows:
            logger.warning("No rows found to import")
            return NormalizedImport()

        header_index = detect_header_row(rows, self.header_scan_rows)
        headers = [cell_text(value) for value in rows[header_index]]
        column_map = build_column_map(headers)
        logger.info(
            "Header detected at row %d; mapped columns: %s",
            header_index,
            {canonical.value: idx for canonical, idx in column_map.items()},
        )

        result = NormalizedImport(header_row_index=header_index, column_map=column_map)
        for row in rows[header_index + 1:]:
            record = self.transform_row(row, column_map)
            if record is None:
                result.skipped += 1
                continue
            result.records.append(record)

        if result.skipped:
            logger.info("Skipped %d row(s) with no name, email, or phone", result.skipped)
        return result

    def transform_row(
        self, row: Sequence[Any], column_map: dict[CanonicalField, int]
    ) -> Optional[CustomerRecord]:
        """Build one record from a data row, or None when the skip rule applies."""

        def extract(canonical: CanonicalField) -> str:
            index = column_map.get(canonical)
            if index is None or index >= len(row):
                return ""
            return cell_text(row[index])

        first_name = extract(CanonicalField.FIRST_NAME)
        last_name = extract(CanonicalField.LAST_NAME)
        name = extract(CanonicalField.NAME)
        email = extract(CanonicalField.EMAIL)
        phone = extract(CanonicalField.PHONE)
        address = extract(CanonicalField.ADDRESS)

        if not first_name and not last_name and name:
            first_name, last_name = split_full_name(name)

        if CanonicalField.ADDRESS not in column_map:
            address = ""

        if not any((first_name, last_name, email, phone)):
            return None

        return CustomerRecord(
            first_name=first_name,
            last_name=last_name,
            email=email,
            phone=phone,
            address=address,
            status=CustomerStatus.PENDING,
            call_status=CallStatus.NOT_CALLED,
            comments="",
            assigned_to="",
            created_at=self._clock(),
        )
