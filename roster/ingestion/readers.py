"""
Readers that turn uploaded files into raw rows for the normalizer.

Delimited text goes through the csv module with delimiter sniffing;
workbooks are read with openpyxl from the first sheet that has content.
Blank rows are dropped so header detection sees real rows only.
"""

import csv
import io
import logging
from pathlib import Path
from typing import Union

from openpyxl import load_workbook

from roster.utils import cell_text

logger = logging.getLogger(__name__)

DELIMITED_SUFFIXES = {".csv", ".tsv", ".txt"}
WORKBOOK_SUFFIXES = {".xlsx", ".xlsm"}
SNIFF_DELIMITERS = ",;\t|"
SNIFF_SAMPLE_BYTES = 8192


class UnsupportedFileError(Exception):
    """Raised when a file cannot be read as tabular roster data."""


def _drop_blank(rows: list[list[str]]) -> list[list[str]]:
    return [row for row in rows if any(cell for cell in row)]


def parse_delimited_text(text: str) -> list[list[str]]:
    """Split delimited text into trimmed rows, sniffing the delimiter."""
    if not text.strip():
        return []
    sample = text[:SNIFF_SAMPLE_BYTES]
    try:
        dialect = csv.Sniffer().sniff(sample, delimiters=SNIFF_DELIMITERS)
    except csv.Error:
        dialect = csv.excel
    reader = csv.reader(io.StringIO(text), dialect)
    return _drop_blank([[cell.strip() for cell in row] for row in reader])


def read_delimited(path: Path) -> list[list[str]]:
    """Read a CSV/TSV file. A UTF-8 BOM is tolerated."""
    try:
        text = path.read_text(encoding="utf-8-sig")
    except UnicodeDecodeError:
        logger.warning("%s is not valid UTF-8, falling back to latin-1", path.name)
        text = path.read_text(encoding="latin-1")
    return parse_delimited_text(text)


def read_workbook(path: Path) -> list[list[str]]:
    """Read the first non-empty worksheet of an .xlsx workbook."""
    try:
        workbook = load_workbook(path, read_only=True, data_only=True)
    except Exception as e:
        raise UnsupportedFileError(f"Unable to read workbook {path.name}: {e}") from e

    try:
        for sheet in workbook.worksheets:
            rows = _drop_blank([
                [cell_text(value) for value in row]
                for row in sheet.iter_rows(values_only=True)
            ])
            if rows:
                logger.debug("Reading sheet '%s' of %s", sheet.title, path.name)
                return rows
        return []
    finally:
        workbook.close()


def read_rows(path: Union[str, Path]) -> list[list[str]]:
    """Read any supported roster file into raw rows.

    Raises:
        UnsupportedFileError: If the file type is not supported or unreadable.
    """
    path = Path(path)
    if not path.exists():
        raise UnsupportedFileError(f"File not found: {path}")

    suffix = path.suffix.lower()
    if suffix in DELIMITED_SUFFIXES:
        rows = read_delimited(path)
    elif suffix in WORKBOOK_SUFFIXES:
        rows = read_workbook(path)
    else:
        raise UnsupportedFileError(
            f"Please upload a .csv, .tsv, or .xlsx file (got '{suffix or path.name}')."
        )

    logger.info("Read %d row(s) from %s", len(rows), path.name)
    return rows
