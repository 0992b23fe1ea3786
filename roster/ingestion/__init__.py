from roster.ingestion.field_mapper import CanonicalField, build_column_map, map_header
from roster.ingestion.importer import RosterImporter
from roster.ingestion.normalizer import NormalizedImport, TabularImportNormalizer
from roster.ingestion.readers import UnsupportedFileError, read_rows

__all__ = [
    "CanonicalField",
    "map_header",
    "build_column_map",
    "TabularImportNormalizer",
    "NormalizedImport",
    "RosterImporter",
    "read_rows",
    "UnsupportedFileError",
]
