"""Spreadsheet and XML importers."""

from perdcomp.importers.errors import (
    ExtractionError,
    ImportInProgressError,
    OrderImportError,
    ParseError,
)
from perdcomp.importers.markup import MarkupImporter
from perdcomp.importers.tabular import HEADER_ALIASES, TabularImporter, parse_value

__all__ = [
    "ExtractionError",
    "HEADER_ALIASES",
    "ImportInProgressError",
    "MarkupImporter",
    "OrderImportError",
    "ParseError",
    "TabularImporter",
    "parse_value",
]
