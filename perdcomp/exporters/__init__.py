"""Spreadsheet, PDF and JSON backup exports."""

from perdcomp.exporters.backup import export_backup, parse_backup
from perdcomp.exporters.errors import BackupParseError, EmptyExportError, ExportError
from perdcomp.exporters.filenames import export_filename
from perdcomp.exporters.report import REPORT_TITLES, export_pdf, report_title
from perdcomp.exporters.spreadsheet import SHEET_TITLE, export_xlsx

__all__ = [
    "BackupParseError",
    "EmptyExportError",
    "ExportError",
    "REPORT_TITLES",
    "SHEET_TITLE",
    "export_backup",
    "export_filename",
    "export_pdf",
    "export_xlsx",
    "parse_backup",
    "report_title",
]
