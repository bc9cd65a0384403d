"""Export and backup errors."""


class ExportError(Exception):
    """Base class for export and restore failures."""
    pass


class EmptyExportError(ExportError):
    """There is nothing to export in the current view."""

    def __init__(self, kind: str):
        self.kind = kind
        super().__init__("Não há dados para exportar.")


class BackupParseError(ExportError):
    """The backup file is not a JSON array of records."""
    pass
