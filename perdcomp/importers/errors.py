"""Import errors. None of them are retried; the user re-uploads."""


class OrderImportError(Exception):
    """Base class for failures that abort an import."""
    pass


class ParseError(OrderImportError):
    """The file could not be read or holds no usable rows."""
    pass


class ExtractionError(OrderImportError):
    """The extraction service failed on an XML filing."""
    pass


class ImportInProgressError(OrderImportError):
    """Another import is still running."""

    def __init__(self, filename: str):
        self.filename = filename
        super().__init__(
            f"Uma importação já está em andamento. Aguarde para importar '{filename}'."
        )
