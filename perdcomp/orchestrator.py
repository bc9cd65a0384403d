"""
Main Orchestrator for the PER/DCOMP Tracker

This module ties the components together and defines the end-to-end
flows for:
1. File import (upload → parse or extract → prepend → persist)
2. Manual entry and edits (form → validate → save)
3. Exports and backups (filtered view → file; backup file → restore)

DESIGN DECISION: Importers, filters and exporters are pure; only the flows
here touch the repository, and every step is audited.
"""

from datetime import date, datetime, time
from pathlib import PurePath
from typing import NamedTuple, Optional, Sequence
from uuid import UUID

from pydantic import ValidationError

from perdcomp.audit import AuditLogger, create_correlation_id
from perdcomp.config import AppSettings, get_settings
from perdcomp.exporters import (
    export_backup,
    export_filename,
    export_pdf,
    export_xlsx,
    parse_backup,
)
from perdcomp.exporters.errors import BackupParseError
from perdcomp.importers import (
    ExtractionError,
    ImportInProgressError,
    MarkupImporter,
    OrderImportError,
    ParseError,
    TabularImporter,
)
from perdcomp.models.order import (
    FilingRecord,
    ImportResult,
    ManualEntry,
    ValidationResult,
    ViewType,
)
from perdcomp.repository import OrderRepository
from perdcomp.services.extraction import (
    ExtractionServiceInterface,
    GeminiExtractionService,
)
from perdcomp.services.storage import JsonFileKeyValueStore, KeyValueStoreInterface
from perdcomp.utils import utc_now
from perdcomp.validation import RecordValidationError, RecordValidator


SPREADSHEET_EXTENSIONS = ("xlsx", "xlsm", "xls")
MARKUP_EXTENSIONS = ("xml",)


def _decode_markup(content: bytes) -> str:
    # Filings exported by the federal revenue system are often ISO-8859-1
    try:
        return content.decode("utf-8")
    except UnicodeDecodeError:
        return content.decode("latin-1")


class ImportFlow:
    """
    Orchestrates file imports.

    Flow:
    1. Check extension and size
    2. Parse (spreadsheet) or extract (XML)
    3. Prepend the batch to the repository
    4. Report count and any persistence warning

    Only one import runs at a time; a second one is rejected.
    """

    def __init__(
        self,
        repository: OrderRepository,
        tabular_importer: Optional[TabularImporter] = None,
        markup_importer: Optional[MarkupImporter] = None,
        extraction_service: Optional[ExtractionServiceInterface] = None,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[AppSettings] = None,
    ):
        self._repository = repository
        self._tabular = tabular_importer or TabularImporter()
        self._markup = markup_importer
        self._extraction_service = extraction_service
        self._audit_logger = audit_logger
        self._settings = settings or get_settings().app
        self._in_flight = False

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def _markup_importer(self) -> MarkupImporter:
        # Created on first XML import so the app starts without an API key
        if self._markup is None:
            service = self._extraction_service
            if service is None:
                try:
                    service = GeminiExtractionService()
                except ValidationError as e:
                    raise ExtractionError(
                        "Serviço de extração não configurado. Defina GEMINI_API_KEY."
                    ) from e
            self._markup = MarkupImporter(service, max_chars=self._settings.max_markup_chars)
        return self._markup

    def _check_file(self, filename: str, content: bytes) -> str:
        extension = PurePath(filename).suffix.lower().lstrip(".")
        if extension not in self._settings.supported_formats_list:
            raise ParseError(
                f"Formato de arquivo não suportado: '{filename}'. "
                f"Use {', '.join(self._settings.supported_formats_list)}."
            )
        if len(content) > self._settings.max_upload_size_bytes:
            raise ParseError(
                f"Arquivo muito grande ({len(content) / (1024 * 1024):.1f} MB). "
                f"O limite é {self._settings.max_upload_size_mb} MB."
            )
        if not content:
            raise ParseError(f"O arquivo '{filename}' está vazio.")
        return extension

    async def import_file(
        self,
        filename: str,
        content: bytes,
        correlation_id: Optional[UUID] = None,
    ) -> ImportResult:
        """
        Import one uploaded file.

        Raises:
            ImportInProgressError: another import has not finished
            ParseError: unsupported, oversized or unreadable file
            ExtractionError: the XML extraction failed
        """
        if self._in_flight:
            raise ImportInProgressError(filename)

        correlation_id = correlation_id or create_correlation_id()
        self._in_flight = True
        try:
            extension = self._check_file(filename, content)
            if extension in MARKUP_EXTENSIONS:
                source = "xml"
                records = await self._markup_importer().parse(_decode_markup(content))
            elif extension in SPREADSHEET_EXTENSIONS:
                source = "spreadsheet"
                records = self._tabular.parse(content)
            else:
                raise ParseError(f"Formato de arquivo não suportado: '{filename}'.")
        except ExtractionError as e:
            if self._audit_logger:
                self._audit_logger.log_extraction_failed(filename, str(e), correlation_id)
            raise
        except OrderImportError as e:
            if self._audit_logger:
                self._audit_logger.log_import_failed(filename, str(e), correlation_id)
            raise
        finally:
            self._in_flight = False

        self._repository.add_many(records)

        if self._audit_logger:
            self._audit_logger.log_orders_imported(
                filename=filename,
                source=source,
                count=len(records),
                correlation_id=correlation_id,
            )

        return ImportResult(
            filename=filename,
            source=source,
            records=records,
            persistence_warning=self._repository.persistence_warning,
        )


class RecordFlow:
    """
    Orchestrates manual entry and edits.

    Manual entries are validated first; an entry with errors is never saved.
    """

    def __init__(
        self,
        repository: OrderRepository,
        validator: Optional[RecordValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._repository = repository
        self._validator = validator or RecordValidator(repository)
        self._audit_logger = audit_logger

    def validate(self, entry: ManualEntry) -> ValidationResult:
        return self._validator.validate(entry)

    def create_manual_record(self, entry: ManualEntry) -> tuple[FilingRecord, ValidationResult]:
        """
        Validate a form entry and prepend it as a new record.

        Returns:
            (record, validation_result); the result may carry warnings

        Raises:
            RecordValidationError: the entry has error-level issues
        """
        try:
            result = self._validator.ensure_valid(entry)
        except RecordValidationError as e:
            if self._audit_logger:
                issues = [
                    {"field": i.field, "type": i.issue_type, "message": i.message}
                    for i in e.result.issues
                ]
                self._audit_logger.log_validation_failed(issues)
            raise

        record = FilingRecord(
            filing_number=entry.filing_number,
            transmission_date=datetime.combine(entry.transmission_date, time.min),
            credit_type=entry.credit_type or None,
            document_type=entry.document_type or None,
            status=entry.status,
            value=entry.value,
            imported_at=utc_now(),
            is_paid=entry.is_paid,
            bank=entry.bank,
        )
        self._repository.add(record)
        return record, result

    def update_record(self, record: FilingRecord) -> bool:
        return self._repository.update(record)

    def set_paid(self, order_id: str, is_paid: bool) -> bool:
        return self._repository.set_paid(order_id, is_paid)

    def set_bank(self, order_id: str, bank: str) -> bool:
        return self._repository.set_bank(order_id, bank)

    def delete_record(self, order_id: str) -> bool:
        return self._repository.remove(order_id)

    def clear_all(self) -> int:
        return self._repository.clear()


class ExportFlow:
    """
    Orchestrates downloads and backup restore.

    Spreadsheet and PDF exports take the filtered view; the backup always
    covers the whole collection.
    """

    def __init__(
        self,
        repository: OrderRepository,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._repository = repository
        self._audit_logger = audit_logger

    def _log_export(self, kind: str, view_type: ViewType, count: int) -> None:
        if self._audit_logger:
            self._audit_logger.log_export_generated(kind, view_type.value, count)

    def spreadsheet(
        self,
        orders: Sequence[FilingRecord],
        view_type: ViewType = ViewType.ALL,
        today: Optional[date] = None,
    ) -> tuple[str, bytes]:
        """Returns (filename, xlsx bytes). Raises EmptyExportError."""
        content = export_xlsx(orders, view_type)
        self._log_export("xlsx", view_type, len(orders))
        return export_filename("xlsx", view_type, today), content

    def report(
        self,
        orders: Sequence[FilingRecord],
        view_type: ViewType = ViewType.ALL,
        today: Optional[date] = None,
    ) -> tuple[str, bytes]:
        """Returns (filename, pdf bytes). Raises EmptyExportError."""
        content = export_pdf(orders, view_type)
        self._log_export("pdf", view_type, len(orders))
        return export_filename("pdf", view_type, today), content

    def backup(self, today: Optional[date] = None) -> tuple[str, str]:
        """Returns (filename, JSON text) for the whole collection."""
        orders = self._repository.orders
        content = export_backup(orders)
        if self._audit_logger:
            self._audit_logger.log_backup_exported(len(orders))
        return export_filename("backup", today=today), content

    def restore(self, text: str) -> int:
        """
        Prepend the records of a backup document.

        Returns:
            Number of records restored

        Raises:
            BackupParseError: the document was rejected; nothing changed
        """
        try:
            records = parse_backup(text)
        except BackupParseError as e:
            if self._audit_logger:
                self._audit_logger.log_backup_rejected(str(e))
            raise

        self._repository.replace_all_prepend(records)
        if self._audit_logger:
            self._audit_logger.log_backup_restored(len(records))
        return len(records)


class AppComponents(NamedTuple):
    repository: OrderRepository
    import_flow: ImportFlow
    record_flow: RecordFlow
    export_flow: ExportFlow
    audit_logger: AuditLogger


def create_app_components(
    store: Optional[KeyValueStoreInterface] = None,
    extraction_service: Optional[ExtractionServiceInterface] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        store: Key-value store for the collection. Defaults to the JSON
               file configured in STORAGE_DATA_PATH.
        extraction_service: XML extraction collaborator. Defaults to Gemini,
               created on the first XML import.
    """
    audit_logger = AuditLogger()
    repository = OrderRepository(
        store if store is not None else JsonFileKeyValueStore(),
        audit_logger=audit_logger,
    )

    return AppComponents(
        repository=repository,
        import_flow=ImportFlow(
            repository,
            extraction_service=extraction_service,
            audit_logger=audit_logger,
        ),
        record_flow=RecordFlow(repository, audit_logger=audit_logger),
        export_flow=ExportFlow(repository, audit_logger=audit_logger),
        audit_logger=audit_logger,
    )
