"""
XML Importer

DESIGN DECISION: XML filings are not parsed here. The (truncated) text is
handed to the extraction service and whatever comes back is treated as an
untrusted partial record:

- Missing fields get the same defaults as spreadsheet rows, except the
  status, which defaults to "Em Processamento"
- A date we cannot read becomes "now" instead of failing the import
- The amount goes through the same lenient parser as spreadsheets
"""

from typing import Optional

import structlog
from pydantic import ValidationError

from perdcomp.config import get_settings
from perdcomp.importers.errors import ExtractionError
from perdcomp.models.order import (
    NOT_AVAILABLE,
    ExtractedFiling,
    FilingRecord,
    FilingStatus,
)
from perdcomp.services.extraction import ExtractionServiceInterface
from perdcomp.utils import parse_date_value, utc_now


logger = structlog.get_logger(__name__)


class MarkupImporter:
    """Turns XML text into a one-record batch using the extraction service."""

    def __init__(
        self,
        extraction_service: ExtractionServiceInterface,
        max_chars: Optional[int] = None,
    ):
        self._service = extraction_service
        self._max_chars = max_chars or get_settings().app.max_markup_chars

    def truncate(self, content: str) -> str:
        return content[:self._max_chars]

    async def parse(self, content: str) -> list[FilingRecord]:
        """
        Extract one filing from XML text.

        Raises:
            ExtractionError: the service failed or answered with garbage
        """
        text = self.truncate(content)
        try:
            raw = await self._service.extract(text)
        except Exception as e:
            logger.warning("xml_extraction_failed", error=str(e))
            raise ExtractionError(str(e)) from e

        try:
            extracted = ExtractedFiling.model_validate(raw)
        except ValidationError as e:
            raise ExtractionError(
                f"Resposta do serviço de extração em formato inesperado: {e.error_count()} erro(s)"
            ) from e

        return [self._build_record(extracted)]

    def _build_record(self, extracted: ExtractedFiling) -> FilingRecord:
        now = utc_now()
        try:
            transmission_date = parse_date_value(extracted.transmission_date)
        except (ValueError, OverflowError):
            logger.info("xml_date_unreadable", value=extracted.transmission_date)
            transmission_date = None

        return FilingRecord(
            filing_number=extracted.filing_number or NOT_AVAILABLE,
            transmission_date=transmission_date or now,
            credit_type=extracted.credit_type or NOT_AVAILABLE,
            document_type=extracted.document_type or NOT_AVAILABLE,
            status=extracted.status or FilingStatus.PROCESSING.value,
            value=extracted.value or 0.0,
            imported_at=now,
            is_paid=False,
            bank="",
        )
