"""Extraction services package."""

from perdcomp.services.extraction.interface import (
    ExtractionServiceError,
    ExtractionServiceInterface,
)
from perdcomp.services.extraction.gemini_service import (
    RESPONSE_SCHEMA,
    GeminiExtractionService,
)

__all__ = [
    "ExtractionServiceError",
    "ExtractionServiceInterface",
    "GeminiExtractionService",
    "RESPONSE_SCHEMA",
]
