"""
Extraction Service Interface

The XML importer hands filing text to an external model and gets back a
best-effort structured guess. This interface is the seam: the application
uses Gemini, tests use a fake that returns canned dictionaries.
"""

from abc import ABC, abstractmethod
from typing import Any


class ExtractionServiceInterface(ABC):
    """Turns unstructured filing text into a field dictionary."""

    @abstractmethod
    async def extract(self, content: str) -> dict[str, Any]:
        """
        Extract filing fields from text.

        Args:
            content: Filing text, already truncated by the caller

        Returns:
            A dict with any of perDcompNumber, transmissionDate,
            creditType, documentType, status and value. Nothing in it
            is guaranteed to be present or well-formed.

        Raises:
            ExtractionServiceError: If the call fails or the answer is unusable
        """
        pass


class ExtractionServiceError(Exception):
    """The extraction service call failed or returned something unusable."""
    pass
