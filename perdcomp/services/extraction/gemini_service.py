"""
XML Filing Extraction using Gemini

DESIGN DECISION: PER/DCOMP XML files come in several layouts, so instead of
mapping each layout by hand we ask Gemini to read the document and answer
with a fixed JSON schema.

This service handles:
1. Building the prompt and the response schema
2. Calling Gemini once (no automatic retries; the user re-uploads)
3. Parsing the JSON answer

CRITICAL: The answer is a guess. This service does NOT fill defaults or
validate fields; the importer treats the result as untrusted input.
"""

import json
from typing import Any, Optional

import google.generativeai as genai
import structlog

from perdcomp.config import GeminiSettings, get_settings
from perdcomp.models.order import EXTRACTION_STATUSES
from perdcomp.services.extraction.interface import (
    ExtractionServiceError,
    ExtractionServiceInterface,
)


logger = structlog.get_logger(__name__)


RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "perDcompNumber": {
            "type": "STRING",
            "description": "O número do PER/DCOMP",
        },
        "transmissionDate": {
            "type": "STRING",
            "description": "Data de transmissão no formato YYYY-MM-DD",
        },
        "creditType": {
            "type": "STRING",
            "description": "Tipo de crédito (ex: IPI, PIS, COFINS)",
        },
        "documentType": {
            "type": "STRING",
            "description": "Tipo de documento (ex: Pedido de Ressarcimento)",
        },
        "status": {
            "type": "STRING",
            "format": "enum",
            "description": "Situação atual",
            "enum": list(EXTRACTION_STATUSES),
        },
        "value": {
            "type": "NUMBER",
            "description": "Valor total do crédito em formato numérico",
        },
    },
    "required": ["perDcompNumber", "transmissionDate", "value"],
}


class GeminiExtractionService(ExtractionServiceInterface):
    """
    Extraction collaborator backed by Gemini.

    IMPORTANT BOUNDARIES:
    1. One request per file, no retries
    2. Failures surface as ExtractionServiceError with a readable message
    3. The content size is bounded by the caller
    """

    def __init__(self, settings: Optional[GeminiSettings] = None):
        self._settings = settings or get_settings().gemini
        self._configure_genai()

    def _configure_genai(self):
        """Configure Google Generative AI."""
        genai.configure(api_key=self._settings.api_key)
        self._model = genai.GenerativeModel(
            model_name=self._settings.model_name,
            generation_config={
                "temperature": self._settings.temperature,
                "max_output_tokens": self._settings.max_tokens,
                "response_mime_type": "application/json",
                "response_schema": RESPONSE_SCHEMA,
            }
        )

    def _build_prompt(self, content: str) -> str:
        return (
            "Analise o seguinte conteúdo de um arquivo XML de PER/DCOMP "
            "e extraia as informações estruturadas.\n"
            f"Conteúdo XML:\n{content}\n"
        )

    async def extract(self, content: str) -> dict[str, Any]:
        try:
            response = await self._model.generate_content_async(
                self._build_prompt(content)
            )
            text = (response.text or "").strip()
        except Exception as e:
            logger.error("gemini_request_failed", error=str(e))
            raise ExtractionServiceError(f"Falha na chamada ao serviço de extração: {e}")

        try:
            data = json.loads(text or "{}")
        except json.JSONDecodeError as e:
            logger.error("gemini_response_unparsable", error=str(e), response=text[:200])
            raise ExtractionServiceError(
                "Não foi possível extrair os dados do XML de forma estruturada."
            )

        if not isinstance(data, dict):
            raise ExtractionServiceError(
                "Não foi possível extrair os dados do XML de forma estruturada."
            )

        logger.info("gemini_extraction_completed", fields=sorted(data.keys()))
        return data
