"""
Shared fixtures.

No test talks to Gemini or writes outside tmp_path: the extraction service
is a fake and the repository runs on the in-memory store.
"""

import asyncio
from datetime import datetime
from io import BytesIO
from typing import Any, Optional

import pytest
from openpyxl import Workbook

from perdcomp.audit import AuditLogger
from perdcomp.models.order import FilingRecord
from perdcomp.repository import OrderRepository
from perdcomp.services.extraction import ExtractionServiceError, ExtractionServiceInterface
from perdcomp.services.storage import InMemoryKeyValueStore, PersistenceError


ORDERS_KEY = "perdcomp_orders_v4"


class FakeExtractionService(ExtractionServiceInterface):
    """Returns a canned answer and remembers what it was sent."""

    def __init__(
        self,
        answer: Optional[dict[str, Any]] = None,
        error: Optional[Exception] = None,
        gate: Optional[asyncio.Event] = None,
    ):
        self.answer = answer or {}
        self.error = error
        self.gate = gate
        self.calls: list[str] = []

    async def extract(self, content: str) -> dict[str, Any]:
        self.calls.append(content)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.answer


class FailingStore(InMemoryKeyValueStore):
    """Store whose writes always fail."""

    def set(self, key: str, value: str) -> None:
        raise PersistenceError("disk full")


def make_record(**overrides) -> FilingRecord:
    data = {
        "filing_number": "12345.67890.010124.1.3.04-1234",
        "transmission_date": datetime(2024, 3, 1, 10, 30),
        "credit_type": "IPI",
        "document_type": "Pedido de Ressarcimento",
        "status": "Em análise",
        "value": 1000.0,
        "imported_at": datetime(2024, 3, 2, 9, 0),
        "is_paid": False,
        "bank": "",
    }
    data.update(overrides)
    return FilingRecord(**data)


def make_workbook(rows: list[list[Any]]) -> bytes:
    wb = Workbook()
    ws = wb.active
    for row in rows:
        ws.append(row)
    buf = BytesIO()
    wb.save(buf)
    return buf.getvalue()


@pytest.fixture
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def audit_logger() -> AuditLogger:
    return AuditLogger()


@pytest.fixture
def repository(store, audit_logger) -> OrderRepository:
    return OrderRepository(store, audit_logger=audit_logger, key=ORDERS_KEY)


@pytest.fixture
def fake_service() -> FakeExtractionService:
    return FakeExtractionService(answer={
        "perDcompNumber": "11111.22222.300124.1.1.01-0001",
        "transmissionDate": "2024-01-30",
        "creditType": "PIS",
        "documentType": "Declaração de Compensação",
        "status": "Deferido",
        "value": 2500.75,
    })


@pytest.fixture
def failing_service() -> FakeExtractionService:
    return FakeExtractionService(error=ExtractionServiceError("quota exceeded"))
