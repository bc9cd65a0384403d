"""Tests for the spreadsheet and XML importers."""

from datetime import datetime

import pytest
import xlrd
from xlrd.sheet import Cell

from perdcomp.importers import (
    ExtractionError,
    MarkupImporter,
    ParseError,
    TabularImporter,
    parse_value,
)
from perdcomp.importers.tabular import _xls_cell
from perdcomp.utils import utc_now
from tests.conftest import FakeExtractionService, make_workbook


HEADER = [
    "PER/DCOMP",
    "Data de Transmissão",
    "Tipo de Crédito",
    "Tipo de Documento",
    "Situação",
    "Valor",
]


class TestParseValue:
    """Amounts are parsed leniently and never fail."""

    @pytest.mark.parametrize("raw, expected", [
        (1500, 1500.0),
        (1500.5, 1500.5),
        ("R$ 1.234,56", 1234.56),
        ("1.000.000,00", 1000000.0),
        ("  42,1 ", 42.1),
        ("€ 10,00", 10.0),
        (None, 0.0),
        ("", 0.0),
        ("abc", 0.0),
        ("nan", 0.0),
    ])
    def test_values(self, raw, expected):
        assert parse_value(raw) == pytest.approx(expected)


class TestTabularImporter:
    """Tests for spreadsheet parsing."""

    def test_parses_rows(self):
        content = make_workbook([
            HEADER,
            ["111", datetime(2024, 3, 1), "IPI", "Pedido de Ressarcimento", "Deferido", 1500.5],
            ["222", "15/03/2024", "PIS", "Declaração de Compensação", "Em análise", "R$ 2.000,00"],
        ])
        records = TabularImporter().parse(content)

        assert [r.filing_number for r in records] == ["111", "222"]
        assert records[0].transmission_date == datetime(2024, 3, 1)
        assert records[1].transmission_date == datetime(2024, 3, 15)
        assert records[0].value == 1500.5
        assert records[1].value == 2000.0
        assert records[1].document_type == "Declaração de Compensação"
        assert all(r.is_paid is False and r.bank == "" for r in records)

    def test_fresh_ids(self):
        content = make_workbook([HEADER, ["1", "2024-01-01"], ["2", "2024-01-02"]])
        records = TabularImporter().parse(content)
        assert len({r.id for r in records}) == 2

    def test_headers_matched_loosely(self):
        content = make_workbook([
            ["  per dcomp ", "DATA DE TRANSMISSAO", "tipo de credito", "Status", "Valor Total", "Outra"],
            ["333", "2024-05-10", "COFINS", "Cancelado", 10, "ignorada"],
        ])
        record = TabularImporter().parse(content)[0]
        assert record.filing_number == "333"
        assert record.transmission_date == datetime(2024, 5, 10)
        assert record.credit_type == "COFINS"
        assert record.status == "Cancelado"
        assert record.value == 10.0

    def test_defaults_for_missing_columns(self):
        before = utc_now()
        content = make_workbook([["Valor"], [100]])
        record = TabularImporter().parse(content)[0]
        assert record.filing_number == "N/A"
        assert record.credit_type == "N/A"
        assert record.document_type == "N/A"
        assert record.status == "Em análise"
        assert record.transmission_date >= before

    def test_blank_cells_get_defaults(self):
        content = make_workbook([HEADER, ["444", "2024-01-01", "", None, "  ", None]])
        record = TabularImporter().parse(content)[0]
        assert record.credit_type == "N/A"
        assert record.status == "Em análise"
        assert record.value == 0.0

    def test_blank_rows_skipped(self):
        content = make_workbook([
            HEADER,
            ["1", "2024-01-01"],
            [None, "   "],
            ["2", "2024-01-02"],
        ])
        assert len(TabularImporter().parse(content)) == 2

    def test_excel_serial_date(self):
        content = make_workbook([HEADER, ["1", 45352]])
        assert TabularImporter().parse(content)[0].transmission_date == datetime(2024, 3, 1)

    def test_bad_amount_does_not_skip_row(self):
        content = make_workbook([HEADER, ["1", "2024-01-01", "IPI", "X", "Y", "muito"]])
        records = TabularImporter().parse(content)
        assert len(records) == 1
        assert records[0].value == 0.0

    def test_bad_date_fails_batch(self):
        content = make_workbook([
            HEADER,
            ["1", "2024-01-01"],
            ["2", "ontem à tarde"],
        ])
        with pytest.raises(ParseError):
            TabularImporter().parse(content)

    def test_header_only_is_error(self):
        with pytest.raises(ParseError):
            TabularImporter().parse(make_workbook([HEADER]))

    def test_not_a_workbook(self):
        with pytest.raises(ParseError):
            TabularImporter().parse(b"definitely not a zip")

    def test_map_headers_first_match_wins(self):
        mapping = TabularImporter().map_headers(["Valor", "Valor Total", "PER/DCOMP"])
        assert mapping == {"value": 0, "filing_number": 2}

    @pytest.mark.parametrize("cell, expected", [
        (Cell(xlrd.XL_CELL_NUMBER, 123.0), 123),
        (Cell(xlrd.XL_CELL_NUMBER, 12.5), 12.5),
        (Cell(xlrd.XL_CELL_DATE, 45000.0), datetime(2023, 3, 15)),
        (Cell(xlrd.XL_CELL_TEXT, "Deferido"), "Deferido"),
        (Cell(xlrd.XL_CELL_EMPTY, ""), None),
    ])
    def test_legacy_xls_cells(self, cell, expected):
        assert _xls_cell(cell, datemode=0) == expected


class TestMarkupImporter:
    """Tests for XML import through the extraction service."""

    @pytest.mark.asyncio
    async def test_builds_record(self, fake_service):
        records = await MarkupImporter(fake_service, max_chars=15000).parse("<xml/>")
        assert len(records) == 1
        record = records[0]
        assert record.filing_number == "11111.22222.300124.1.1.01-0001"
        assert record.transmission_date == datetime(2024, 1, 30)
        assert record.document_type == "Declaração de Compensação"
        assert record.status == "Deferido"
        assert record.value == 2500.75
        assert record.is_paid is False
        assert record.bank == ""

    @pytest.mark.asyncio
    async def test_content_truncated(self, fake_service):
        await MarkupImporter(fake_service, max_chars=1000).parse("x" * 5000)
        assert fake_service.calls == ["x" * 1000]

    @pytest.mark.asyncio
    async def test_defaults_for_missing_fields(self):
        before = utc_now()
        service = FakeExtractionService(answer={"value": "1.234,56"})
        record = (await MarkupImporter(service, max_chars=1000).parse("<xml/>"))[0]
        assert record.filing_number == "N/A"
        assert record.credit_type == "N/A"
        assert record.status == "Em Processamento"
        assert record.value == pytest.approx(1234.56)
        assert record.transmission_date >= before

    @pytest.mark.asyncio
    async def test_unreadable_date_becomes_now(self):
        before = utc_now()
        service = FakeExtractionService(answer={"transmissionDate": "trinta de janeiro"})
        record = (await MarkupImporter(service, max_chars=1000).parse("<xml/>"))[0]
        assert record.transmission_date >= before

    @pytest.mark.asyncio
    async def test_status_outside_vocabulary_kept(self):
        service = FakeExtractionService(answer={"status": "Em Análise Fiscal"})
        record = (await MarkupImporter(service, max_chars=1000).parse("<xml/>"))[0]
        assert record.status == "Em Análise Fiscal"

    @pytest.mark.asyncio
    async def test_service_failure(self, failing_service):
        with pytest.raises(ExtractionError, match="quota exceeded"):
            await MarkupImporter(failing_service, max_chars=1000).parse("<xml/>")

    @pytest.mark.asyncio
    async def test_malformed_answer(self):
        service = FakeExtractionService(answer={"perDcompNumber": ["not", "text"]})
        with pytest.raises(ExtractionError):
            await MarkupImporter(service, max_chars=1000).parse("<xml/>")
