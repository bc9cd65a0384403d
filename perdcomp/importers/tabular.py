"""
Spreadsheet Importer

Reads the first worksheet of an .xlsx workbook (openpyxl) or a legacy .xls
one (xlrd). Row 1 is the header; every following non-blank row becomes one
FilingRecord.

Header matching is forgiving: names are trimmed and case-folded and several
spellings are accepted per field (with and without accents, with and without
the slash in PER/DCOMP). Columns we do not recognize are ignored.

Values are not validated beyond coercion. A bad amount becomes 0; a bad date
is the one thing that fails the whole file, since a record without a usable
transmission date would land in the wrong place in every date filter.
"""

import struct
from io import BytesIO
from typing import Any, Optional
from zipfile import BadZipFile

import structlog
import xlrd
from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from xlrd.compdoc import CompDocError

from perdcomp.importers.errors import ParseError
from perdcomp.models.order import NOT_AVAILABLE, FilingRecord, FilingStatus
from perdcomp.utils import parse_date_value, parse_value, utc_now


logger = structlog.get_logger(__name__)

# Legacy .xls files are OLE2 compound documents
_OLE2_SIGNATURE = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"


HEADER_ALIASES: dict[str, tuple[str, ...]] = {
    "filing_number": ("PER/DCOMP", "PERDCOMP", "PER DCOMP", "Número PER/DCOMP"),
    "transmission_date": (
        "Data de Transmissão",
        "Data de Transmissao",
        "Data Transmissão",
        "Data Transmissao",
    ),
    "credit_type": ("Tipo de Crédito", "Tipo de Credito", "Tipo Crédito"),
    "document_type": ("Tipo de Documento", "Tipo Documento"),
    "status": ("Situação", "Situacao", "Status"),
    "value": ("Valor", "Valor Total", "Valor do Crédito"),
}


def _normalize_header(value: Any) -> str:
    return str(value).strip().casefold() if value is not None else ""


_ALIAS_LOOKUP: dict[str, str] = {
    _normalize_header(alias): field
    for field, aliases in HEADER_ALIASES.items()
    for alias in aliases
}


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _read_xlsx_rows(content: bytes) -> list[tuple]:
    try:
        wb = load_workbook(BytesIO(content), read_only=True, data_only=True)
    except (BadZipFile, InvalidFileException, KeyError, OSError, ValueError) as e:
        raise ParseError(f"Não foi possível ler a planilha: {e}")

    try:
        if not wb.worksheets:
            raise ParseError("A planilha não possui abas.")
        return list(wb.worksheets[0].iter_rows(values_only=True))
    finally:
        wb.close()


def _xls_cell(cell: Any, datemode: int) -> Any:
    if cell.ctype == xlrd.XL_CELL_DATE:
        return xlrd.xldate_as_datetime(cell.value, datemode)
    if cell.ctype == xlrd.XL_CELL_NUMBER and float(cell.value).is_integer():
        # .xls stores every number as a float; keep "123" from becoming "123.0"
        return int(cell.value)
    if cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK, xlrd.XL_CELL_ERROR):
        return None
    return cell.value


def _read_xls_rows(content: bytes) -> list[tuple]:
    try:
        book = xlrd.open_workbook(file_contents=content, on_demand=True)
    except (xlrd.XLRDError, CompDocError, OSError, ValueError, IndexError, struct.error) as e:
        raise ParseError(f"Não foi possível ler a planilha: {e}")

    try:
        if book.nsheets == 0:
            raise ParseError("A planilha não possui abas.")
        sheet = book.sheet_by_index(0)
        return [
            tuple(_xls_cell(cell, book.datemode) for cell in sheet.row(index))
            for index in range(sheet.nrows)
        ]
    except (xlrd.XLRDError, ValueError, IndexError) as e:
        raise ParseError(f"Não foi possível ler a planilha: {e}")
    finally:
        book.release_resources()


def _text(value: Any, default: str) -> str:
    if _is_blank(value):
        return default
    return str(value).strip()


class TabularImporter:
    """Turns spreadsheet bytes into a batch of new records."""

    def map_headers(self, headers: list[Any]) -> dict[str, int]:
        """
        Map field names to column indexes (0-based).

        When two columns alias the same field, the first one wins.
        """
        mapping: dict[str, int] = {}
        for index, header in enumerate(headers):
            field = _ALIAS_LOOKUP.get(_normalize_header(header))
            if field and field not in mapping:
                mapping[field] = index
        return mapping

    def parse(self, content: bytes) -> list[FilingRecord]:
        """
        Parse workbook bytes (.xlsx or legacy .xls).

        Raises:
            ParseError: unreadable workbook, no data rows, or a bad date
        """
        if content.startswith(_OLE2_SIGNATURE):
            rows = _read_xls_rows(content)
        else:
            rows = _read_xlsx_rows(content)

        if not rows:
            raise ParseError("A planilha está vazia.")

        columns = self.map_headers(list(rows[0]))
        records = []
        for row_number, row in enumerate(rows[1:], start=2):
            if all(_is_blank(cell) for cell in row):
                continue
            records.append(self._build_record(row, columns, row_number))

        if not records:
            raise ParseError("Nenhuma linha de dados encontrada na planilha.")

        logger.info(
            "spreadsheet_parsed",
            rows=len(records),
            columns=sorted(columns),
        )
        return records

    def _build_record(
        self,
        row: tuple,
        columns: dict[str, int],
        row_number: int,
    ) -> FilingRecord:
        def cell(field: str) -> Optional[Any]:
            index = columns.get(field)
            if index is None or index >= len(row):
                return None
            return row[index]

        try:
            transmission_date = parse_date_value(cell("transmission_date"))
        except (ValueError, OverflowError) as e:
            raise ParseError(f"Data de transmissão inválida na linha {row_number}: {e}")

        now = utc_now()
        return FilingRecord(
            filing_number=_text(cell("filing_number"), NOT_AVAILABLE),
            transmission_date=transmission_date or now,
            credit_type=_text(cell("credit_type"), NOT_AVAILABLE),
            document_type=_text(cell("document_type"), NOT_AVAILABLE),
            status=_text(cell("status"), FilingStatus.UNDER_REVIEW.value),
            value=parse_value(cell("value")),
            imported_at=now,
            is_paid=False,
            bank="",
        )


__all__ = ["HEADER_ALIASES", "TabularImporter", "parse_value"]
