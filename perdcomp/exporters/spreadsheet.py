"""Spreadsheet export of the filtered view."""

from io import BytesIO
from typing import Sequence

from openpyxl import Workbook
from openpyxl.styles import Font

from perdcomp.exporters.errors import EmptyExportError
from perdcomp.models.order import FilingRecord, ViewType
from perdcomp.utils import format_date


SHEET_TITLE = "Relatório PERDCOMP"

COLUMNS = (
    ("PER/DCOMP", 28),
    ("Data de Transmissão", 20),
    ("Tipo de Crédito", 24),
    ("Tipo de Documento", 30),
    ("Situação", 18),
    ("Valor", 16),
    ("Baixado", 10),
    ("Banco", 20),
)

_HEADER_FONT = Font(bold=True)
_VALUE_FORMAT = "#,##0.00"


def _row(order: FilingRecord) -> list:
    return [
        order.filing_number,
        format_date(order.transmission_date),
        order.credit_type,
        order.document_type,
        order.status,
        order.value,
        "SIM" if order.is_paid else "NÃO",
        order.bank,
    ]


def export_xlsx(
    orders: Sequence[FilingRecord],
    view_type: ViewType = ViewType.ALL,
) -> bytes:
    """
    Build an .xlsx workbook with one row per order.

    The view type only matters for the file name; the rows are exactly
    the orders passed in.

    Raises:
        EmptyExportError: when there are no orders
    """
    if not orders:
        raise EmptyExportError("xlsx")

    wb = Workbook()
    ws = wb.active
    ws.title = SHEET_TITLE

    for col_idx, (header, width) in enumerate(COLUMNS, 1):
        cell = ws.cell(row=1, column=col_idx, value=header)
        cell.font = _HEADER_FONT
        ws.column_dimensions[cell.column_letter].width = width

    value_column = [name for name, _ in COLUMNS].index("Valor") + 1
    for row_idx, order in enumerate(orders, 2):
        for col_idx, value in enumerate(_row(order), 1):
            ws.cell(row=row_idx, column=col_idx, value=value)
        ws.cell(row=row_idx, column=value_column).number_format = _VALUE_FORMAT

    ws.freeze_panes = "A2"

    buf = BytesIO()
    wb.save(buf)
    return buf.getvalue()
