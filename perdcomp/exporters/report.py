"""
PDF Report

A landscape A4 report of the filtered view: a title that depends on the
view type, a short header (generation date, record count, total value) and
one table row per order.
"""

from datetime import datetime
from io import BytesIO
from typing import Optional, Sequence
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_RIGHT
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from perdcomp.exporters.errors import EmptyExportError
from perdcomp.models.order import FilingRecord, ViewType
from perdcomp.queries.stats import total_value
from perdcomp.utils import format_currency, format_date


REPORT_TITLES = {
    ViewType.COMPENSATION: "Relatório de Compensações (DCOMP)",
    ViewType.RESTITUTION: "Relatório de Restituições/Ressarcimentos",
    ViewType.ALL: "Relatório Geral de Fluxo PER/DCOMP",
}

TABLE_HEADERS = (
    "PER/DCOMP",
    "Transmissão",
    "Crédito / Documento",
    "Situação",
    "Valor",
    "Pago",
    "Banco",
)

HEADER_FILL = colors.Color(6 / 255, 95 / 255, 70 / 255)

# Widths fit inside the landscape A4 margins
_COLUMN_WIDTHS = [45 * mm, 25 * mm, 70 * mm, 32 * mm, 32 * mm, 18 * mm, 35 * mm]


def report_title(view_type: ViewType) -> str:
    return REPORT_TITLES.get(view_type, REPORT_TITLES[ViewType.ALL])


def _styles() -> dict[str, ParagraphStyle]:
    base = getSampleStyleSheet()
    cell = ParagraphStyle("cell", parent=base["BodyText"], fontSize=8, leading=10)
    return {
        "title": base["Title"],
        "meta": ParagraphStyle("meta", parent=base["Normal"], fontSize=9, leading=12),
        "cell": cell,
        "cell_center": ParagraphStyle("cell_center", parent=cell, alignment=TA_CENTER),
        "cell_value": ParagraphStyle(
            "cell_value", parent=cell, alignment=TA_RIGHT, fontName="Helvetica-Bold"
        ),
    }


def _row(order: FilingRecord, styles: dict[str, ParagraphStyle]) -> list:
    credit = (
        f"{escape(order.credit_type)}<br/>"
        f"<font size='7' color='#555555'>({escape(order.document_type)})</font>"
    )
    return [
        Paragraph(escape(order.filing_number), styles["cell"]),
        Paragraph(format_date(order.transmission_date), styles["cell"]),
        Paragraph(credit, styles["cell"]),
        Paragraph(escape(order.status), styles["cell_center"]),
        Paragraph(format_currency(order.value), styles["cell_value"]),
        Paragraph("SIM" if order.is_paid else "NÃO", styles["cell_center"]),
        Paragraph(escape(order.bank) if order.bank else "-", styles["cell"]),
    ]


def export_pdf(
    orders: Sequence[FilingRecord],
    view_type: ViewType = ViewType.ALL,
    generated_at: Optional[datetime] = None,
) -> bytes:
    """
    Render the report as PDF bytes.

    Raises:
        EmptyExportError: when there are no orders
    """
    if not orders:
        raise EmptyExportError("pdf")

    generated_at = generated_at or datetime.now()
    styles = _styles()

    buf = BytesIO()
    doc = SimpleDocTemplate(
        buf,
        pagesize=landscape(A4),
        leftMargin=12 * mm,
        rightMargin=12 * mm,
        topMargin=12 * mm,
        bottomMargin=12 * mm,
        title=report_title(view_type),
    )

    story = [
        Paragraph(report_title(view_type), styles["title"]),
        Paragraph(
            f"Gerado em: {generated_at.strftime('%d/%m/%Y %H:%M')}", styles["meta"]
        ),
        Paragraph(f"Total de registros: {len(orders)}", styles["meta"]),
        Paragraph(
            f"Valor Total do Período: {format_currency(total_value(orders))}",
            styles["meta"],
        ),
        Spacer(1, 6 * mm),
    ]

    data = [list(TABLE_HEADERS)] + [_row(order, styles) for order in orders]
    table = Table(data, colWidths=_COLUMN_WIDTHS, repeatRows=1)
    table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), HEADER_FILL),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, 0), 9),
        ("ALIGN", (0, 0), (-1, 0), "CENTER"),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.Color(0.96, 0.97, 0.96)]),
        ("GRID", (0, 0), (-1, -1), 0.25, colors.Color(0.8, 0.8, 0.8)),
    ]))
    story.append(table)

    doc.build(story)
    return buf.getvalue()
