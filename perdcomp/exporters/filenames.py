"""Download file names."""

from datetime import date
from typing import Optional

from perdcomp.models.order import ViewType


_XLSX_SUFFIX = {
    ViewType.ALL: "",
    ViewType.COMPENSATION: "_COMP",
    ViewType.RESTITUTION: "_REST",
}

_PDF_LABEL = {
    ViewType.ALL: "geral",
    ViewType.COMPENSATION: "compensacao",
    ViewType.RESTITUTION: "restituicao",
}


def export_filename(
    kind: str,
    view_type: ViewType = ViewType.ALL,
    today: Optional[date] = None,
) -> str:
    """
    Name of a downloaded export.

    kind is one of "xlsx", "pdf" or "backup".
    """
    stamp = (today or date.today()).isoformat()
    if kind == "xlsx":
        return f"relatorio_perdcomp{_XLSX_SUFFIX[view_type]}_{stamp}.xlsx"
    if kind == "pdf":
        return f"relatorio_{_PDF_LABEL[view_type]}_{stamp}.pdf"
    if kind == "backup":
        return f"backup_perdcomp_{stamp}.json"
    raise ValueError(f"Unknown export kind: {kind}")
