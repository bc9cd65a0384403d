"""
Classification and Filtering

DESIGN DECISION: Classification is a plain substring test on the document
type. A filing is a compensation when its document type mentions
"compensação" or "dcomp" (any case, anywhere in the text); everything else,
including blank or unknown types, counts as a restitution.

The same rule feeds the view-type filter and the stats split, so both
always agree on which side a filing belongs to.
"""

from datetime import datetime, time
from typing import Iterable, Optional

from perdcomp.models.order import FilingRecord, FilterQuery, OrderCategory, ViewType


COMPENSATION_MARKERS = ("compensação", "dcomp")

_END_OF_DAY = time(23, 59, 59, 999000)


def classify(document_type: Optional[str]) -> OrderCategory:
    """Decide whether a document type is a compensation or a restitution."""
    text = (document_type or "").lower()
    if any(marker in text for marker in COMPENSATION_MARKERS):
        return OrderCategory.COMPENSATION
    return OrderCategory.RESTITUTION


def is_compensation(order: FilingRecord) -> bool:
    return classify(order.document_type) == OrderCategory.COMPENSATION


def _matches_search(order: FilingRecord, term: str) -> bool:
    if not term:
        return True
    needle = term.lower()
    return needle in order.filing_number.lower() or needle in (order.bank or "").lower()


def _matches_dates(
    order: FilingRecord,
    start: Optional[datetime],
    end: Optional[datetime],
) -> bool:
    if start is not None and order.transmission_date < start:
        return False
    if end is not None and order.transmission_date > end:
        return False
    return True


def _matches_view(order: FilingRecord, view_type: ViewType) -> bool:
    if view_type == ViewType.COMPENSATION:
        return is_compensation(order)
    if view_type == ViewType.RESTITUTION:
        return not is_compensation(order)
    return True


def filter_orders(
    orders: Iterable[FilingRecord],
    query: FilterQuery,
) -> list[FilingRecord]:
    """
    Return the orders matching every part of the query, in input order.

    - search_term: case-insensitive substring of filing number or bank
    - start_date/end_date: inclusive whole-day bounds on transmission date
    - view_type: all, compensation or restitution
    """
    start = datetime.combine(query.start_date, time.min) if query.start_date else None
    end = datetime.combine(query.end_date, _END_OF_DAY) if query.end_date else None

    return [
        order for order in orders
        if _matches_search(order, query.search_term)
        and _matches_dates(order, start, end)
        and _matches_view(order, query.view_type)
    ]


def view_fingerprint(query: FilterQuery, orders: Iterable[FilingRecord]) -> tuple:
    """
    Identity of a filtered view: the query plus the exact records it shows.

    A file generated from a view is stale once this changes.
    """
    return query.signature(), tuple(order.model_dump_json() for order in orders)
