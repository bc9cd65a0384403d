"""Classification, filtering, stats and pagination over order collections."""

from perdcomp.queries.filters import (
    COMPENSATION_MARKERS,
    classify,
    filter_orders,
    is_compensation,
    view_fingerprint,
)
from perdcomp.queries.pagination import PAGE_SIZE_OPTIONS, clamp_page, paginate, total_pages
from perdcomp.queries.stats import aggregate, total_value

__all__ = [
    "COMPENSATION_MARKERS",
    "PAGE_SIZE_OPTIONS",
    "aggregate",
    "clamp_page",
    "classify",
    "filter_orders",
    "is_compensation",
    "paginate",
    "total_pages",
    "total_value",
    "view_fingerprint",
]
