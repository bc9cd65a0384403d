"""
Summary Statistics

Computed from scratch on every call over whatever collection the caller
passes in (usually the filtered view). Collections are small enough that a
full scan is all we need.

NOTE: total_pending subtracts every paid amount from the restitution total,
whether or not the paid filing is itself a restitution. That is how the
figures have always been reported, so it stays.
"""

from typing import Iterable

from perdcomp.models.order import FilingRecord, OrderStats
from perdcomp.queries.filters import is_compensation


def aggregate(orders: Iterable[FilingRecord]) -> OrderStats:
    """Compute the stats-card figures for a collection."""
    total_compensated = 0.0
    total_restitution = 0.0
    total_paid = 0.0
    paid_count = 0
    total_count = 0

    for order in orders:
        total_count += 1
        if is_compensation(order):
            total_compensated += order.value
        else:
            total_restitution += order.value
        if order.is_paid:
            total_paid += order.value
            paid_count += 1

    total_pending = max(0.0, total_restitution - total_paid)

    return OrderStats(
        total_compensated=total_compensated,
        total_restitution=total_restitution,
        total_paid=total_paid,
        total_pending=total_pending,
        gross_total=total_compensated + total_pending,
        paid_count=paid_count,
        total_count=total_count,
    )


def total_value(orders: Iterable[FilingRecord]) -> float:
    """Sum of values, as printed in the report header."""
    return sum(order.value for order in orders)
