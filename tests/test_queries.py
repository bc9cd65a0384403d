"""Tests for classification, filtering, stats and pagination."""

from datetime import date, datetime

import pytest

from perdcomp.models.order import FilterQuery, OrderCategory, ViewType
from perdcomp.queries import (
    aggregate,
    clamp_page,
    classify,
    filter_orders,
    paginate,
    total_value,
    view_fingerprint,
)
from tests.conftest import make_record


class TestClassify:
    """Document type decides compensation vs restitution."""

    @pytest.mark.parametrize("document_type", [
        "Declaração de Compensação",
        "DECLARAÇÃO DE COMPENSAÇÃO",
        "DCOMP",
        "Retificadora dcomp",
    ])
    def test_compensation(self, document_type):
        assert classify(document_type) == OrderCategory.COMPENSATION

    @pytest.mark.parametrize("document_type", [
        "Pedido de Ressarcimento",
        "Pedido de Restituição",
        "N/A",
        "",
        None,
    ])
    def test_restitution(self, document_type):
        assert classify(document_type) == OrderCategory.RESTITUTION

    def test_substring_match_is_not_whole_word(self):
        """Any text containing "dcomp" counts, even inside another word."""
        assert classify("PERDCOMP web") == OrderCategory.COMPENSATION


class TestFilterOrders:
    """Tests for the filter engine."""

    @pytest.fixture
    def orders(self):
        return [
            make_record(filing_number="AAA-111", bank="Itaú",
                        document_type="Declaração de Compensação",
                        transmission_date=datetime(2024, 3, 1, 0, 0)),
            make_record(filing_number="BBB-222", bank="",
                        document_type="Pedido de Ressarcimento",
                        transmission_date=datetime(2024, 3, 31, 23, 59, 59)),
            make_record(filing_number="CCC-333", bank="Bradesco",
                        document_type="Pedido de Restituição",
                        transmission_date=datetime(2024, 4, 1, 0, 0)),
        ]

    def test_empty_query_keeps_everything_in_order(self, orders):
        assert filter_orders(orders, FilterQuery()) == orders

    def test_search_matches_filing_number(self, orders):
        result = filter_orders(orders, FilterQuery(search_term="bbb"))
        assert [o.filing_number for o in result] == ["BBB-222"]

    def test_search_matches_bank_case_insensitive(self, orders):
        result = filter_orders(orders, FilterQuery(search_term="ITAÚ"))
        assert [o.filing_number for o in result] == ["AAA-111"]

    def test_search_with_no_match(self, orders):
        assert filter_orders(orders, FilterQuery(search_term="zzz")) == []

    def test_date_bounds_are_inclusive_whole_days(self, orders):
        query = FilterQuery(start_date=date(2024, 3, 1), end_date=date(2024, 3, 31))
        result = filter_orders(orders, query)
        assert [o.filing_number for o in result] == ["AAA-111", "BBB-222"]

    def test_single_day_includes_both_boundaries(self):
        day_orders = [
            make_record(filing_number="before", transmission_date=datetime(2024, 3, 9, 23, 59, 59, 999000)),
            make_record(filing_number="midnight", transmission_date=datetime(2024, 3, 10)),
            make_record(filing_number="last", transmission_date=datetime(2024, 3, 10, 23, 59, 59, 999000)),
            make_record(filing_number="after", transmission_date=datetime(2024, 3, 11)),
        ]
        query = FilterQuery(start_date=date(2024, 3, 10), end_date=date(2024, 3, 10))
        assert [o.filing_number for o in filter_orders(day_orders, query)] == ["midnight", "last"]

    def test_only_start_date(self, orders):
        result = filter_orders(orders, FilterQuery(start_date=date(2024, 4, 1)))
        assert [o.filing_number for o in result] == ["CCC-333"]

    def test_only_end_date(self, orders):
        result = filter_orders(orders, FilterQuery(end_date=date(2024, 3, 1)))
        assert [o.filing_number for o in result] == ["AAA-111"]

    def test_view_compensation(self, orders):
        result = filter_orders(orders, FilterQuery(view_type=ViewType.COMPENSATION))
        assert [o.filing_number for o in result] == ["AAA-111"]

    def test_view_restitution(self, orders):
        result = filter_orders(orders, FilterQuery(view_type=ViewType.RESTITUTION))
        assert [o.filing_number for o in result] == ["BBB-222", "CCC-333"]

    def test_criteria_are_combined(self, orders):
        query = FilterQuery(
            search_term="b",
            end_date=date(2024, 3, 31),
            view_type=ViewType.RESTITUTION,
        )
        assert [o.filing_number for o in filter_orders(orders, query)] == ["BBB-222"]

    def test_input_not_mutated(self, orders):
        snapshot = list(orders)
        filter_orders(orders, FilterQuery(search_term="aaa"))
        assert orders == snapshot

    def test_fingerprint_tracks_query_and_records(self, orders):
        query = FilterQuery(view_type=ViewType.RESTITUTION)
        base = view_fingerprint(query, filter_orders(orders, query))

        assert view_fingerprint(query, filter_orders(orders, query)) == base
        narrowed = FilterQuery(view_type=ViewType.RESTITUTION, search_term="ccc")
        assert view_fingerprint(narrowed, filter_orders(orders, narrowed)) != base

        edited = [orders[0], orders[1].model_copy(update={"is_paid": True}), orders[2]]
        assert view_fingerprint(query, filter_orders(edited, query)) != base


class TestAggregate:
    """Tests for the stats cards."""

    def test_empty(self):
        stats = aggregate([])
        assert stats.total_count == 0
        assert stats.gross_total == 0.0

    def test_totals(self):
        orders = [
            make_record(document_type="Declaração de Compensação", value=1000.0),
            make_record(document_type="Pedido de Ressarcimento", value=500.0, is_paid=True),
            make_record(document_type="Pedido de Restituição", value=300.0),
        ]
        stats = aggregate(orders)
        assert stats.total_compensated == 1000.0
        assert stats.total_restitution == 800.0
        assert stats.total_paid == 500.0
        assert stats.total_pending == 300.0
        assert stats.gross_total == 1300.0
        assert stats.paid_count == 1
        assert stats.total_count == 3

    def test_paid_compensation_reduces_pending(self):
        """Every paid amount counts against restitutions."""
        orders = [
            make_record(document_type="DCOMP", value=200.0, is_paid=True),
            make_record(document_type="Pedido de Ressarcimento", value=500.0),
        ]
        stats = aggregate(orders)
        assert stats.total_pending == 300.0
        assert stats.gross_total == 500.0

    def test_pending_never_negative(self):
        orders = [
            make_record(document_type="DCOMP", value=1000.0, is_paid=True),
            make_record(document_type="Pedido de Ressarcimento", value=300.0),
        ]
        stats = aggregate(orders)
        assert stats.total_pending == 0.0
        assert stats.gross_total == 1000.0

    def test_total_value(self):
        assert total_value([make_record(value=1.5), make_record(value=2.5)]) == 4.0


class TestPaginate:
    """Tests for the paginator."""

    def test_pages(self):
        items = list(range(25))
        page = paginate(items, 1, 10)
        assert page.items == list(range(10))
        assert page.total_pages == 3

    def test_last_page_is_partial(self):
        assert paginate(list(range(25)), 3, 10).items == [20, 21, 22, 23, 24]

    def test_past_the_end_is_empty(self):
        page = paginate(list(range(25)), 4, 10)
        assert page.items == []
        assert page.total_pages == 3

    def test_empty_sequence(self):
        page = paginate([], 1, 10)
        assert page.items == []
        assert page.total_pages == 0

    @pytest.mark.parametrize("size, page_size", [(0, 1), (1, 1), (9, 10), (10, 10), (25, 10), (26, 5), (7, 3)])
    def test_pages_rebuild_the_sequence(self, size, page_size):
        items = list(range(size))
        pages = paginate(items, 1, page_size).total_pages
        assert pages == -(-size // page_size)
        rebuilt = []
        for number in range(1, pages + 1):
            rebuilt.extend(paginate(items, number, page_size).items)
        assert rebuilt == items

    def test_invalid_page_size(self):
        with pytest.raises(ValueError):
            paginate([1, 2, 3], 1, 0)

    @pytest.mark.parametrize("page, pages, expected", [
        (5, 3, 3),
        (0, 3, 1),
        (2, 3, 2),
        (2, 0, 1),
    ])
    def test_clamp_page(self, page, pages, expected):
        assert clamp_page(page, pages) == expected
