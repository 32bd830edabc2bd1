"""
Unit Tests - Aggregation Core
"""
from datetime import date

from retail_analytics.ingestion.records import LineType
from retail_analytics.transformation.aggregation import aggregate_line_items
from tests.factories import make_item


class TestAggregateLineItems:
    """Tests for aggregate_line_items"""

    def test_two_sources_fold_into_one_product(self):
        """Two legacy lines and one native line for the same product"""
        items = [
            make_item(quantity=1, total=20.0, tx="t-1"),
            make_item(quantity=1, total=20.0, tx="t-2"),
            make_item(quantity=1, total=20.0, tx="sale-1"),
        ]

        result = aggregate_line_items(items)

        shampoo = result.product("Shampoo X")
        assert shampoo.units_sold == 3
        assert shampoo.revenue == 60.0
        assert result.total_revenue == 60.0
        assert result.total_units == 3

    def test_names_join_case_insensitively(self):
        result = aggregate_line_items([
            make_item(name="Shampoo X", tx="t-1"),
            make_item(name="  shampoo x ", tx="t-2"),
        ])

        assert len(result.products) == 1
        assert result.product("SHAMPOO X").name == "Shampoo X"

    def test_services_do_not_add_revenue(self):
        result = aggregate_line_items([
            make_item(name="Cut", line_type=LineType.SERVICE, total=80.0, tx="t-1", staff="st-1"),
            make_item(total=20.0, tx="t-1", staff="st-1"),
        ])

        assert result.total_revenue == 20.0
        assert list(result.products) == ["shampoo x"]
        assert result.staff["st-1"].revenue == 20.0
        assert result.staff["st-1"].units == 1

    def test_transaction_sets(self):
        result = aggregate_line_items([
            make_item(name="Cut", line_type=LineType.SERVICE, tx="t-1", staff="st-1"),
            make_item(tx="t-1", staff="st-1"),
            make_item(name="Colour", line_type=LineType.SERVICE, tx="t-2", staff="st-1"),
            make_item(tx="t-3", staff="st-2"),
            make_item(tx=None),
        ])

        assert result.service_transactions == {"t-1", "t-2"}
        assert result.product_transactions == {"t-1", "t-3"}
        assert result.staff["st-1"].service_transactions == {"t-1", "t-2"}
        assert result.staff["st-1"].product_transactions == {"t-1"}
        assert result.staff["st-2"].service_transactions == set()

    def test_daily_series(self):
        result = aggregate_line_items([
            make_item(total=20.0, day=date(2025, 3, 2)),
            make_item(total=15.0, quantity=3, day=date(2025, 3, 2)),
            make_item(name="Cut", line_type=LineType.SERVICE, total=80.0, day=date(2025, 3, 4)),
        ])

        assert result.daily[date(2025, 3, 2)].revenue == 35.0
        assert result.daily[date(2025, 3, 2)].units == 4
        # service-only days stay in the series with no retail revenue
        assert result.daily[date(2025, 3, 4)].revenue == 0.0
        assert result.daily[date(2025, 3, 4)].units == 0

    def test_unit_prices_and_last_sold(self):
        result = aggregate_line_items([
            make_item(quantity=2, total=36.0, unit_price=18.0, day=date(2025, 3, 5)),
            make_item(quantity=2, total=40.0, day=date(2025, 3, 2)),
        ])

        shampoo = result.product("Shampoo X")
        assert shampoo.unit_prices == [18.0, 20.0]
        assert shampoo.last_sold == date(2025, 3, 5)
        assert shampoo.daily_revenue == {date(2025, 3, 5): 36.0, date(2025, 3, 2): 40.0}
        assert shampoo.avg_price == 19.0

    def test_discount_totals(self):
        result = aggregate_line_items([
            make_item(total=17.0, discount=3.0),
            make_item(name="Cut", line_type=LineType.SERVICE, discount=10.0),
        ])

        assert result.total_discount == 3.0
        assert result.product("Shampoo X").discount == 3.0

    def test_idempotent(self):
        """Folding the same input twice yields equal aggregates"""
        items = [
            make_item(tx="t-1", staff="st-1", day=date(2025, 3, 1)),
            make_item(name="Cut", line_type=LineType.SERVICE, tx="t-1", staff="st-1"),
            make_item(name="Hair Oil", total=30.1, tx="t-2", staff="st-2", day=date(2025, 3, 6)),
            make_item(name="hair oil", total=0.2, discount=0.1, tx="t-3"),
        ]

        first = aggregate_line_items(items)
        second = aggregate_line_items(items)

        assert first == second
        assert first is not second
        assert first.products["hair oil"] is not second.products["hair oil"]

    def test_empty_input(self):
        result = aggregate_line_items([])

        assert result.products == {}
        assert result.total_revenue == 0.0
        assert result.product("anything") is None
        assert result.revenue_for("anything") == 0.0
