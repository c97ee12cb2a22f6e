"""
Unit Tests - Accumulator Tables and Conversion Enrichment
"""
from visitarchive.core.accumulator import AccumulatorTable, PivotTable
from visitarchive.core.enrichment import (
    enrich_pivot_with_conversions,
    enrich_row_with_conversions,
    enrich_with_conversions,
)
from visitarchive.core.metrics import IDGOAL_CART, IDGOAL_ORDER, GoalMetric, Metric


class TestAccumulatorTable:
    """Tests for AccumulatorTable"""

    def test_buckets_created_lazily_in_insertion_order(self, row_factory):
        table = AccumulatorTable(row_factory)
        table.sum_metrics("Google", {"nb_visits": 1})
        table.sum_metrics("Bing", {"nb_visits": 2})
        table.sum_metrics("Google", {"nb_visits": 3})

        assert list(table) == ["Google", "Bing"]
        assert table["Google"][Metric.NB_VISITS] == 4
        assert len(table) == 2

    def test_goal_metrics_create_bucket(self, row_factory):
        table = AccumulatorTable(row_factory)
        table.sum_goal_metrics("Google", 1, {"nb_conversions": 1, "revenue": 3.5})

        assert table["Google"][Metric.NB_VISITS] == 0
        assert table["Google"].goals[1][GoalMetric.REVENUE] == 3.5

    def test_row_returns_same_bucket(self, row_factory):
        table = AccumulatorTable(row_factory)

        assert table.row("x") is table.row("x")


class TestPivotTable:
    """Tests for PivotTable"""

    def test_two_level_sum(self, row_factory):
        pivot = PivotTable(row_factory)
        pivot.sum_metrics("Google", "shoes", {"nb_visits": 1})
        pivot.sum_metrics("Google", "boots", {"nb_visits": 2})
        pivot.sum_metrics("Bing", "shoes", {"nb_visits": 4})
        pivot.sum_metrics("Google", "shoes", {"nb_visits": 1})

        assert list(pivot) == ["Google", "Bing"]
        assert list(pivot["Google"]) == ["shoes", "boots"]
        assert pivot["Google"]["shoes"][Metric.NB_VISITS] == 2
        assert pivot["Bing"]["shoes"][Metric.NB_VISITS] == 4

    def test_goal_metrics(self, row_factory):
        pivot = PivotTable(row_factory)
        pivot.sum_goal_metrics("spring_sale", "newsletter", 2, {"nb_conversions": 1})

        assert pivot["spring_sale"]["newsletter"].goals[2][GoalMetric.NB_CONVERSIONS] == 1


class TestConversionEnrichment:
    """Tests for conversion enrichment"""

    def test_totals_exclude_abandoned_carts(self, row_factory):
        table = AccumulatorTable(row_factory)
        table.sum_goal_metrics("example.com", 1, {"nb_conversions": 2, "revenue": 10.0})
        table.sum_goal_metrics("example.com", IDGOAL_ORDER, {"nb_conversions": 1, "revenue": 99.5})
        table.sum_goal_metrics("example.com", IDGOAL_CART, {"nb_conversions": 4, "revenue": 50.0})

        enrich_with_conversions(table)

        row = table["example.com"]
        assert row[Metric.NB_CONVERSIONS] == 3
        assert row[Metric.REVENUE] == 109.5

    def test_integral_revenue_becomes_int(self, row_factory):
        row = row_factory.make_empty_row()
        row.goal(1, row_factory).sum_metrics({"nb_conversions": 1, "revenue": 10.0})

        enrich_row_with_conversions(row)

        assert row[Metric.REVENUE] == 10
        assert isinstance(row[Metric.REVENUE], int)

    def test_row_without_goals_untouched(self, row_factory):
        row = row_factory.make_empty_row()

        enrich_row_with_conversions(row)

        assert "nb_conversions" not in row.columns
        assert "revenue" not in row.columns

    def test_cart_only_row(self, row_factory):
        row = row_factory.make_empty_row()
        row.goal(IDGOAL_CART, row_factory).sum_metrics({"nb_conversions": 1, "revenue": 20.0})

        enrich_row_with_conversions(row)

        assert row[Metric.NB_CONVERSIONS] == 0
        assert row[Metric.REVENUE] == 0

    def test_pivot_enrichment(self, row_factory):
        pivot = PivotTable(row_factory)
        pivot.sum_goal_metrics("spring_sale", "newsletter", 1, {"nb_conversions": 1, "revenue": 2.25})

        enrich_pivot_with_conversions(pivot)

        assert pivot["spring_sale"]["newsletter"][Metric.REVENUE] == 2.25
