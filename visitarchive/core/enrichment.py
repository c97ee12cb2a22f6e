"""
Conversion Enrichment

Folds the per-goal rows collected from conversions into the visit-level
``nb_conversions`` and ``revenue`` columns of each bucket.
"""

from typing import Iterable

from .accumulator import AccumulatorTable, PivotTable
from .metrics import IDGOAL_CART, GoalMetric, Metric, MetricsRow


def enrich_row_with_conversions(metrics: MetricsRow) -> None:
    """Set conversion totals on one row from its goal rows"""
    if not metrics.goals:
        return

    conversions = 0
    revenue = 0
    for id_goal, goal_row in metrics.goals.items():
        # abandoned carts are not conversions
        if id_goal == IDGOAL_CART:
            continue
        conversions += goal_row[GoalMetric.NB_CONVERSIONS]
        revenue += goal_row[GoalMetric.REVENUE]

    if float(revenue).is_integer():
        revenue = int(revenue)

    metrics[Metric.NB_CONVERSIONS] = conversions
    metrics[Metric.REVENUE] = revenue


def _enrich_rows(rows: Iterable[MetricsRow]) -> None:
    for metrics in rows:
        enrich_row_with_conversions(metrics)


def enrich_with_conversions(table: AccumulatorTable) -> None:
    """Enrich every row of a flat accumulator table"""
    _enrich_rows(table.values())


def enrich_pivot_with_conversions(table: PivotTable) -> None:
    """Enrich every child row of a pivot table"""
    for sub_table in table.values():
        _enrich_rows(sub_table.values())
