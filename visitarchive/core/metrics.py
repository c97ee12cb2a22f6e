"""
Metrics Rows

A ``MetricsRow`` holds the summable counters of one report bucket plus the
per-goal conversion rows nested beneath it. Rows are created empty and then
merged into repeatedly, either from grouped log rows or from other rows
(when archives are summed).
"""

import copy
import operator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Union

Number = Union[int, float]


class Metric(str, Enum):
    """Visit-level columns"""
    NB_UNIQ_VISITORS = "nb_uniq_visitors"
    NB_VISITS = "nb_visits"
    NB_ACTIONS = "nb_actions"
    MAX_ACTIONS = "max_actions"
    SUM_VISIT_LENGTH = "sum_visit_length"
    BOUNCE_COUNT = "bounce_count"
    NB_VISITS_CONVERTED = "nb_visits_converted"
    # set by conversion enrichment
    NB_CONVERSIONS = "nb_conversions"
    REVENUE = "revenue"


class GoalMetric(str, Enum):
    """Per-goal conversion columns"""
    NB_CONVERSIONS = "nb_conversions"
    NB_VISITS_CONVERTED = "nb_visits_converted"
    REVENUE = "revenue"
    REVENUE_SUBTOTAL = "revenue_subtotal"
    REVENUE_TAX = "revenue_tax"
    REVENUE_SHIPPING = "revenue_shipping"
    REVENUE_DISCOUNT = "revenue_discount"
    ITEMS = "items"


# Ecommerce pseudo goals
IDGOAL_ORDER = 0
IDGOAL_CART = -1

VISIT_METRICS = (
    Metric.NB_UNIQ_VISITORS,
    Metric.NB_VISITS,
    Metric.NB_ACTIONS,
    Metric.MAX_ACTIONS,
    Metric.SUM_VISIT_LENGTH,
    Metric.BOUNCE_COUNT,
    Metric.NB_VISITS_CONVERTED,
)

GOAL_METRICS = (
    GoalMetric.NB_CONVERSIONS,
    GoalMetric.NB_VISITS_CONVERTED,
    GoalMetric.REVENUE,
)

ECOMMERCE_GOAL_METRICS = GOAL_METRICS + (
    GoalMetric.REVENUE_SUBTOTAL,
    GoalMetric.REVENUE_TAX,
    GoalMetric.REVENUE_SHIPPING,
    GoalMetric.REVENUE_DISCOUNT,
    GoalMetric.ITEMS,
)

# Columns not merged by addition
_COLUMN_AGGREGATIONS: Dict[str, Callable[[Number, Number], Number]] = {
    Metric.MAX_ACTIONS.value: max,
}


def aggregate_column(name: str, current: Number, value: Number) -> Number:
    """Combine two values of the named column"""
    return _COLUMN_AGGREGATIONS.get(name, operator.add)(current, value)


@dataclass
class MetricsRow:
    """Summable counters of one bucket, with nested rows keyed by goal id"""
    columns: Dict[str, Number] = field(default_factory=dict)
    goals: Dict[int, "MetricsRow"] = field(default_factory=dict)

    @classmethod
    def with_columns(cls, names) -> "MetricsRow":
        return cls(columns={_column_name(name): 0 for name in names})

    def __getitem__(self, name) -> Number:
        return self.columns.get(_column_name(name), 0)

    def __setitem__(self, name, value: Number) -> None:
        self.columns[_column_name(name)] = value

    def sum_metrics(self, source: Mapping[str, Any]) -> None:
        """
        Merge a grouped log row into this row.

        Only the columns this row was created with are read from the
        source; missing or null source values count as zero.
        """
        for name, current in self.columns.items():
            value = source.get(name)
            if value is None:
                continue
            self.columns[name] = aggregate_column(name, current, value)

    def sum_row(self, other: "MetricsRow") -> None:
        """Merge another MetricsRow into this one, goals included"""
        for name, value in other.columns.items():
            if name in self.columns:
                self.columns[name] = aggregate_column(name, self.columns[name], value)
            else:
                self.columns[name] = value
        for id_goal, goal_row in other.goals.items():
            target = self.goals.get(id_goal)
            if target is None:
                self.goals[id_goal] = goal_row.copy()
            else:
                target.sum_row(goal_row)

    def goal(self, id_goal: int, factory: "RowFactory") -> "MetricsRow":
        """Nested row for a goal, created on first use"""
        goal_row = self.goals.get(id_goal)
        if goal_row is None:
            goal_row = factory.make_empty_goal_row(id_goal)
            self.goals[id_goal] = goal_row
        return goal_row

    def copy(self) -> "MetricsRow":
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = dict(self.columns)
        if self.goals:
            data["goals"] = {id_goal: dict(row.columns) for id_goal, row in self.goals.items()}
        return data


class RowFactory:
    """Creates the empty rows report buckets start from"""

    def make_empty_row(self) -> MetricsRow:
        return MetricsRow.with_columns(VISIT_METRICS)

    def make_empty_goal_row(self, id_goal: int) -> MetricsRow:
        if int(id_goal) > IDGOAL_ORDER:
            return MetricsRow.with_columns(GOAL_METRICS)
        return MetricsRow.with_columns(ECOMMERCE_GOAL_METRICS)


def _column_name(name) -> str:
    return name.value if isinstance(name, Enum) else name
