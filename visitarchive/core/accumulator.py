"""
Accumulator Tables

Insertion-ordered mappings from a report label to its running
``MetricsRow``. ``PivotTable`` adds a second key level for reports broken
down by a pair of dimensions (e.g. keyword by search engine).
"""

from typing import Any, Dict, Iterator, Mapping

from .metrics import MetricsRow, RowFactory


class AccumulatorTable(Mapping[str, MetricsRow]):
    """
    Label to MetricsRow mapping with lazy bucket creation.

    Example:
        table = AccumulatorTable(RowFactory())
        table.sum_metrics("google", row)
        table["google"]["nb_visits"]
    """

    def __init__(self, factory: RowFactory):
        self.factory = factory
        self._rows: Dict[str, MetricsRow] = {}

    def __getitem__(self, label: str) -> MetricsRow:
        return self._rows[label]

    def __iter__(self) -> Iterator[str]:
        return iter(self._rows)

    def __len__(self) -> int:
        return len(self._rows)

    def row(self, label: str) -> MetricsRow:
        """Bucket for a label, created empty on first use"""
        metrics = self._rows.get(label)
        if metrics is None:
            metrics = self.factory.make_empty_row()
            self._rows[label] = metrics
        return metrics

    def sum_metrics(self, label: str, source: Mapping[str, Any]) -> None:
        self.row(label).sum_metrics(source)

    def sum_goal_metrics(self, label: str, id_goal: int, source: Mapping[str, Any]) -> None:
        self.row(label).goal(id_goal, self.factory).sum_metrics(source)


class PivotTable(Mapping[str, AccumulatorTable]):
    """Two-level accumulator: parent label -> child label -> MetricsRow"""

    def __init__(self, factory: RowFactory):
        self.factory = factory
        self._tables: Dict[str, AccumulatorTable] = {}

    def __getitem__(self, label: str) -> AccumulatorTable:
        return self._tables[label]

    def __iter__(self) -> Iterator[str]:
        return iter(self._tables)

    def __len__(self) -> int:
        return len(self._tables)

    def sub_table(self, label: str) -> AccumulatorTable:
        table = self._tables.get(label)
        if table is None:
            table = AccumulatorTable(self.factory)
            self._tables[label] = table
        return table

    def sum_metrics(self, label: str, sub_label: str, source: Mapping[str, Any]) -> None:
        self.sub_table(label).sum_metrics(sub_label, source)

    def sum_goal_metrics(
        self,
        label: str,
        sub_label: str,
        id_goal: int,
        source: Mapping[str, Any],
    ) -> None:
        self.sub_table(label).sum_goal_metrics(sub_label, id_goal, source)
