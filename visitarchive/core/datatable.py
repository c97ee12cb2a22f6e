"""
Hierarchical Report Tables

``DataTable`` is the report shape that gets archived: labelled rows of
metrics, each optionally carrying a subtable with a second-level breakdown.
Tables are built from accumulator tables at the end of a day, truncated and
serialized to JSON, and later deserialized and summed when a coarser period
is rolled up.

Truncation keeps the top rows by a sort column and folds the remainder into
a single summary row, so totals over a truncated table are unchanged.
"""

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Mapping, Optional, Union

from pydantic import BaseModel, Field, ValidationError

from .exceptions import BlobFormatError
from .metrics import Metric, MetricsRow

SUMMARY_ROW_LABEL = "Others"

ColumnValue = Union[int, float]


# =============================================================================
# SERIALIZED FORM
# =============================================================================

class SerializedRow(BaseModel):
    """Stored form of a table row"""
    label: str
    columns: Dict[str, ColumnValue] = Field(default_factory=dict)
    goals: Dict[int, Dict[str, ColumnValue]] = Field(default_factory=dict)
    metadata: Dict[str, Any] = Field(default_factory=dict)
    subtable: Optional["SerializedTable"] = None


class SerializedTable(BaseModel):
    """Stored form of a table, the payload of a blob record"""
    rows: List[SerializedRow] = Field(default_factory=list)
    summary_row: Optional[SerializedRow] = None


SerializedRow.model_rebuild()


# =============================================================================
# TABLES
# =============================================================================

@dataclass(frozen=True)
class RowCount:
    """Top-level and recursive row counts of a table"""
    level0: int = 0
    recursive: int = 0


@dataclass
class DataTableRow:
    """Labelled metrics with optional metadata and subtable"""
    label: str
    metrics: MetricsRow = field(default_factory=MetricsRow)
    metadata: Dict[str, Any] = field(default_factory=dict)
    subtable: Optional["DataTable"] = None

    def sum_row(self, other: "DataTableRow") -> None:
        """Merge another row's metrics and subtable into this row"""
        self.metrics.sum_row(other.metrics)
        for key, value in other.metadata.items():
            self.metadata.setdefault(key, value)
        if other.subtable is None:
            return
        if self.subtable is None:
            self.subtable = copy.deepcopy(other.subtable)
        else:
            self.subtable.sum_table(other.subtable)

    def to_serialized(self) -> SerializedRow:
        return SerializedRow(
            label=self.label,
            columns=dict(self.metrics.columns),
            goals={id_goal: dict(goal.columns) for id_goal, goal in self.metrics.goals.items()},
            metadata=dict(self.metadata),
            subtable=self.subtable.to_serialized() if self.subtable is not None else None,
        )

    @classmethod
    def from_serialized(cls, data: SerializedRow) -> "DataTableRow":
        metrics = MetricsRow(
            columns=dict(data.columns),
            goals={id_goal: MetricsRow(columns=dict(goal)) for id_goal, goal in data.goals.items()},
        )
        return cls(
            label=data.label,
            metrics=metrics,
            metadata=dict(data.metadata),
            subtable=DataTable.from_serialized(data.subtable) if data.subtable is not None else None,
        )


class DataTable:
    """
    Ordered collection of report rows keyed by label.

    Example:
        table = DataTable.from_pivot(metrics_by_engine, metrics_by_engine_and_keyword)
        blob = table.serialize(max_rows_level0=1000, max_rows_subtable=50)
        same = DataTable.deserialize(blob)
    """

    def __init__(self, rows: Optional[List[DataTableRow]] = None):
        self._rows: Dict[str, DataTableRow] = {}
        self.summary_row: Optional[DataTableRow] = None
        for row in rows or []:
            self.add_row(row)

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[DataTableRow]:
        return iter(list(self._rows.values()))

    @property
    def rows(self) -> List[DataTableRow]:
        return list(self._rows.values())

    @property
    def labels(self) -> List[str]:
        return list(self._rows)

    def add_row(self, row: DataTableRow) -> None:
        if row.label in self._rows:
            raise ValueError(f"Duplicate row label: {row.label!r}")
        self._rows[row.label] = row

    def get_row_from_label(self, label: str) -> Optional[DataTableRow]:
        return self._rows.get(label)

    # -------------------------------------------------------------------------
    # Building
    # -------------------------------------------------------------------------

    @classmethod
    def from_accumulator(cls, table: Mapping[str, MetricsRow]) -> "DataTable":
        """Flat table, one row per accumulator label"""
        return cls([DataTableRow(label=str(label), metrics=metrics) for label, metrics in table.items()])

    @classmethod
    def from_pivot(
        cls,
        parent: Mapping[str, MetricsRow],
        children: Mapping[str, Mapping[str, MetricsRow]],
    ) -> "DataTable":
        """
        Table whose rows carry subtables built from the pivot entries
        sharing the row's label.

        Raises:
            ValueError: If the pivot holds a label missing from the parent
        """
        orphans = [label for label in children if label not in parent]
        if orphans:
            raise ValueError(f"Pivot labels without a parent row: {orphans}")

        table = cls()
        for label, metrics in parent.items():
            row = DataTableRow(label=str(label), metrics=metrics)
            sub_rows = children.get(label)
            if sub_rows:
                row.subtable = cls.from_accumulator(sub_rows)
            table.add_row(row)
        return table

    # -------------------------------------------------------------------------
    # Summing
    # -------------------------------------------------------------------------

    def sum_table(self, other: "DataTable") -> None:
        """Add another table into this one, label by label, subtables included"""
        for row in other:
            existing = self._rows.get(row.label)
            if existing is None:
                self._rows[row.label] = copy.deepcopy(row)
            else:
                existing.sum_row(row)

        if other.summary_row is not None:
            if self.summary_row is None:
                self.summary_row = copy.deepcopy(other.summary_row)
            else:
                self.summary_row.sum_row(other.summary_row)

    # -------------------------------------------------------------------------
    # Sorting and truncation
    # -------------------------------------------------------------------------

    def sort(self, column: Union[str, Metric] = Metric.NB_VISITS) -> None:
        """Sort rows descending by a column, ties keep their current order"""
        ordered = sorted(self._rows.values(), key=lambda row: row.metrics[column], reverse=True)
        self._rows = {row.label: row for row in ordered}

    def truncate(self, limit: int, column: Union[str, Metric] = Metric.NB_VISITS) -> None:
        """Keep the top ``limit`` rows by column, summing the rest into the summary row"""
        if limit < 1:
            raise ValueError(f"Truncation limit must be positive, got {limit}")

        self.sort(column)
        if len(self._rows) <= limit:
            return

        ordered = list(self._rows.values())
        if self.summary_row is None:
            self.summary_row = DataTableRow(label=SUMMARY_ROW_LABEL)
        for row in ordered[limit:]:
            self.summary_row.metrics.sum_row(row.metrics)
        self._rows = {row.label: row for row in ordered[:limit]}

    def truncate_recursive(
        self,
        max_rows_level0: Optional[int],
        max_rows_subtable: Optional[int],
        column: Union[str, Metric] = Metric.NB_VISITS,
    ) -> None:
        """Sort every level by column, truncating the levels that have a limit"""
        if max_rows_level0 is None:
            self.sort(column)
        else:
            self.truncate(max_rows_level0, column)
        for row in self._rows.values():
            if row.subtable is not None:
                row.subtable.truncate_recursive(max_rows_subtable, max_rows_subtable, column)

    # -------------------------------------------------------------------------
    # Counting
    # -------------------------------------------------------------------------

    def count_rows(self) -> RowCount:
        """Row counts, summary rows excluded"""
        level0 = len(self._rows)
        recursive = level0
        for row in self._rows.values():
            if row.subtable is not None:
                recursive += row.subtable.count_rows().recursive
        return RowCount(level0=level0, recursive=recursive)

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_serialized(self) -> SerializedTable:
        return SerializedTable(
            rows=[row.to_serialized() for row in self._rows.values()],
            summary_row=self.summary_row.to_serialized() if self.summary_row is not None else None,
        )

    @classmethod
    def from_serialized(cls, data: SerializedTable) -> "DataTable":
        table = cls([DataTableRow.from_serialized(row) for row in data.rows])
        if data.summary_row is not None:
            table.summary_row = DataTableRow.from_serialized(data.summary_row)
        return table

    def serialize(
        self,
        max_rows_level0: Optional[int] = None,
        max_rows_subtable: Optional[int] = None,
        sort_column: Union[str, Metric] = Metric.NB_VISITS,
    ) -> str:
        """
        Serialize a truncated copy of the table.

        Args:
            max_rows_level0: Rows kept at the top level, None keeps all
            max_rows_subtable: Rows kept in every subtable, None keeps all
            sort_column: Column rows are ranked by before truncation

        Returns:
            JSON blob
        """
        table = copy.deepcopy(self)
        table.truncate_recursive(max_rows_level0, max_rows_subtable, sort_column)
        return table.to_serialized().model_dump_json(exclude_defaults=True)

    @classmethod
    def deserialize(cls, blob: Union[str, bytes]) -> "DataTable":
        try:
            data = SerializedTable.model_validate_json(blob)
        except ValidationError as e:
            raise BlobFormatError(f"Invalid report blob: {e.error_count()} errors") from e
        return cls.from_serialized(data)
