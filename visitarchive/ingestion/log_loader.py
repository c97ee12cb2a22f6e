"""
Raw Log Loader

Loads visit and conversion log exports (CSV, JSON, JSONL or Parquet) into
Polars DataFrames shaped the way the archive processors query them.
Supports:
- Schema conformance (missing columns added as nulls, types cast)
- Restricting a log to one reporting period
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Union

import polars as pl
import structlog

from visitarchive.core.periods import Period

logger = structlog.get_logger(__name__)


class LogFormat(str, Enum):
    """Supported file formats"""
    CSV = "csv"
    JSON = "json"
    JSONL = "jsonl"
    PARQUET = "parquet"


class LogKind(str, Enum):
    """Which log a file holds"""
    VISITS = "visits"
    CONVERSIONS = "conversions"


VISIT_LOG_SCHEMA: Dict[str, pl.DataType] = {
    "idvisit": pl.Int64,
    "idvisitor": pl.Utf8,
    "visit_last_action_time": pl.Datetime,
    "visit_total_actions": pl.Int64,
    "visit_total_time": pl.Int64,
    "visit_goal_converted": pl.Int64,
    "referer_type": pl.Utf8,
    "referer_name": pl.Utf8,
    "referer_keyword": pl.Utf8,
    "referer_url": pl.Utf8,
    "location_country": pl.Utf8,
    "location_region": pl.Utf8,
    "location_city": pl.Utf8,
    "location_latitude": pl.Float64,
    "location_longitude": pl.Float64,
}

CONVERSION_LOG_SCHEMA: Dict[str, pl.DataType] = {
    "idvisit": pl.Int64,
    "idgoal": pl.Int64,
    "server_time": pl.Datetime,
    "referer_type": pl.Utf8,
    "referer_name": pl.Utf8,
    "referer_keyword": pl.Utf8,
    "location_country": pl.Utf8,
    "location_region": pl.Utf8,
    "location_city": pl.Utf8,
    "revenue": pl.Float64,
    "revenue_subtotal": pl.Float64,
    "revenue_tax": pl.Float64,
    "revenue_shipping": pl.Float64,
    "revenue_discount": pl.Float64,
    "items": pl.Int64,
}

LOG_SCHEMAS = {
    LogKind.VISITS: VISIT_LOG_SCHEMA,
    LogKind.CONVERSIONS: CONVERSION_LOG_SCHEMA,
}

TIMESTAMP_COLUMNS = {
    LogKind.VISITS: "visit_last_action_time",
    LogKind.CONVERSIONS: "server_time",
}


def conform_log_frame(df: pl.DataFrame, schema: Dict[str, pl.DataType]) -> pl.DataFrame:
    """Add missing schema columns as nulls and cast the rest to their schema types"""
    exprs = []
    for column, dtype in schema.items():
        if column not in df.columns:
            exprs.append(pl.lit(None, dtype=dtype).alias(column))
        elif df.schema[column] == dtype:
            continue
        elif dtype == pl.Datetime and df.schema[column] == pl.Utf8:
            exprs.append(pl.col(column).str.to_datetime(strict=False).alias(column))
        else:
            exprs.append(pl.col(column).cast(dtype, strict=False).alias(column))
    return df.with_columns(exprs) if exprs else df


def filter_period(df: pl.DataFrame, period: Period, column: str) -> pl.DataFrame:
    """Rows whose timestamp falls within the period"""
    return df.filter(pl.col(column).dt.date().is_between(period.start, period.end))


@dataclass
class LogFileConfig:
    """Configuration for loading one log file"""
    file_path: Union[str, Path]
    kind: LogKind
    file_format: LogFormat = LogFormat.PARQUET
    period: Optional[Period] = None
    delimiter: str = ","
    encoding: str = "utf8"
    null_values: List[str] = field(default_factory=lambda: ["", "NULL", "null", "None", "NA", "N/A"])


class LogLoader:
    """
    Loads raw log files for archiving.

    Example:
        loader = LogLoader()
        visits = loader.load(LogFileConfig(
            file_path="data/logs/visits.csv",
            kind=LogKind.VISITS,
            file_format=LogFormat.CSV,
            period=Period.day(date(2024, 3, 1)),
        ))
    """

    def _read_csv(self, config: LogFileConfig) -> pl.DataFrame:
        """Read CSV file as text, typed later by conform_log_frame"""
        return pl.read_csv(
            config.file_path,
            separator=config.delimiter,
            encoding=config.encoding,
            null_values=config.null_values,
            infer_schema_length=0,
        )

    def _read_json(self, config: LogFileConfig) -> pl.DataFrame:
        return pl.read_json(config.file_path)

    def _read_jsonl(self, config: LogFileConfig) -> pl.DataFrame:
        return pl.read_ndjson(config.file_path)

    def _read_parquet(self, config: LogFileConfig) -> pl.DataFrame:
        return pl.read_parquet(config.file_path)

    def _read_file(self, config: LogFileConfig) -> pl.DataFrame:
        """Read file based on format"""
        readers = {
            LogFormat.CSV: self._read_csv,
            LogFormat.JSON: self._read_json,
            LogFormat.JSONL: self._read_jsonl,
            LogFormat.PARQUET: self._read_parquet,
        }
        reader = readers.get(LogFormat(config.file_format))
        if not reader:
            raise ValueError(f"Unsupported file format: {config.file_format}")
        return reader(config)

    def load(self, config: LogFileConfig) -> pl.DataFrame:
        """
        Load a log file.

        Args:
            config: Log file configuration

        Returns:
            DataFrame conforming to the log kind's schema

        Raises:
            FileNotFoundError: If the file does not exist
        """
        file_path = Path(config.file_path)
        if not file_path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        df = self._read_file(config)
        rows_read = len(df)
        df = conform_log_frame(df, LOG_SCHEMAS[config.kind])

        if config.period is not None:
            df = filter_period(df, config.period, TIMESTAMP_COLUMNS[config.kind])

        logger.info(
            "Loaded log file",
            file=str(file_path),
            kind=config.kind.value,
            rows_read=rows_read,
            rows_kept=len(df),
            period=str(config.period) if config.period else None,
        )
        return df
