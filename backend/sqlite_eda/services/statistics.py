"""
On-demand column statistics.

A single sampled value decides which of four builders runs (numeric, text,
date or generic). Each builder issues its aggregate queries one after another.
Optional sub-queries (percentiles, histogram buckets, length statistics,
date range and distributions) are allowed to fail: the failure is logged and
the corresponding field is left unset. Failures of the base queries abort the
request, which is then reported as ``StatisticsError``.

Table and column names must already be sanitized; they are interpolated into
SQL as-is.
"""
import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union

import numpy as np
import pandas as pd

from sqlite_eda.core.database import SQLiteDatabase
from sqlite_eda.core.errors import QueryError
from sqlite_eda.core.schemas import (
    BaseStatistics,
    ColumnStatistics,
    DateStatistics,
    GenericStatistics,
    Histogram,
    MonthBucket,
    NumericStatistics,
    StatisticsError,
    TextStatistics,
    ValueFrequency,
    YearBucket,
)
from sqlite_eda.services.type_detector import (
    NUMERIC_TYPES,
    STRING,
    TEMPORAL_TYPES,
    classify_value,
    round_half_up,
)

logger = logging.getLogger(__name__)

HISTOGRAM_BUCKETS = 10
TOP_VALUES_LIMIT = 5
CATEGORICAL_MAX_DISTINCT = 20
MONTH_BUCKET_LIMIT = 12
MS_PER_DAY = 1000 * 60 * 60 * 24


class StatisticsKind(str, Enum):
    NUMERIC = "numeric"
    TEXT = "text"
    DATE = "date"
    GENERIC = "generic"


def statistics_kind(value_type: str) -> StatisticsKind:
    """Map a value type tag to the builder that handles it."""
    if value_type in NUMERIC_TYPES:
        return StatisticsKind.NUMERIC
    if value_type == STRING:
        return StatisticsKind.TEXT
    if value_type in TEMPORAL_TYPES:
        return StatisticsKind.DATE
    return StatisticsKind.GENERIC


def percent_of(part: Optional[float], whole: Optional[float]) -> int:
    """Rounded percentage, 0 when the denominator is empty."""
    if not whole or part is None:
        return 0
    return round_half_up(part / whole * 100)


def _first_row(rows: List[Dict[str, Any]]) -> Dict[str, Any]:
    return rows[0] if rows else {}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _format_bound(value: float) -> str:
    text = f"{round(value, 2):.2f}".rstrip('0').rstrip('.')
    return "0" if text == "-0" else text


# --- shared sub-queries -------------------------------------------------------

def _fill_counts(db: SQLiteDatabase, table: str, column: str, stats: BaseStatistics) -> None:
    rows = db.execute_query(
        f"SELECT COUNT({column}) AS count, COUNT(*) AS total FROM {table}"
    )
    data = _first_row(rows)
    total = data.get("total") or 0

    stats.count = data.get("count") or 0
    stats.nulls = total - stats.count
    stats.null_percent = percent_of(stats.nulls, total)


def _fill_distinct(db: SQLiteDatabase, table: str, column: str, stats: BaseStatistics) -> None:
    rows = db.execute_query(
        f"SELECT COUNT(DISTINCT {column}) AS distinct_count FROM {table} "
        f"WHERE {column} IS NOT NULL"
    )
    stats.distinct_count = _first_row(rows).get("distinct_count") or 0
    stats.distinct_percent = percent_of(stats.distinct_count, stats.count)


def _value_frequencies(
    db: SQLiteDatabase, table: str, column: str, total: int, limit: Optional[int] = TOP_VALUES_LIMIT
) -> List[ValueFrequency]:
    query = (
        f"SELECT {column} AS value, COUNT(*) AS count FROM {table} "
        f"WHERE {column} IS NOT NULL GROUP BY {column} ORDER BY count DESC"
    )
    if limit is not None:
        query += f" LIMIT {int(limit)}"

    return [
        ValueFrequency(value=row["value"], count=row["count"], percent=percent_of(row["count"], total))
        for row in db.execute_query(query)
    ]


# --- builders -----------------------------------------------------------------

def generate_numeric_stats(db: SQLiteDatabase, table: str, column: str) -> NumericStatistics:
    stats = NumericStatistics()
    _fill_counts(db, table, column, stats)

    data = _first_row(db.execute_query(
        f"SELECT MIN({column}) AS min, MAX({column}) AS max, AVG({column}) AS mean "
        f"FROM {table} WHERE {column} IS NOT NULL"
    ))
    stats.min = data.get("min")
    stats.max = data.get("max")
    stats.mean = data.get("mean")

    # Nearest-rank by row offset; approximate under duplicates
    try:
        stats.percentile25 = _percentile(db, table, column, stats.count, 25)
        stats.percentile75 = _percentile(db, table, column, stats.count, 75)
    except QueryError as e:
        logger.info(f"Skipping percentiles for {table}.{column}: {e}")

    _fill_distinct(db, table, column, stats)

    if _is_number(stats.min) and _is_number(stats.max):
        stats.histogram = _histogram(db, table, column, stats.min, stats.max)

    stats.top_values = _value_frequencies(db, table, column, stats.count)
    return stats


def _percentile(db: SQLiteDatabase, table: str, column: str, count: int, percentile: int) -> Optional[Any]:
    # SQLite treats a negative OFFSET as zero
    offset = max(count * percentile // 100 - 1, 0)
    rows = db.execute_query(
        f"SELECT {column} AS value FROM {table} WHERE {column} IS NOT NULL "
        f"ORDER BY {column} LIMIT 1 OFFSET :offset",
        {"offset": offset},
    )
    return rows[0]["value"] if rows else None


def _histogram(db: SQLiteDatabase, table: str, column: str, min_value: float, max_value: float) -> Histogram:
    """
    Equal-width histogram, one COUNT query per bucket.

    Buckets cover [lower, upper); the last bucket also includes the maximum.
    """
    edges = np.linspace(min_value, max_value, HISTOGRAM_BUCKETS + 1)
    histogram = Histogram(buckets=[], counts=[])

    for i in range(HISTOGRAM_BUCKETS):
        lower = float(edges[i])
        upper = float(edges[i + 1])
        histogram.buckets.append(f"{_format_bound(lower)} - {_format_bound(upper)}")

        upper_op = "<=" if i == HISTOGRAM_BUCKETS - 1 else "<"
        try:
            rows = db.execute_query(
                f"SELECT COUNT(*) AS count FROM {table} "
                f"WHERE {column} >= :lower AND {column} {upper_op} :upper",
                {"lower": lower, "upper": upper},
            )
            histogram.counts.append(_first_row(rows).get("count") or 0)
        except QueryError as e:
            logger.info(f"Error generating histogram bucket {i} for {table}.{column}: {e}")
            histogram.counts.append(0)

    return histogram


def generate_text_stats(db: SQLiteDatabase, table: str, column: str) -> TextStatistics:
    stats = TextStatistics()
    _fill_counts(db, table, column, stats)
    _fill_distinct(db, table, column, stats)

    try:
        data = _first_row(db.execute_query(
            f"SELECT MIN(length({column})) AS min_length, MAX(length({column})) AS max_length, "
            f"AVG(length({column})) AS avg_length FROM {table} WHERE {column} IS NOT NULL"
        ))
        stats.min_length = data.get("min_length")
        stats.max_length = data.get("max_length")
        stats.avg_length = data.get("avg_length")
    except QueryError as e:
        logger.info(f"Skipping length calculations for {table}.{column}: {e}")

    stats.top_values = _value_frequencies(db, table, column, stats.count)

    # Few distinct values: list every category
    if stats.distinct_count <= CATEGORICAL_MAX_DISTINCT:
        stats.is_likely_categorical = True
        stats.categories = _value_frequencies(db, table, column, stats.count, limit=None)

    return stats


def generate_date_stats(db: SQLiteDatabase, table: str, column: str) -> DateStatistics:
    stats = DateStatistics()
    _fill_counts(db, table, column, stats)

    data = _first_row(db.execute_query(
        f"SELECT MIN({column}) AS min_date, MAX({column}) AS max_date "
        f"FROM {table} WHERE {column} IS NOT NULL"
    ))
    stats.min_date = data.get("min_date")
    stats.max_date = data.get("max_date")
    stats.range_days = _range_days(stats.min_date, stats.max_date)

    _fill_distinct(db, table, column, stats)

    try:
        year_rows = db.execute_query(
            f"SELECT strftime('%Y', {column}) AS year, COUNT(*) AS count FROM {table} "
            f"WHERE {column} IS NOT NULL GROUP BY year ORDER BY year"
        )
        stats.year_distribution = [
            YearBucket(year=row["year"], count=row["count"], percent=percent_of(row["count"], stats.count))
            for row in year_rows
        ]

        month_rows = db.execute_query(
            f"SELECT strftime('%Y-%m', {column}) AS month, COUNT(*) AS count FROM {table} "
            f"WHERE {column} IS NOT NULL GROUP BY month ORDER BY month LIMIT {MONTH_BUCKET_LIMIT}"
        )
        stats.month_distribution = [
            MonthBucket(month=row["month"], count=row["count"], percent=percent_of(row["count"], stats.count))
            for row in month_rows
        ]
    except QueryError as e:
        logger.info(f"Error calculating date distributions for {table}.{column}: {e}")

    return stats


def _range_days(min_date: Any, max_date: Any) -> Optional[int]:
    try:
        start = pd.to_datetime(min_date)
        end = pd.to_datetime(max_date)
        milliseconds = (end - start).total_seconds() * 1000
        return round_half_up(milliseconds / MS_PER_DAY)
    except (ValueError, TypeError, AttributeError, OverflowError) as e:
        logger.info(f"Error calculating date range: {e}")
        return None


def generate_generic_stats(db: SQLiteDatabase, table: str, column: str) -> GenericStatistics:
    stats = GenericStatistics()
    _fill_counts(db, table, column, stats)
    _fill_distinct(db, table, column, stats)
    stats.top_values = _value_frequencies(db, table, column, stats.count)
    return stats


StatisticsBuilder = Callable[[SQLiteDatabase, str, str], BaseStatistics]

BUILDERS: Dict[StatisticsKind, StatisticsBuilder] = {
    StatisticsKind.NUMERIC: generate_numeric_stats,
    StatisticsKind.TEXT: generate_text_stats,
    StatisticsKind.DATE: generate_date_stats,
    StatisticsKind.GENERIC: generate_generic_stats,
}


def generate_column_statistics(
    db: SQLiteDatabase, table_name: str, column_name: str
) -> Union[ColumnStatistics, StatisticsError]:
    """
    Compute statistics for one column, choosing the builder from the type of
    the first stored value.

    Returns:
        One of the four statistics records, or StatisticsError when the
        column has no rows or a required query fails
    """
    try:
        rows = db.execute_query(f"SELECT {column_name} FROM {table_name} LIMIT 1")
        if not rows:
            return StatisticsError(error="No data available")

        kind = statistics_kind(classify_value(rows[0].get(column_name)))
        logger.debug(f"Generating {kind.value} statistics for {table_name}.{column_name}")
        return BUILDERS[kind](db, table_name, column_name)
    except Exception as e:
        logger.error(f"Error generating statistics for {table_name}.{column_name}: {e}", exc_info=True)
        return StatisticsError(error=str(e))
