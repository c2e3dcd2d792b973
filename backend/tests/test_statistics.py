"""
Unit tests for on-demand column statistics.
"""
import pytest
from sqlite_eda.core.errors import QueryError
from sqlite_eda.core.schemas import (
    DateStatistics,
    GenericStatistics,
    NumericStatistics,
    StatisticsError,
    TextStatistics,
)
from sqlite_eda.services.statistics import (
    StatisticsKind,
    _range_days,
    generate_column_statistics,
    percent_of,
    statistics_kind,
)


class FailingDatabase:
    """Delegates to a real database but fails queries containing ``fragment``."""

    def __init__(self, database, fragment):
        self.database = database
        self.fragment = fragment

    def execute_query(self, query, params=None):
        if self.fragment in query:
            raise QueryError("simulated failure")
        return self.database.execute_query(query, params)


@pytest.mark.unit
def test_statistics_kind():
    assert statistics_kind("integer") == StatisticsKind.NUMERIC
    assert statistics_kind("float") == StatisticsKind.NUMERIC
    assert statistics_kind("string") == StatisticsKind.TEXT
    assert statistics_kind("date") == StatisticsKind.DATE
    assert statistics_kind("datetime") == StatisticsKind.DATE
    assert statistics_kind("boolean") == StatisticsKind.GENERIC
    assert statistics_kind("null") == StatisticsKind.GENERIC


@pytest.mark.unit
def test_percent_of():
    assert percent_of(1, 4) == 25
    assert percent_of(1, 3) == 33
    assert percent_of(2, 3) == 67
    assert percent_of(5, 0) == 0


@pytest.mark.unit
def test_numeric_statistics(database):
    stats = generate_column_statistics(database, "numbers", "n")

    assert isinstance(stats, NumericStatistics)
    assert stats.kind == "numeric"
    assert stats.count == 10
    assert stats.nulls == 0
    assert stats.null_percent == 0
    assert stats.min == 1
    assert stats.max == 10
    assert stats.mean == 5.5
    assert stats.percentile25 == 2
    assert stats.percentile75 == 7
    assert stats.distinct_count == 10
    assert stats.distinct_percent == 100


@pytest.mark.unit
def test_numeric_histogram(database):
    stats = generate_column_statistics(database, "numbers", "n")

    assert len(stats.histogram.buckets) == 10
    assert len(stats.histogram.counts) == 10
    assert sum(stats.histogram.counts) == 10
    assert stats.histogram.buckets[0] == "1 - 1.9"
    assert stats.histogram.buckets[-1] == "9.1 - 10"
    # The maximum lands in the last bucket
    assert stats.histogram.counts[-1] == 1


@pytest.mark.unit
def test_numeric_top_values(database):
    stats = generate_column_statistics(database, "numbers", "n")

    assert len(stats.top_values) == 5
    assert all(item.count == 1 and item.percent == 10 for item in stats.top_values)


@pytest.mark.unit
def test_real_column_statistics(database):
    stats = generate_column_statistics(database, "orders", "amount")

    assert isinstance(stats, NumericStatistics)
    assert stats.count == 100
    assert stats.min == 12.5
    assert stats.max == 260
    assert sum(stats.histogram.counts) == 100


@pytest.mark.unit
def test_text_statistics(database):
    stats = generate_column_statistics(database, "letters", "letter")

    assert isinstance(stats, TextStatistics)
    assert stats.count == 4
    assert stats.distinct_count == 3
    assert stats.distinct_percent == 75
    assert stats.min_length == 1
    assert stats.max_length == 1
    assert stats.avg_length == 1
    assert stats.top_values[0].value == "a"
    assert stats.top_values[0].count == 2


@pytest.mark.unit
def test_text_statistics_categories(database):
    stats = generate_column_statistics(database, "letters", "letter")

    assert stats.is_likely_categorical is True
    assert len(stats.categories) == 3
    assert sum(item.count for item in stats.categories) == 4
    assert [item.percent for item in stats.categories] == [50, 25, 25]


@pytest.mark.unit
def test_text_statistics_with_nulls(database):
    stats = generate_column_statistics(database, "events", "label")

    assert isinstance(stats, TextStatistics)
    assert stats.count == 3
    assert stats.nulls == 1
    assert stats.null_percent == 25


@pytest.mark.unit
def test_date_statistics(database):
    stats = generate_column_statistics(database, "events", "happened_on")

    assert isinstance(stats, DateStatistics)
    assert stats.count == 4
    assert stats.min_date == "2023-12-30"
    assert stats.max_date == "2024-03-01"
    assert stats.range_days == 62
    assert stats.distinct_count == 4


@pytest.mark.unit
def test_date_distributions(database):
    stats = generate_column_statistics(database, "events", "happened_on")

    assert [(b.year, b.count, b.percent) for b in stats.year_distribution] == [
        ("2023", 1, 25),
        ("2024", 3, 75),
    ]
    assert [(b.month, b.count) for b in stats.month_distribution] == [
        ("2023-12", 1),
        ("2024-01", 2),
        ("2024-03", 1),
    ]


@pytest.mark.unit
def test_month_distribution_is_capped(database):
    stats = generate_column_statistics(database, "orders", "created_at")

    assert isinstance(stats, DateStatistics)
    assert len(stats.month_distribution) <= 12


@pytest.mark.unit
def test_generic_statistics_when_first_value_is_null(database):
    stats = generate_column_statistics(database, "sparse", "maybe")

    assert isinstance(stats, GenericStatistics)
    assert stats.count == 1
    assert stats.nulls == 2
    assert stats.null_percent == 67
    assert stats.distinct_count == 1
    assert [(v.value, v.count, v.percent) for v in stats.top_values] == [("hello", 1, 100)]


@pytest.mark.unit
def test_empty_table_reports_error(database):
    result = generate_column_statistics(database, "empty_table", "name")

    assert isinstance(result, StatisticsError)
    assert result.error == "No data available"


@pytest.mark.unit
def test_missing_column_reports_error(database):
    result = generate_column_statistics(database, "numbers", "missing")

    assert isinstance(result, StatisticsError)
    assert "no such column" in result.error


@pytest.mark.unit
def test_failed_percentiles_are_omitted(database):
    stats = generate_column_statistics(FailingDatabase(database, "OFFSET"), "numbers", "n")

    assert isinstance(stats, NumericStatistics)
    assert stats.percentile25 is None
    assert stats.percentile75 is None
    assert stats.mean == 5.5
    assert sum(stats.histogram.counts) == 10


@pytest.mark.unit
def test_failed_histogram_buckets_count_zero(database):
    stats = generate_column_statistics(FailingDatabase(database, ":lower"), "numbers", "n")

    assert isinstance(stats, NumericStatistics)
    assert len(stats.histogram.buckets) == 10
    assert stats.histogram.counts == [0] * 10
    assert stats.percentile25 == 2


@pytest.mark.unit
def test_failed_length_statistics_are_omitted(database):
    stats = generate_column_statistics(FailingDatabase(database, "length("), "letters", "letter")

    assert isinstance(stats, TextStatistics)
    assert stats.min_length is None
    assert stats.avg_length is None
    assert stats.is_likely_categorical is True


@pytest.mark.unit
def test_failed_critical_query_reports_error(database):
    result = generate_column_statistics(FailingDatabase(database, "AS mean"), "numbers", "n")

    assert isinstance(result, StatisticsError)
    assert result.error == "simulated failure"


@pytest.mark.unit
def test_range_days_tolerates_bad_dates():
    assert _range_days("2024-01-01", "2024-01-31") == 30
    assert _range_days("not a date", "2024-01-31") is None


@pytest.mark.unit
def test_statistics_serialize_with_camel_case(database):
    data = generate_column_statistics(database, "numbers", "n").model_dump(by_alias=True, exclude_none=True)

    assert data["kind"] == "numeric"
    assert data["nullPercent"] == 0
    assert data["distinctCount"] == 10
    assert "topValues" in data
