"""
Chart recommendation service.

This module looks at a table profile and proposes chart types based on the
mix of column types using deterministic rules. It performs no I/O: the same
profile always yields the same recommendations, in generation order.
"""
import logging
from typing import List

from sqlite_eda.core.schemas import ProfiledColumn, TableProfile, VisualizationRecommendation
from sqlite_eda.services.type_detector import NUMERIC_TYPES, STRING, TEMPORAL_TYPES

logger = logging.getLogger(__name__)

CATEGORICAL_MAX_DISTINCT = 20
PIE_MAX_DISTINCT = 10


def _distinct_count(col: ProfiledColumn) -> int:
    return col.unique_count or 0


def is_numeric(col: ProfiledColumn) -> bool:
    return col.detected_type in NUMERIC_TYPES


def is_categorical(col: ProfiledColumn) -> bool:
    if col.stats.potential_category is True:
        return True
    return col.detected_type == STRING and 0 < _distinct_count(col) < CATEGORICAL_MAX_DISTINCT


def is_temporal(col: ProfiledColumn) -> bool:
    return col.detected_type in TEMPORAL_TYPES


def recommend_visualizations(profile: TableProfile) -> List[VisualizationRecommendation]:
    """
    Suggest charts for a profiled table.

    Rules, applied in this order and concatenated without ranking:
    - CATEGORY + VALUE = BAR (or count-by-category bar without numeric columns)
    - SMALL CATEGORY + VALUE = PIE (or count distribution pie)
    - VALUE = HISTOGRAM
    - TIME + VALUE = LINE (or count-over-time line)
    - VALUE + VALUE = SCATTER, one per unordered pair

    Args:
        profile: Table profile produced by the profiler

    Returns:
        List of recommendations
    """
    if profile is None or not profile.columns:
        return []

    table = profile.table_name
    numeric_cols = [c for c in profile.columns if is_numeric(c)]
    categorical_cols = [c for c in profile.columns if is_categorical(c)]
    temporal_cols = [c for c in profile.columns if is_temporal(c)]

    recommendations: List[VisualizationRecommendation] = []

    # 1. Rule: CATEGORY + VALUE = BAR CHART
    for cat_col in categorical_cols:
        for num_col in numeric_cols:
            recommendations.append(VisualizationRecommendation(
                type="bar",
                title=f"{cat_col.name} by {num_col.name}",
                x_column=cat_col.name,
                y_column=num_col.name,
                description=f"Bar chart showing {num_col.name} values grouped by {cat_col.name}",
                priority="high",
            ))

        if not numeric_cols:
            recommendations.append(VisualizationRecommendation(
                type="bar",
                title=f"Count by {cat_col.name}",
                description=f"Bar chart showing count of records by {cat_col.name}",
                query=(
                    f"SELECT {cat_col.name}, COUNT(*) as count FROM {table} "
                    f"GROUP BY {cat_col.name} ORDER BY count DESC"
                ),
                priority="high",
            ))

    # 2. Rule: FEW CATEGORIES + VALUE = PIE CHART
    pie_cols = [c for c in categorical_cols if 0 < _distinct_count(c) <= PIE_MAX_DISTINCT]
    for cat_col in pie_cols:
        for num_col in numeric_cols:
            recommendations.append(VisualizationRecommendation(
                type="pie",
                title=f"Distribution of {num_col.name} by {cat_col.name}",
                label_column=cat_col.name,
                value_column=num_col.name,
                description=f"Pie chart showing distribution of {num_col.name} across {cat_col.name} categories",
                priority="medium",
            ))

        if not numeric_cols:
            recommendations.append(VisualizationRecommendation(
                type="pie",
                title=f"Distribution by {cat_col.name}",
                description=f"Pie chart showing distribution of records by {cat_col.name}",
                query=f"SELECT {cat_col.name}, COUNT(*) as count FROM {table} GROUP BY {cat_col.name}",
                priority="medium",
            ))

    # 3. Rule: SINGLE NUMERIC = HISTOGRAM
    for num_col in numeric_cols:
        recommendations.append(VisualizationRecommendation(
            type="histogram",
            title=f"Distribution of {num_col.name}",
            column=num_col.name,
            description=f"Histogram showing the distribution of {num_col.name} values",
            priority="medium",
        ))

    # 4. Rule: TIME + VALUE = LINE CHART
    for time_col in temporal_cols:
        for num_col in numeric_cols:
            recommendations.append(VisualizationRecommendation(
                type="line",
                title=f"{num_col.name} over time",
                x_column=time_col.name,
                y_column=num_col.name,
                description=f"Line chart showing {num_col.name} values over time",
                priority="high",
            ))

        if not numeric_cols:
            recommendations.append(VisualizationRecommendation(
                type="line",
                title="Count over time",
                description="Line chart showing record count over time",
                query=(
                    f"SELECT {time_col.name}, COUNT(*) as count FROM {table} "
                    f"GROUP BY {time_col.name}"
                ),
                priority="high",
            ))

    # 5. Rule: NUMERIC + NUMERIC = SCATTER
    for i in range(len(numeric_cols)):
        for j in range(i + 1, len(numeric_cols)):
            col_x = numeric_cols[i]
            col_y = numeric_cols[j]
            recommendations.append(VisualizationRecommendation(
                type="scatter",
                title=f"Relationship between {col_x.name} and {col_y.name}",
                x_column=col_x.name,
                y_column=col_y.name,
                description=f"Scatter plot showing relationship between {col_x.name} and {col_y.name}",
                priority="low",
            ))

    logger.info(f"Generated {len(recommendations)} visualization recommendations for {table}")
    return recommendations
