import logging
from typing import Dict, List, Optional

from sqlite_eda.core.database import SQLiteDatabase
from sqlite_eda.core.errors import QueryError
from sqlite_eda.core.schemas import ColumnTypeInfo, ProfiledColumn, SchemaColumn, TableProfile
from sqlite_eda.services.type_detector import UNKNOWN, detect_data_type

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_SIZE = 1000


def _sample_rows(db: SQLiteDatabase, table_name: str, sample_size: int) -> List[dict]:
    return db.execute_query(f"SELECT * FROM {table_name} LIMIT {int(sample_size)}")


def _detect_types(sample: List[dict]) -> Dict[str, ColumnTypeInfo]:
    if not sample:
        return {}

    column_types = {}
    for column in sample[0].keys():
        values = [row[column] for row in sample if row.get(column) is not None]
        column_types[column] = detect_data_type(values, column)
    return column_types


def analyze_table_data_types(
    db: SQLiteDatabase, table_name: str, sample_size: int = DEFAULT_SAMPLE_SIZE
) -> Dict[str, ColumnTypeInfo]:
    """
    Detect the type of every column from the first ``sample_size`` rows.

    An empty table yields an empty mapping.
    """
    try:
        return _detect_types(_sample_rows(db, table_name, sample_size))
    except Exception as e:
        logger.error(f"Error analyzing table {table_name}: {e}")
        raise


def _table_structure(db: SQLiteDatabase, table_name: str) -> List[SchemaColumn]:
    try:
        return db.get_table_columns(table_name)
    except QueryError as e:
        logger.warning(f"Could not read structure of {table_name}, continuing without it: {e}")
        return []


def _ordered_columns(sample_columns: List[str], structure: List[SchemaColumn]) -> List[str]:
    """Sampled columns in declaration order, with undeclared ones appended."""
    declared = [col.name for col in structure if col.name in sample_columns]
    return declared + [name for name in sample_columns if name not in declared]


def generate_table_profile(
    db: SQLiteDatabase, table_name: str, sample_size: int = DEFAULT_SAMPLE_SIZE
) -> TableProfile:
    """
    Profile a table: true row count, per-column detected types from a bounded
    sample, and declared schema metadata.

    Columns come from the sample, so a table without rows profiles as zero
    columns.
    """
    try:
        count_rows = db.execute_query(f"SELECT COUNT(*) AS count FROM {table_name}")
        row_count = (count_rows[0].get("count") if count_rows else 0) or 0

        sample = _sample_rows(db, table_name, sample_size)
        column_types = _detect_types(sample)
        structure = _table_structure(db, table_name)
    except Exception as e:
        logger.error(f"Error generating table profile for {table_name}: {e}")
        raise

    structure_by_name = {col.name: col for col in structure}
    columns = []

    for name in _ordered_columns(list(column_types.keys()), structure):
        type_info = column_types[name]
        schema_col: Optional[SchemaColumn] = structure_by_name.get(name)

        columns.append(ProfiledColumn(
            name=name,
            declared_type=(schema_col.type if schema_col and schema_col.type else UNKNOWN),
            detected_type=type_info.type,
            confidence=type_info.confidence,
            examples=type_info.examples,
            primary_key=bool(schema_col and schema_col.primary_key),
            nullable=not (schema_col and schema_col.not_null),
            null_count=sum(1 for row in sample if row.get(name) is None),
            unique_count=type_info.stats.unique_count,
            stats=type_info.stats,
        ))

    logger.info(f"Profiled table {table_name}: {row_count} rows, {len(columns)} columns")

    return TableProfile(
        table_name=table_name,
        row_count=row_count,
        column_count=len(columns),
        columns=columns,
    )
