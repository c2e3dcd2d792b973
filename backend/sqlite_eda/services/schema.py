import logging
from typing import Dict, List

from sqlite_eda.core.database import SQLiteDatabase
from sqlite_eda.core.errors import QueryError
from sqlite_eda.core.schemas import SchemaColumn

logger = logging.getLogger(__name__)


def get_tables(db: SQLiteDatabase) -> List[str]:
    return db.get_tables()


def get_table_structure(db: SQLiteDatabase, table_name: str) -> List[SchemaColumn]:
    """Declared columns of a table, or an empty list if they can't be read."""
    try:
        return db.get_table_columns(table_name)
    except QueryError as e:
        logger.error(f"Error getting table structure for {table_name}: {e}")
        return []


def get_schema(db: SQLiteDatabase) -> Dict[str, List[SchemaColumn]]:
    """
    Structure of every table in the database.

    A table whose structure can't be read maps to an empty list. Failure to
    list the tables themselves propagates.
    """
    schema = {}
    for table in get_tables(db):
        schema[table] = get_table_structure(db, table)

    logger.info(f"Loaded schema for {len(schema)} tables")
    return schema


def table_exists(db: SQLiteDatabase, table_name: str) -> bool:
    return table_name in get_tables(db)


def column_exists(db: SQLiteDatabase, table_name: str, column_name: str) -> bool:
    return any(col.name == column_name for col in get_table_structure(db, table_name))
