"""
SQLite access for the profiling engine.

``SQLiteDatabase`` is the SQL execution and schema introspection collaborator:
every query returns a list of plain ``dict`` rows keyed by column name, and
every driver failure surfaces as ``QueryError``. Instances are passed
explicitly into every profiling operation.
"""
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from sqlite_eda.core.config import SUPPORTED_DATABASE_TYPES
from sqlite_eda.core.errors import DatabaseConfigError, ErrorCodes, InputError, QueryError
from sqlite_eda.core.sanitization import sanitize_for_logging
from sqlite_eda.core.schemas import SchemaColumn

logger = logging.getLogger(__name__)

Row = Dict[str, Any]
ResultSet = List[Row]
QueryParams = Optional[Union[Sequence[Any], Dict[str, Any]]]

TABLES_QUERY = "SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%'"
BLOB_PREVIEW_BYTES = 16


def to_row_value(value: Any) -> Any:
    """
    Row values as JSON-safe scalars.

    BLOB cells become a hex preview in SQLite literal form, e.g.
    ``x'fffe01'``; longer blobs are cut and suffixed with their size.
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        data = bytes(value)
        preview = f"x'{data[:BLOB_PREVIEW_BYTES].hex()}'"
        if len(data) > BLOB_PREVIEW_BYTES:
            preview += f"... ({len(data)} bytes)"
        return preview
    return value


def _driver_message(exc: SQLAlchemyError) -> str:
    """The underlying sqlite3 message, without SQLAlchemy's statement dump."""
    orig = getattr(exc, "orig", None)
    return str(orig) if orig is not None else str(exc)


class SQLiteDatabase:
    """A SQLite file opened through a SQLAlchemy engine."""

    def __init__(self, path: Union[str, Path], echo: bool = False):
        db_path = Path(path).expanduser().resolve()
        if not db_path.is_file():
            raise DatabaseConfigError(f"SQLite database file not found: {db_path}")

        self.path = db_path
        # FastAPI runs sync handlers in a thread pool
        self.engine: Engine = create_engine(
            f"sqlite:///{db_path}",
            echo=echo,
            connect_args={"check_same_thread": False},
        )
        logger.info(f"Connected to SQLite database: {db_path}")

    def execute_query(self, query: str, params: QueryParams = None) -> ResultSet:
        """
        Run one statement and return its rows.

        Statements that produce no rows (DDL, INSERT, ...) are committed and
        return an empty list.
        BLOB values are returned as hex previews (see ``to_row_value``).

        Raises:
            InputError: if the query text is empty
            QueryError: if SQLite rejects or fails the statement
        """
        if not query or not query.strip():
            raise InputError("Query is required", ErrorCodes.INVALID_QUERY)

        if params is not None and not isinstance(params, dict):
            params = tuple(params)

        try:
            with self.engine.begin() as conn:
                result = conn.exec_driver_sql(query, params) if params else conn.exec_driver_sql(query)
                if not result.returns_rows:
                    return []
                return [
                    {key: to_row_value(value) for key, value in row.items()}
                    for row in result.mappings()
                ]
        except SQLAlchemyError as e:
            message = _driver_message(e)
            logger.error(f"Error executing query: {message} ({sanitize_for_logging(query, 200)})")
            raise QueryError(message) from e

    def get_tables(self) -> List[str]:
        """Names of all user tables."""
        return [row["name"] for row in self.execute_query(TABLES_QUERY)]

    def get_table_columns(self, table_name: str) -> List[SchemaColumn]:
        """
        Declared columns of a table, in declaration order.

        Falls back to bare column names taken from one sampled row when
        ``PRAGMA table_info`` fails, and to an empty list when that fails too.

        Every column with a non-zero ``pk`` is flagged, so all members of a
        composite key count as primary key columns, not just the first one.
        """
        try:
            rows = self.execute_query(f"PRAGMA table_info('{table_name}')")
            return [
                SchemaColumn(
                    name=row.get("name") or "",
                    type=row.get("type") or "",
                    not_null=row.get("notnull") == 1,
                    default_value=row.get("dflt_value"),
                    primary_key=(row.get("pk") or 0) > 0,
                )
                for row in rows
            ]
        except QueryError as e:
            logger.warning(f"PRAGMA table_info failed for {table_name}: {e}")

        try:
            logger.info(f"Attempting fallback query for table {table_name}")
            sample = self.execute_query(f"SELECT * FROM {table_name} LIMIT 1")
        except QueryError as e:
            logger.error(f"Fallback query failed for {table_name}: {e}")
            return []

        if not sample:
            return []
        return [SchemaColumn(name=name, type="unknown") for name in sample[0].keys()]

    def ping(self) -> bool:
        try:
            self.execute_query("SELECT 1")
            return True
        except QueryError:
            return False

    def close(self) -> None:
        self.engine.dispose()
        logger.info(f"Closed SQLite database: {self.path}")


def create_database(db_type: str, path: Optional[Union[str, Path]]) -> SQLiteDatabase:
    """Open a database of the given type. Only SQLite is implemented."""
    if db_type not in SUPPORTED_DATABASE_TYPES:
        raise DatabaseConfigError(f"Database type {db_type} not implemented yet")
    if not path:
        raise DatabaseConfigError("Database path is required for SQLite")
    return SQLiteDatabase(path)
