import logging
from typing import Dict, List, Optional
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from slowapi.errors import RateLimitExceeded
from sqlite_eda.core.database import SQLiteDatabase
from sqlite_eda.core.errors import (
    DatabaseConfigError,
    EdaError,
    ErrorCodes,
    InputError,
    NotFoundError,
    QueryError,
    get_error_response,
)
from sqlite_eda.core.sanitization import require_column_name, require_table_name, sanitize_for_logging
from sqlite_eda.core.schemas import (
    ColumnTypeInfo,
    QueryRequest,
    QueryResult,
    SchemaColumn,
    TableProfile,
    VisualizationRecommendation,
)
from sqlite_eda.services import schema as schema_service
from sqlite_eda.services.inference import recommend_visualizations
from sqlite_eda.services.profiler import analyze_table_data_types, generate_table_profile
from sqlite_eda.services.statistics import generate_column_statistics

logger = logging.getLogger(__name__)

router = APIRouter()

STATUS_BY_ERROR = {
    InputError: 400,
    QueryError: 400,
    NotFoundError: 404,
    DatabaseConfigError: 503,
}


def _error_detail(request: Request, error_code: str, additional_detail: Optional[str] = None) -> dict:
    error_info = get_error_response(error_code, additional_detail)
    error_info['correlation_id'] = getattr(request.state, 'correlation_id', 'unknown')
    return error_info


def _http_error(request: Request, exc: Exception) -> HTTPException:
    """Translate an exception into a structured HTTPException."""
    if isinstance(exc, EdaError):
        status_code = next(
            (code for error_type, code in STATUS_BY_ERROR.items() if isinstance(exc, error_type)),
            500
        )
        return HTTPException(status_code=status_code, detail=_error_detail(request, exc.code, exc.message))

    logger.error(f"Unexpected error handling {request.url.path}: {exc}", exc_info=True)
    return HTTPException(status_code=500, detail=_error_detail(request, ErrorCodes.UNKNOWN_ERROR))


def get_database(request: Request) -> SQLiteDatabase:
    """Get the connected database from app state using dependency injection."""
    database = getattr(request.app.state, "database", None)
    if database is None:
        raise HTTPException(status_code=503, detail=_error_detail(request, ErrorCodes.DATABASE_NOT_CONFIGURED))
    return database


def _resolve_table(db: SQLiteDatabase, table: str) -> str:
    table_name = require_table_name(table)
    if not schema_service.table_exists(db, table_name):
        raise NotFoundError(f"Table '{table_name}' not found", ErrorCodes.TABLE_NOT_FOUND)
    return table_name


def _resolve_column(db: SQLiteDatabase, table_name: str, column: str) -> str:
    column_name = require_column_name(column)
    if not schema_service.column_exists(db, table_name, column_name):
        raise NotFoundError(
            f"Column '{column_name}' not found in table '{table_name}'", ErrorCodes.COLUMN_NOT_FOUND
        )
    return column_name


def _sample_size(request: Request) -> int:
    return request.app.state.settings.sample_size


@router.get("/health")
def health_check(request: Request):
    database = getattr(request.app.state, "database", None)
    connected = database is not None and database.ping()
    return {"status": "ok", "database": "connected" if connected else "disconnected"}


@router.get("/tables", response_model=List[str])
def list_tables(request: Request, db: SQLiteDatabase = Depends(get_database)):
    try:
        return schema_service.get_tables(db)
    except Exception as e:
        raise _http_error(request, e)


@router.get(
    "/schema",
    response_model=Dict[str, List[SchemaColumn]],
    response_model_exclude_none=True
)
def get_schema(request: Request, db: SQLiteDatabase = Depends(get_database)):
    try:
        return schema_service.get_schema(db)
    except Exception as e:
        raise _http_error(request, e)


async def _run_query(request: Request, db: SQLiteDatabase, body: QueryRequest) -> QueryResult:
    logger.info(f"Executing query: {sanitize_for_logging(body.query, 200)}")
    rows = await run_in_threadpool(db.execute_query, body.query, body.params)
    return QueryResult(rows=rows, row_count=len(rows))


def _rate_limited_query_handler(request: Request):
    """
    ``_run_query`` wrapped in the app's rate limit.

    Built once per app: slowapi registers the limit again every time its
    decorator is applied.
    """
    state = request.app.state
    handler = getattr(state, "query_handler", None)
    if handler is None:
        limit_decorator = state.limiter.limit(f"{state.settings.rate_limit_per_minute}/minute")
        handler = limit_decorator(_run_query)
        state.query_handler = handler
    return handler


@router.post("/query", response_model=QueryResult)
async def run_query(
    request: Request,
    body: QueryRequest,
    db: SQLiteDatabase = Depends(get_database)
):
    """
    Execute an ad-hoc SQL statement and return its rows.

    Rate limited per client IP address (configurable).
    """
    handler = _rate_limited_query_handler(request)

    try:
        return await handler(request, db, body)
    except (HTTPException, RateLimitExceeded):
        # RateLimitExceeded is formatted by the handler registered in main.py
        raise
    except Exception as e:
        raise _http_error(request, e)


@router.get(
    "/types/{table}",
    response_model=Dict[str, ColumnTypeInfo],
    response_model_exclude_none=True
)
def detect_column_types(table: str, request: Request, db: SQLiteDatabase = Depends(get_database)):
    try:
        table_name = _resolve_table(db, table)
        return analyze_table_data_types(db, table_name, _sample_size(request))
    except Exception as e:
        raise _http_error(request, e)


@router.get("/profile/{table}", response_model=TableProfile, response_model_exclude_none=True)
def get_table_profile(table: str, request: Request, db: SQLiteDatabase = Depends(get_database)):
    try:
        table_name = _resolve_table(db, table)
        return generate_table_profile(db, table_name, _sample_size(request))
    except Exception as e:
        raise _http_error(request, e)


@router.get(
    "/visualizations/{table}",
    response_model=List[VisualizationRecommendation],
    response_model_exclude_none=True
)
def get_visualizations(table: str, request: Request, db: SQLiteDatabase = Depends(get_database)):
    try:
        table_name = _resolve_table(db, table)
        profile = generate_table_profile(db, table_name, _sample_size(request))
        return recommend_visualizations(profile)
    except Exception as e:
        raise _http_error(request, e)


@router.get("/stats/{table}/{column}")
def get_column_statistics(
    table: str,
    column: str,
    request: Request,
    db: SQLiteDatabase = Depends(get_database)
):
    """
    Statistics for one column. Statistics failures are reported in the body
    as ``{"error": ...}`` rather than as an HTTP error.
    """
    try:
        table_name = _resolve_table(db, table)
        column_name = _resolve_column(db, table_name, column)
    except Exception as e:
        raise _http_error(request, e)

    stats = generate_column_statistics(db, table_name, column_name)
    return stats.model_dump(by_alias=True, exclude_none=True)
