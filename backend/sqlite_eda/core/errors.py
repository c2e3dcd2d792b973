"""
Error types, codes and user-facing error messages.
"""
from typing import Dict, Optional


# Error codes
class ErrorCodes:
    INVALID_TABLE_NAME = "INVALID_TABLE_NAME"
    INVALID_COLUMN_NAME = "INVALID_COLUMN_NAME"
    INVALID_QUERY = "INVALID_QUERY"
    TABLE_NOT_FOUND = "TABLE_NOT_FOUND"
    COLUMN_NOT_FOUND = "COLUMN_NOT_FOUND"
    QUERY_ERROR = "QUERY_ERROR"
    DATABASE_NOT_CONFIGURED = "DATABASE_NOT_CONFIGURED"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    TIMEOUT = "TIMEOUT"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class EdaError(Exception):
    """Base class for errors raised by the profiling engine and its collaborators."""

    code = ErrorCodes.UNKNOWN_ERROR

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code


class InputError(EdaError):
    """An identifier or query was empty or invalid. No SQL was issued."""

    code = ErrorCodes.INVALID_TABLE_NAME


class NotFoundError(EdaError):
    """The requested table or column does not exist."""

    code = ErrorCodes.TABLE_NOT_FOUND


class QueryError(EdaError):
    """The database driver rejected or failed a statement."""

    code = ErrorCodes.QUERY_ERROR


class DatabaseConfigError(EdaError):
    """The database could not be opened or is not configured."""

    code = ErrorCodes.DATABASE_NOT_CONFIGURED


ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    ErrorCodes.INVALID_TABLE_NAME: {
        "message": "That table name doesn't look right",
        "detail": "Table names may only contain letters, digits and underscores.",
        "suggestion": "💡 Pick a table from the schema list and try again."
    },
    ErrorCodes.INVALID_COLUMN_NAME: {
        "message": "That column name doesn't look right",
        "detail": "Column names may only contain letters, digits and underscores.",
        "suggestion": "💡 Pick a column from the table profile and try again."
    },
    ErrorCodes.INVALID_QUERY: {
        "message": "We need a query to run",
        "detail": "The query text was empty.",
        "suggestion": "💡 Type a SQL statement such as SELECT * FROM my_table LIMIT 10."
    },
    ErrorCodes.TABLE_NOT_FOUND: {
        "message": "We couldn't find that table",
        "detail": "The table is not part of the connected database.",
        "suggestion": "💡 Refresh the schema to see which tables are available."
    },
    ErrorCodes.COLUMN_NOT_FOUND: {
        "message": "We couldn't find that column",
        "detail": "The column is not part of the table.",
        "suggestion": "💡 Open the table profile to see which columns it has."
    },
    ErrorCodes.QUERY_ERROR: {
        "message": "The database couldn't run that query",
        "detail": "SQLite reported an error while executing the statement.",
        "suggestion": "💡 Check the table and column names and the SQL syntax, then try again."
    },
    ErrorCodes.DATABASE_NOT_CONFIGURED: {
        "message": "No database is connected",
        "detail": "The server was started without a usable SQLite database.",
        "suggestion": "💡 Restart with --database pointing at an existing SQLite file."
    },
    ErrorCodes.RATE_LIMIT_EXCEEDED: {
        "message": "Whoa there! Slow down a bit",
        "detail": "You're sending queries faster than we allow.",
        "suggestion": "💡 Wait about a minute and try again."
    },
    ErrorCodes.TIMEOUT: {
        "message": "This is taking longer than expected",
        "detail": "The request did not finish in time. Large tables can make histogram queries slow.",
        "suggestion": "💡 Try a smaller table, or add an index on the column you are profiling."
    },
    ErrorCodes.UNKNOWN_ERROR: {
        "message": "Hmm, something unexpected happened",
        "detail": "We encountered an issue we weren't expecting.",
        "suggestion": "💡 Give it another try in a moment."
    }
}


def get_error_response(error_code: str, additional_detail: Optional[str] = None) -> Dict[str, str]:
    """
    Get user-friendly error response for an error code.

    Args:
        error_code: One of the ErrorCodes constants
        additional_detail: Optional additional detail to append

    Returns:
        Dictionary with code, message, detail, and suggestion
    """
    error_info = ERROR_MESSAGES.get(error_code, ERROR_MESSAGES[ErrorCodes.UNKNOWN_ERROR])

    response = {
        "code": error_code,
        "message": error_info["message"],
        "detail": error_info["detail"],
        "suggestion": error_info["suggestion"]
    }

    if additional_detail:
        response["detail"] = f"{response['detail']} {additional_detail}"

    return response
