"""
Input sanitization utilities for user-provided identifiers and log output.

The profiling engine interpolates table and column names directly into SQL,
so every identifier that reaches it must first pass through
``sanitize_identifier``.
"""
import re

from sqlite_eda.core.errors import ErrorCodes, InputError

_IDENTIFIER_STRIP = re.compile(r'[^A-Za-z0-9_]')


def sanitize_identifier(name: str) -> str:
    """
    Strip everything except letters, digits and underscores.

    Returns an empty string when nothing survives.
    """
    if not name:
        return ""
    return _IDENTIFIER_STRIP.sub('', name)


def require_table_name(name: str) -> str:
    """Sanitize a table name, raising InputError if nothing is left."""
    table_name = sanitize_identifier(name)
    if not table_name:
        raise InputError("Invalid table name", ErrorCodes.INVALID_TABLE_NAME)
    return table_name


def require_column_name(name: str) -> str:
    """Sanitize a column name, raising InputError if nothing is left."""
    column_name = sanitize_identifier(name)
    if not column_name:
        raise InputError("Invalid column name", ErrorCodes.INVALID_COLUMN_NAME)
    return column_name


def sanitize_for_logging(value: str, max_length: int = 500) -> str:
    """
    Sanitize value for safe logging (prevents log injection).

    Args:
        value: Value to sanitize
        max_length: Maximum length

    Returns:
        Sanitized value safe for logging
    """
    if not value:
        return ""

    value = str(value)

    # Collapse newlines so one query stays on one log line
    value = re.sub(r'[\r\n]+', ' ', value)

    # Remove other control characters
    value = re.sub(r'[\x00-\x1f\x7f-\x9f]', '', value)

    if len(value) > max_length:
        value = value[:max_length] + "..."

    return value
