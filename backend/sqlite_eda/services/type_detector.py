"""
Column type detection.

Classifies individual sample values and aggregates per-value votes into a
dominant type with a confidence score. Nothing in this module raises: every
input, including an empty sample, produces a well-formed ``ColumnTypeInfo``.
"""
import math
import re
from typing import Any, Dict, Hashable, Iterable, List, Optional, Set, Tuple

import pandas as pd

from sqlite_eda.core.schemas import ColumnTypeInfo, ColumnTypeStats

# Value type tags
NULL = 'null'
BOOLEAN = 'boolean'
INTEGER = 'integer'
FLOAT = 'float'
DATE = 'date'
DATETIME = 'datetime'
STRING = 'string'
NUMBER = 'number'
UNKNOWN = 'unknown'

NUMERIC_TYPES = (INTEGER, FLOAT)
TEMPORAL_TYPES = (DATE, DATETIME)

DOMINANCE_THRESHOLD = 0.8
INTEGER_SHARE_THRESHOLD = 0.9
MAX_EXAMPLES = 5

DATE_PATTERN = re.compile(r'^\d{4}-\d{2}-\d{2}$')
DATETIME_PATTERN = re.compile(
    r'^\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}(:\d{2})?(\.\d+)?(Z|[+-]\d{2}:?\d{2})?$'
)
NUMBER_PATTERN = re.compile(r'^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$')


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (2.5 -> 3), unlike round()."""
    return int(math.floor(value + 0.5))


def _is_timestamp(value: str) -> bool:
    try:
        return pd.to_datetime(value, errors='coerce', format='ISO8601') is not pd.NaT
    except (ValueError, TypeError, OverflowError):
        return False


def to_number(value: Any) -> Optional[float]:
    """Numeric value of a native number or numeric string, else None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        text = value.strip()
        if NUMBER_PATTERN.match(text):
            number = float(text)
            if math.isfinite(number):
                return number
    return None


def classify_value(value: Any) -> str:
    """
    Determine the type tag of a single value.

    Rules are checked in order and the first match wins: null, boolean,
    numeric (integer/float), date, datetime, string.
    """
    if value is None:
        return NULL

    if isinstance(value, bool) or value == 'true' or value == 'false':
        return BOOLEAN

    number = to_number(value)
    if number is not None:
        if isinstance(number, int) or float(number).is_integer():
            return INTEGER
        return FLOAT

    if isinstance(value, str):
        if DATE_PATTERN.match(value) and _is_timestamp(value):
            return DATE
        if DATETIME_PATTERN.match(value) and _is_timestamp(value):
            return DATETIME

    return STRING


def _unique_key(value: Any) -> Hashable:
    # 1 and 1.0 are the same value; True, 1 and '1' are not
    if isinstance(value, bool):
        return (BOOLEAN, value)
    if isinstance(value, (int, float)):
        return (NUMBER, value)
    try:
        hash(value)
    except TypeError:
        return (STRING, repr(value))
    return (type(value).__name__, value)


def detect_data_type(values: Iterable[Any], column_name: Optional[str] = None) -> ColumnTypeInfo:
    """
    Detect the dominant type of a column from its non-null sample values.

    Args:
        values: Sample values with nulls already removed
        column_name: Name of the column (informational only)

    Returns:
        ColumnTypeInfo with the dominant type, a 0-100 confidence, up to five
        distinct examples in first-seen order and partial statistics
    """
    values = list(values)
    total_values = len(values)
    if total_values == 0:
        return ColumnTypeInfo(type=UNKNOWN, confidence=0, examples=[], stats=ColumnTypeStats())

    votes: Dict[str, int] = {
        NUMBER: 0, INTEGER: 0, FLOAT: 0, BOOLEAN: 0, DATE: 0, DATETIME: 0, STRING: 0,
    }
    unique_keys: Set[Hashable] = set()
    examples: List[Any] = []
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    numeric_sum = 0.0
    numeric_count = 0

    for value in values:
        key = _unique_key(value)
        if key not in unique_keys:
            unique_keys.add(key)
            if len(examples) < MAX_EXAMPLES:
                examples.append(value)

        value_type = classify_value(value)
        if value_type == NULL:
            continue
        votes[value_type] += 1

        if value_type in NUMERIC_TYPES:
            votes[NUMBER] += 1
            number = to_number(value)
            numeric_sum += number
            numeric_count += 1
            if min_value is None or number < min_value:
                min_value = number
            if max_value is None or number > max_value:
                max_value = number

        if isinstance(value, str):
            length = len(value)
            min_length = length if min_length is None else min(min_length, length)
            max_length = length if max_length is None else max(max_length, length)

    dominant_type, confidence = _dominant_type(votes, total_values)

    unique_count = len(unique_keys)
    stats = ColumnTypeStats(
        unique_count=unique_count,
        unique_ratio=unique_count / total_values,
        null_count=0,
        total_count=total_values,
    )

    if dominant_type in NUMERIC_TYPES:
        stats.min = min_value
        stats.max = max_value
        stats.mean = numeric_sum / numeric_count
        # Low-cardinality numbers are often encoded categories
        if unique_count < 10 and total_values > 20:
            stats.potential_category = True
    elif dominant_type == STRING:
        stats.min_length = min_length
        stats.max_length = max_length
        if 1 < unique_count < 20:
            stats.potential_category = True

    return ColumnTypeInfo(
        type=dominant_type,
        confidence=round_half_up(confidence),
        examples=examples,
        stats=stats,
    )


def _dominant_type(votes: Dict[str, int], total: int) -> Tuple[str, float]:
    """
    Pick the dominant type from a vote tally.

    Later checks override earlier ones: numeric, then date/datetime, then
    boolean, which always has the final say.
    """
    dominant_type = STRING
    confidence = votes[STRING] / total * 100

    if votes[NUMBER] / total > DOMINANCE_THRESHOLD:
        if votes[INTEGER] / votes[NUMBER] > INTEGER_SHARE_THRESHOLD:
            dominant_type = INTEGER
        else:
            dominant_type = FLOAT
        confidence = votes[NUMBER] / total * 100

    if votes[DATE] / total > DOMINANCE_THRESHOLD:
        dominant_type = DATE
        confidence = votes[DATE] / total * 100
    elif votes[DATETIME] / total > DOMINANCE_THRESHOLD:
        dominant_type = DATETIME
        confidence = votes[DATETIME] / total * 100

    if votes[BOOLEAN] / total > DOMINANCE_THRESHOLD:
        dominant_type = BOOLEAN
        confidence = votes[BOOLEAN] / total * 100

    return dominant_type, confidence
