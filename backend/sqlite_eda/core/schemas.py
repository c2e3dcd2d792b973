from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Annotated, List, Optional, Any, Dict, Union, Literal


class CamelModel(BaseModel):
    """Snake_case attributes, camelCase JSON."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Type detection ---------------------------------------------------------

class ColumnTypeStats(CamelModel):
    unique_count: Optional[int] = None
    unique_ratio: Optional[float] = None
    null_count: Optional[int] = None
    total_count: Optional[int] = None
    # numeric columns
    min: Optional[float] = None
    max: Optional[float] = None
    mean: Optional[float] = None
    # string columns
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    potential_category: Optional[bool] = None  # only ever set to True


class ColumnTypeInfo(CamelModel):
    type: str  # integer, float, boolean, date, datetime, string, unknown
    confidence: int
    examples: List[Any]
    stats: ColumnTypeStats = Field(default_factory=ColumnTypeStats)


# --- Schema introspection -----------------------------------------------------

class SchemaColumn(CamelModel):
    name: str
    type: str = ""
    not_null: bool = False
    default_value: Optional[Any] = None
    primary_key: bool = False


# --- Table profile ----------------------------------------------------------

class ProfiledColumn(CamelModel):
    name: str
    declared_type: str
    detected_type: str
    confidence: int
    examples: List[Any]
    primary_key: bool = False
    nullable: bool = True
    null_count: int = 0
    unique_count: Optional[int] = None
    stats: ColumnTypeStats = Field(default_factory=ColumnTypeStats)


class TableProfile(CamelModel):
    table_name: str
    row_count: int
    column_count: int
    columns: List[ProfiledColumn]


# --- Column statistics --------------------------------------------------------

class ValueFrequency(CamelModel):
    value: Any
    count: int
    percent: int


class Histogram(CamelModel):
    buckets: List[str]
    counts: List[int]


class YearBucket(CamelModel):
    year: Optional[str]
    count: int
    percent: int


class MonthBucket(CamelModel):
    month: Optional[str]
    count: int
    percent: int


class BaseStatistics(CamelModel):
    count: int = 0
    nulls: int = 0
    null_percent: int = 0
    distinct_count: int = 0
    distinct_percent: int = 0


class NumericStatistics(BaseStatistics):
    kind: Literal["numeric"] = "numeric"
    min: Optional[Union[float, str]] = None
    max: Optional[Union[float, str]] = None
    mean: Optional[float] = None
    percentile25: Optional[Union[float, str]] = None
    percentile75: Optional[Union[float, str]] = None
    histogram: Optional[Histogram] = None
    top_values: List[ValueFrequency] = Field(default_factory=list)


class TextStatistics(BaseStatistics):
    kind: Literal["text"] = "text"
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    avg_length: Optional[float] = None
    top_values: List[ValueFrequency] = Field(default_factory=list)
    is_likely_categorical: Optional[bool] = None
    categories: Optional[List[ValueFrequency]] = None


class DateStatistics(BaseStatistics):
    kind: Literal["date"] = "date"
    min_date: Optional[Any] = None
    max_date: Optional[Any] = None
    range_days: Optional[int] = None
    year_distribution: Optional[List[YearBucket]] = None
    month_distribution: Optional[List[MonthBucket]] = None


class GenericStatistics(BaseStatistics):
    kind: Literal["generic"] = "generic"
    top_values: List[ValueFrequency] = Field(default_factory=list)


ColumnStatistics = Annotated[
    Union[NumericStatistics, TextStatistics, DateStatistics, GenericStatistics],
    Field(discriminator="kind"),
]


class StatisticsError(CamelModel):
    error: str


# --- Visualization recommendations -------------------------------------------

class VisualizationRecommendation(CamelModel):
    type: Literal["bar", "pie", "histogram", "line", "scatter"]
    title: str
    description: str
    priority: Literal["high", "medium", "low"]
    x_column: Optional[str] = None
    y_column: Optional[str] = None
    label_column: Optional[str] = None
    value_column: Optional[str] = None
    column: Optional[str] = None
    query: Optional[str] = None


# --- Ad-hoc queries -----------------------------------------------------------

class QueryRequest(CamelModel):
    query: str
    params: Optional[Union[List[Any], Dict[str, Any]]] = None


class QueryResult(CamelModel):
    rows: List[Dict[str, Any]]
    row_count: int
